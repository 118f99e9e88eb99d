"""Seed a demonstration set of medicine batches (several batches per medicine)."""
from datetime import date, timedelta
from decimal import Decimal

from pharmastock.db.init_db import init_db
from pharmastock.db.session import SessionLocal
from pharmastock.models.batch import MedicineBatch
from pharmastock.services.fefo import group_medicines_by_name


def seed_inventory():
    init_db()
    db = SessionLocal()
    today = date.today()

    # Clear existing batches for clean seed
    db.query(MedicineBatch).delete()

    # days_to_expiry None = does not expire; negative = already expired
    batches = [
        {"name": "Paracetamol 500mg", "batch": "PCM-2401", "qty": 120, "sell": "2.50", "buy": "1.60", "days_to_expiry": 20},
        {"name": "Paracetamol 500mg", "batch": "PCM-2407", "qty": 200, "sell": "2.50", "buy": "1.70", "days_to_expiry": 240},
        {"name": "Paracetamol 500mg", "batch": "PCM-2311", "qty": 15, "sell": "2.40", "buy": "1.55", "days_to_expiry": -12},
        {"name": "Amoxicillin 500mg", "batch": "AMX-118", "qty": 60, "sell": "8.00", "buy": "5.20", "days_to_expiry": 95},
        {"name": "Amoxicillin 500mg", "batch": "AMX-131", "qty": 8, "sell": "8.00", "buy": "5.40", "days_to_expiry": 400},
        {"name": "Cetirizine 10mg", "batch": "CTZ-55", "qty": 250, "sell": "1.50", "buy": "0.90", "days_to_expiry": 180},
        {"name": "Metformin 500mg", "batch": "MET-902", "qty": 5, "sell": "1.00", "buy": "0.60", "days_to_expiry": 310},
        {"name": "Tramadol 50mg", "batch": "TRM-07", "qty": 30, "sell": "12.00", "buy": "8.75", "days_to_expiry": 150, "narcotic": True},
        {"name": "Disposable Syringe 5ml", "batch": "SYR-5-01", "qty": 500, "sell": "6.00", "buy": "3.10", "days_to_expiry": None},
    ]

    for b in batches:
        expiry = today + timedelta(days=b["days_to_expiry"]) if b["days_to_expiry"] is not None else None
        db.add(MedicineBatch(
            medicine_name=b["name"],
            batch_no=b["batch"],
            quantity=b["qty"],
            selling_price=Decimal(b["sell"]),
            purchase_price=Decimal(b["buy"]),
            expiry_date=expiry,
            manufacturing_date=today - timedelta(days=200),
            company_name="Demo Pharma Ltd",
            supplier="Demo Distributors",
            rack_no="A1",
            selling_type="unit",
            is_narcotic=b.get("narcotic", False),
        ))

    db.commit()
    print(f"\n✅ Successfully added {len(batches)} batches")

    print("\n📦 BATCHES BY MEDICINE (nearest expiry first):")
    print("=" * 80)
    for name, group in group_medicines_by_name(db.query(MedicineBatch).all()).items():
        print(f"  📌 {name}")
        for batch in group:
            expiry = batch.expiry_date.isoformat() if batch.expiry_date else "no expiry"
            print(f"     {batch.batch_no}: {batch.quantity} units | expiry {expiry} | ₹{batch.selling_price}")
        print()

    db.close()


if __name__ == "__main__":
    seed_inventory()
