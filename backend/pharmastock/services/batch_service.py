"""Batch reads and creation. The store side of FEFO, grouping and alerts."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from pharmastock.models.batch import MedicineBatch, normalize_key
from pharmastock.schemas.batch import BatchCreate

logger = logging.getLogger(__name__)


def list_batches(db: Session, medicine_name: Optional[str] = None) -> List[MedicineBatch]:
    """All batches, optionally only those of one medicine (case-insensitive)."""
    q = db.query(MedicineBatch)
    if medicine_name:
        q = q.filter(MedicineBatch.normalized_name == normalize_key(medicine_name))
    return q.order_by(MedicineBatch.medicine_name, MedicineBatch.id).all()


def search_batches(db: Session, search: str) -> List[MedicineBatch]:
    """Batches whose name or batch number contains `search`."""
    needle = f"%{normalize_key(search)}%"
    return (
        db.query(MedicineBatch)
        .filter(
            (MedicineBatch.normalized_name.like(needle))
            | (MedicineBatch.normalized_batch_no.like(needle))
        )
        .order_by(MedicineBatch.medicine_name, MedicineBatch.id)
        .all()
    )


def get_batch(db: Session, batch_id: int) -> Optional[MedicineBatch]:
    return db.query(MedicineBatch).filter(MedicineBatch.id == batch_id).first()


def create_batch(db: Session, data: BatchCreate) -> MedicineBatch:
    """Insert a new batch. Duplicate screening is the caller's job (duplicate_service)."""
    batch = MedicineBatch(
        medicine_name=data.medicine_name.strip(),
        batch_no=data.batch_no.strip(),
        quantity=data.quantity,
        selling_price=data.selling_price,
        purchase_price=data.purchase_price,
        expiry_date=data.expiry_date,
        manufacturing_date=data.manufacturing_date,
        company_name=data.company_name,
        supplier=data.supplier,
        rack_no=data.rack_no,
        selling_type=data.selling_type,
        is_narcotic=data.is_narcotic,
    )
    db.add(batch)
    db.commit()
    db.refresh(batch)
    logger.info(f"Created batch {batch.id}: {batch.medicine_name} / {batch.batch_no} x{batch.quantity}")
    return batch
