from sqlalchemy import Column, Integer, String, Numeric, Boolean, Date, DateTime, Index, CheckConstraint
from sqlalchemy.orm import validates
from sqlalchemy.sql import func
from pharmastock.db.base import Base


def normalize_key(value: str | None) -> str:
    """Matching key for names and batch numbers: trimmed, lower-cased."""
    return (value or "").strip().lower()


class MedicineBatch(Base):
    """
    One batch of a medicine received under one supplier batch number.

    STOCK RULES:
    - quantity never goes below zero; a zero-quantity batch stays as history
    - quantity only grows through a stock merge (services.merge_service)
    - expiry_date NULL means the batch does not expire
    - version is bumped by every merge; merges update conditionally on it
    """
    __tablename__ = "medicine_batches"

    id = Column(Integer, primary_key=True, index=True)
    medicine_name = Column(String(255), nullable=False)
    batch_no = Column(String(128), nullable=False)
    # Maintained from medicine_name / batch_no, used by the duplicate lookup
    normalized_name = Column(String(255), nullable=False)
    normalized_batch_no = Column(String(128), nullable=False)

    quantity = Column(Integer, nullable=False, default=0)
    selling_price = Column(Numeric(10, 2), nullable=False, default=0)
    purchase_price = Column(Numeric(10, 2), nullable=False, default=0)
    expiry_date = Column(Date, nullable=True)
    manufacturing_date = Column(Date, nullable=True)

    company_name = Column(String(255), nullable=True)
    supplier = Column(String(255), nullable=True)
    rack_no = Column(String(64), nullable=True)
    selling_type = Column(String(32), default="unit")  # unit, packet, bottle...
    is_narcotic = Column(Boolean, default=False)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_medicine_batches_quantity_non_negative"),
        Index("ix_medicine_batches_normalized_name_batch", "normalized_name", "normalized_batch_no"),
    )

    @validates("medicine_name")
    def _set_normalized_name(self, key, value):
        self.normalized_name = normalize_key(value)
        return value

    @validates("batch_no")
    def _set_normalized_batch_no(self, key, value):
        self.normalized_batch_no = normalize_key(value)
        return value
