"""
StockMergeLog: one immutable row per successful stock merge.
Insert-only; nothing in the service updates or deletes these rows.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmastock.db.base import Base


class StockMergeLog(Base):
    __tablename__ = "stock_merge_logs"

    id = Column(Integer, primary_key=True, index=True)
    medicine_id = Column(Integer, ForeignKey("medicine_batches.id", ondelete="CASCADE"), nullable=False, index=True)
    medicine_name = Column(String(255), nullable=False)
    batch_no = Column(String(128), nullable=False)

    previous_quantity = Column(Integer, nullable=False)
    added_quantity = Column(Integer, nullable=False)
    new_total_quantity = Column(Integer, nullable=False)
    previous_selling_price = Column(Numeric(10, 2), nullable=True)
    new_selling_price = Column(Numeric(10, 2), nullable=True)
    previous_purchase_price = Column(Numeric(10, 2), nullable=True)
    new_purchase_price = Column(Numeric(10, 2), nullable=True)

    merged_by = Column(String(128), nullable=False)
    notes = Column(Text, nullable=True)
    merged_at = Column(DateTime(timezone=True), server_default=func.now())

    medicine = relationship("MedicineBatch", backref="merge_logs")
