from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal


class IncomingStock(BaseModel):
    """
    New stock for a batch that already exists.

    Deliberately unconstrained: merge_service validates quantities and prices
    itself so the same rules apply to API and in-process callers.
    """
    medicine_name: str
    batch_no: str
    quantity: int
    selling_price: Decimal
    purchase_price: Decimal
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    company_name: Optional[str] = None
    supplier: Optional[str] = None
    rack_no: Optional[str] = None
    selling_type: Optional[str] = None
    is_narcotic: Optional[bool] = None


class MergeRequest(BaseModel):
    new_data: IncomingStock
    # Version seen when the duplicate was detected; a newer row is a conflict
    expected_version: Optional[int] = None


class MergePreview(BaseModel):
    existing_batch_id: int
    previous_quantity: int
    added_quantity: int
    new_total_quantity: int
    previous_selling_price: Decimal
    new_selling_price: Decimal
    previous_purchase_price: Decimal
    new_purchase_price: Decimal
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    existing_expired: bool = False
    expiry_gap_days: Optional[int] = None
    expiry_gap_warning: bool = False
    can_merge: bool = True


class MergeOutcome(BaseModel):
    batch_id: int
    previous_quantity: int
    added_quantity: int
    new_total_quantity: int
    new_selling_price: Decimal
    new_purchase_price: Decimal
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    audit_logged: bool = True


class StockMergeLogRecord(BaseModel):
    id: int
    medicine_id: int
    medicine_name: str
    batch_no: str
    previous_quantity: int
    added_quantity: int
    new_total_quantity: int
    previous_selling_price: Optional[Decimal] = None
    new_selling_price: Optional[Decimal] = None
    previous_purchase_price: Optional[Decimal] = None
    new_purchase_price: Optional[Decimal] = None
    merged_by: str
    notes: Optional[str] = None
    merged_at: Optional[datetime] = None

    class Config:
        from_attributes = True
