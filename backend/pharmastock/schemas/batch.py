from pydantic import BaseModel, Field, computed_field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal


class BatchBase(BaseModel):
    medicine_name: str
    batch_no: str
    quantity: int = 0
    selling_price: Decimal = Decimal("0")
    purchase_price: Decimal = Decimal("0")
    expiry_date: Optional[date] = None
    manufacturing_date: Optional[date] = None
    company_name: Optional[str] = None
    supplier: Optional[str] = None
    rack_no: Optional[str] = None
    selling_type: str = "unit"
    is_narcotic: bool = False


class BatchCreate(BatchBase):
    medicine_name: str = Field(min_length=1, max_length=255)
    batch_no: str = Field(min_length=1, max_length=128)
    quantity: int = Field(default=0, ge=0)
    selling_price: Decimal = Field(default=Decimal("0"), ge=0)
    purchase_price: Decimal = Field(default=Decimal("0"), ge=0)


class BatchRecord(BatchBase):
    """A persisted batch. Also the typed input of the FEFO and grouping helpers."""
    id: int
    version: int = 1
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BatchCreateResponse(BaseModel):
    batch: BatchRecord
    is_same_name_different_batch: bool = False


class DuplicateCheckRequest(BaseModel):
    medicine_name: str
    batch_no: str


class DuplicateCheckResult(BaseModel):
    """Outcome of a duplicate check. Not persisted."""
    is_duplicate: bool = False
    existing_medicine: Optional[BatchRecord] = None
    is_same_name_different_batch: bool = False

    @computed_field
    @property
    def status(self) -> str:
        if self.is_duplicate:
            return "exact_duplicate"
        if self.is_same_name_different_batch:
            return "same_name_different_batch"
        return "new"


class Allocation(BaseModel):
    id: int
    batch_no: str
    quantity: int
    expiry_date: Optional[date] = None


class FEFOAllocationResult(BaseModel):
    """
    Batches chosen for a requested quantity, nearest expiry first.

    allocations may add up to less than requested_quantity when stock is short;
    callers check shortfall (or total_available) before selling.
    """
    requested_quantity: int
    allocations: List[Allocation] = []
    total_available: int = 0

    @computed_field
    @property
    def allocated_quantity(self) -> int:
        return sum(a.quantity for a in self.allocations)

    @computed_field
    @property
    def shortfall(self) -> int:
        return max(self.requested_quantity, 0) - self.allocated_quantity


class BatchGroup(BaseModel):
    name: str
    total_quantity: int
    batches: List[BatchRecord]
