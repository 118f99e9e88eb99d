from pydantic import BaseModel
from typing import Optional, Literal
from datetime import date


class InventoryAlert(BaseModel):
    type: Literal["low_stock", "near_expiry", "expired"]
    batch_id: int
    medicine_name: str
    batch_no: str
    quantity: int
    expiry_date: Optional[date] = None
    days_until_expiry: Optional[int] = None
    message: str
