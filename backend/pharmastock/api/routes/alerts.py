"""Inventory alerts: low stock, near expiry, expired."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Literal, Optional

from pharmastock.api.deps import get_db
from pharmastock.core.config import settings
from pharmastock.schemas.alert import InventoryAlert
from pharmastock.services import batch_service
from pharmastock.services.alert_service import collect_inventory_alerts

router = APIRouter()


@router.get("", response_model=List[InventoryAlert])
def list_alerts(
    low_stock_threshold: Optional[int] = Query(None, ge=0),
    expiry_warning_days: Optional[int] = Query(None, ge=0),
    type: Optional[Literal["low_stock", "near_expiry", "expired"]] = Query(None),
    db: Session = Depends(get_db),
):
    """Alerts over all batches. Thresholds default to the configured values."""
    alerts = collect_inventory_alerts(
        batch_service.list_batches(db),
        low_stock_threshold=settings.LOW_STOCK_THRESHOLD if low_stock_threshold is None else low_stock_threshold,
        expiry_warning_days=settings.EXPIRY_WARNING_DAYS if expiry_warning_days is None else expiry_warning_days,
    )
    if type:
        alerts = [a for a in alerts if a.type == type]
    return alerts
