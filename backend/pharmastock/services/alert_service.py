"""Low-stock and expiry alerts over a set of batches."""
from datetime import date
from typing import Iterable, List, Optional

from pharmastock.schemas.alert import InventoryAlert
from pharmastock.services.expiry import days_until_expiry, is_expired, is_expiring_within_days, to_date
from pharmastock.services.fefo import expiry_sort_key


def collect_inventory_alerts(
    batches: Iterable,
    low_stock_threshold: int,
    expiry_warning_days: int,
    today: Optional[date] = None,
) -> List[InventoryAlert]:
    """
    One alert per condition per batch:
    - expired:     expiry date before today (stock still on hand)
    - near_expiry: expires today or within expiry_warning_days
    - low_stock:   quantity at or below the threshold
    Expiry alerts come first, nearest expiry first; then low stock, lowest first.
    """
    expiry_alerts: List[InventoryAlert] = []
    stock_alerts: List[InventoryAlert] = []

    for b in sorted(batches, key=expiry_sort_key):
        expiry = to_date(b.expiry_date)
        remaining = days_until_expiry(expiry, today)
        common = dict(
            batch_id=b.id,
            medicine_name=b.medicine_name,
            batch_no=b.batch_no,
            quantity=b.quantity,
            expiry_date=expiry,
            days_until_expiry=remaining,
        )

        if b.quantity > 0 and is_expired(expiry, today):
            expiry_alerts.append(InventoryAlert(
                type="expired",
                message=f"Expired: {b.medicine_name} (Batch: {b.batch_no}) expired on {expiry.isoformat()} "
                        f"with {b.quantity} units on hand",
                **common,
            ))
        elif b.quantity > 0 and is_expiring_within_days(expiry, expiry_warning_days, today):
            expiry_alerts.append(InventoryAlert(
                type="near_expiry",
                message=f"Expiry warning: {b.medicine_name} (Batch: {b.batch_no}) expires in {remaining} days",
                **common,
            ))

        if b.quantity <= low_stock_threshold:
            stock_alerts.append(InventoryAlert(
                type="low_stock",
                message=f"Low stock alert: {b.medicine_name} (Batch: {b.batch_no}) has only {b.quantity} units remaining",
                **common,
            ))

    stock_alerts.sort(key=lambda a: a.quantity)
    return expiry_alerts + stock_alerts
