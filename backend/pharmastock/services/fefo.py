"""
FEFO (First Expiry, First Out) batch selection and grouping.

Batch ordering used everywhere in this module:
- earliest expiry date first
- batches without an expiry date last (no urgency signal, lowest priority)
- ties keep their input order

Functions accept ORM rows or BatchRecord values; only attributes are read.
"""
import logging
from datetime import date
from typing import Dict, Iterable, List, Optional

from pharmastock.schemas.batch import Allocation, FEFOAllocationResult
from pharmastock.services.expiry import is_expired, to_date

logger = logging.getLogger(__name__)


def expiry_sort_key(batch) -> tuple:
    expiry = to_date(batch.expiry_date)
    return (expiry is None, expiry or date.max)


def _matches_name(batch, medicine_name: str) -> bool:
    return batch.medicine_name.lower() == medicine_name.lower()


def eligible_batches(medicine_name: str, all_batches: Iterable, today: Optional[date] = None) -> list:
    """Batches of this medicine that can be sold now, in FEFO order."""
    available = [
        b for b in all_batches
        if _matches_name(b, medicine_name)
        and b.quantity > 0
        and not is_expired(b.expiry_date, today)
    ]
    return sorted(available, key=expiry_sort_key)


def select_batches_fefo(
    medicine_name: str,
    required_quantity: int,
    all_batches: Iterable,
    today: Optional[date] = None,
) -> FEFOAllocationResult:
    """
    Pick batches for `required_quantity` units, nearest expiry first.

    Never takes more than a batch holds and never more than requested in total.
    When stock is short the result undershoots; total_available and shortfall
    let the caller detect it.
    """
    available = eligible_batches(medicine_name, all_batches, today)
    result = FEFOAllocationResult(
        requested_quantity=required_quantity,
        total_available=sum(b.quantity for b in available),
    )

    remaining = required_quantity
    for batch in available:
        if remaining <= 0:
            break
        take = min(batch.quantity, remaining)
        result.allocations.append(
            Allocation(
                id=batch.id,
                batch_no=batch.batch_no,
                quantity=take,
                expiry_date=to_date(batch.expiry_date),
            )
        )
        remaining -= take

    if remaining > 0 and required_quantity > 0:
        logger.info(
            f"FEFO shortfall for {medicine_name!r}: requested {required_quantity}, "
            f"available {result.total_available}"
        )
    return result


def get_best_batch_fefo(medicine_name: str, all_batches: Iterable, today: Optional[date] = None):
    """The single batch to sell from next, or None when nothing is sellable."""
    available = eligible_batches(medicine_name, all_batches, today)
    return available[0] if available else None


def group_medicines_by_name(batches: Iterable) -> Dict[str, List]:
    """
    Partition batches by lower-cased medicine name, each group in FEFO order.

    Display helper: expired and empty batches are kept.
    """
    groups: Dict[str, List] = {}
    for batch in batches:
        groups.setdefault(batch.medicine_name.lower(), []).append(batch)

    for name in groups:
        groups[name].sort(key=expiry_sort_key)
    return groups
