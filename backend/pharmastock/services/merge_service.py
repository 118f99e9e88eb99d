"""
Stock merge: fold newly received stock into an existing batch with the same
medicine name and batch number.

MERGE RULES:
- quantity:        existing + incoming
- purchase price:  quantity-weighted average, rounded half-up to the cent
- selling price:   incoming price replaces the old one (latest price wins)
- expiry date:     the later of the two (either may be missing)
- mfg date:        the later of the two
- an already-expired existing batch never absorbs new stock (MergeRejected)

WRITE ORDER:
1. Conditional UPDATE of the batch row, keyed on the id, quantity and version
   read when the merge was computed. Zero rows updated means another writer got
   there first: MergeConflict, nothing written.
2. Insert of the StockMergeLog row. Best-effort: a failure here is logged and
   the merge still counts as done. Inventory counts take priority over the
   completeness of the audit trail.

Nothing is retried automatically.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmastock.core.audit import AuditLog
from pharmastock.core.config import settings
from pharmastock.core.exceptions import (
    ValidationError,
    MergeRejected,
    MergeConflict,
    WriteFailure,
    AuditWriteFailure,
)
from pharmastock.models.batch import MedicineBatch, normalize_key
from pharmastock.models.stock_merge_log import StockMergeLog
from pharmastock.schemas.merge import IncomingStock, MergeOutcome, MergePreview
from pharmastock.services.expiry import is_expired, to_date

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value if value is not None else 0))


def _later(first: Optional[date], second: Optional[date]) -> Optional[date]:
    if first is None:
        return second
    if second is None:
        return first
    return max(first, second)


def weighted_average_price(
    existing_quantity: int,
    existing_price: Decimal,
    added_quantity: int,
    added_price: Decimal,
) -> Decimal:
    """Average unit cost of the combined stock, to the cent (half-up)."""
    total_quantity = existing_quantity + added_quantity
    if total_quantity <= 0:
        raise ValidationError("Merged quantity must be positive")
    total_cost = Decimal(existing_quantity) * _money(existing_price) + Decimal(added_quantity) * _money(added_price)
    return (total_cost / Decimal(total_quantity)).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_incoming(new_data: IncomingStock) -> None:
    if new_data.quantity is None or new_data.quantity < 0:
        raise ValidationError("Incoming quantity cannot be negative")
    if _money(new_data.purchase_price) <= 0:
        raise ValidationError("Purchase price must be positive")
    if _money(new_data.selling_price) <= 0:
        raise ValidationError("Selling price must be positive")


@dataclass
class MergePlan:
    """Values a merge will write. Pure computation, no I/O."""
    previous_quantity: int
    added_quantity: int
    new_total_quantity: int
    previous_selling_price: Decimal
    new_selling_price: Decimal
    previous_purchase_price: Decimal
    new_purchase_price: Decimal
    expiry_date: Optional[date]
    manufacturing_date: Optional[date]

    @property
    def notes(self) -> str:
        return f"Stock merged: {self.previous_quantity} + {self.added_quantity} = {self.new_total_quantity}"


def plan_merge(existing, new_data: IncomingStock) -> MergePlan:
    """Validate the incoming stock and compute the merged values."""
    validate_incoming(new_data)
    if (normalize_key(new_data.medicine_name), normalize_key(new_data.batch_no)) != (
        normalize_key(existing.medicine_name),
        normalize_key(existing.batch_no),
    ):
        raise ValidationError(
            f"Incoming stock {new_data.medicine_name} / {new_data.batch_no} does not match "
            f"batch {existing.batch_no} of {existing.medicine_name}"
        )

    previous_quantity = int(existing.quantity)
    added_quantity = int(new_data.quantity)
    new_total = previous_quantity + added_quantity
    if new_total <= 0:
        raise ValidationError("Nothing to merge: combined quantity is zero")

    return MergePlan(
        previous_quantity=previous_quantity,
        added_quantity=added_quantity,
        new_total_quantity=new_total,
        previous_selling_price=_money(existing.selling_price),
        new_selling_price=_money(new_data.selling_price).quantize(CENT, rounding=ROUND_HALF_UP),
        previous_purchase_price=_money(existing.purchase_price),
        new_purchase_price=weighted_average_price(
            previous_quantity, existing.purchase_price, added_quantity, new_data.purchase_price
        ),
        expiry_date=_later(to_date(existing.expiry_date), to_date(new_data.expiry_date)),
        manufacturing_date=_later(to_date(existing.manufacturing_date), to_date(new_data.manufacturing_date)),
    )


def expiry_gap_days(existing, new_data: IncomingStock) -> Optional[int]:
    """Absolute days between the two expiry dates, None unless both are set."""
    existing_expiry = to_date(existing.expiry_date)
    incoming_expiry = to_date(new_data.expiry_date)
    if existing_expiry is None or incoming_expiry is None:
        return None
    return abs((incoming_expiry - existing_expiry).days)


def preview_merge(existing, new_data: IncomingStock, today: Optional[date] = None) -> MergePreview:
    """
    What a merge would do, for the operator's confirmation step.

    A large gap between the two expiry dates is only a warning; an expired
    existing batch makes the merge impossible (can_merge=False).
    """
    plan = plan_merge(existing, new_data)
    existing_expired = is_expired(existing.expiry_date, today)
    gap = expiry_gap_days(existing, new_data)

    return MergePreview(
        existing_batch_id=existing.id,
        previous_quantity=plan.previous_quantity,
        added_quantity=plan.added_quantity,
        new_total_quantity=plan.new_total_quantity,
        previous_selling_price=plan.previous_selling_price,
        new_selling_price=plan.new_selling_price,
        previous_purchase_price=plan.previous_purchase_price,
        new_purchase_price=plan.new_purchase_price,
        expiry_date=plan.expiry_date,
        manufacturing_date=plan.manufacturing_date,
        existing_expired=existing_expired,
        expiry_gap_days=gap,
        expiry_gap_warning=gap is not None and gap > settings.MERGE_EXPIRY_GAP_WARNING_DAYS,
        can_merge=not existing_expired,
    )


def _write_merge_log(db: Session, existing_id: int, name: str, batch_no: str,
                     plan: MergePlan, acting_user_id: str) -> bool:
    entry = StockMergeLog(
        medicine_id=existing_id,
        medicine_name=name,
        batch_no=batch_no,
        previous_quantity=plan.previous_quantity,
        added_quantity=plan.added_quantity,
        new_total_quantity=plan.new_total_quantity,
        previous_selling_price=plan.previous_selling_price,
        new_selling_price=plan.new_selling_price,
        previous_purchase_price=plan.previous_purchase_price,
        new_purchase_price=plan.new_purchase_price,
        merged_by=acting_user_id,
        notes=plan.notes,
    )
    try:
        db.add(entry)
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        failure = AuditWriteFailure(f"Merge of batch {existing_id} succeeded but its log row was not written")
        failure.__cause__ = e
        logger.error(str(failure), exc_info=failure)
        AuditLog.log_audit_write_failure(
            existing_id,
            acting_user_id,
            e,
            entry={"notes": plan.notes, "new_purchase_price": plan.new_purchase_price},
        )
        return False


def merge_stock(
    db: Session,
    existing: MedicineBatch,
    new_data: IncomingStock,
    acting_user_id: str,
    expected_version: Optional[int] = None,
    today: Optional[date] = None,
) -> MergeOutcome:
    """
    Merge `new_data` into the `existing` batch row.

    Raises:
        ValidationError: incoming quantity/prices are malformed (nothing written)
        MergeRejected: the existing batch is expired as of `today`
        MergeConflict: the row changed since it was read, or since `expected_version`
        WriteFailure: the store refused the update (batch unchanged)
    """
    # Snapshot before any commit expires the instance
    batch_id = existing.id
    name = existing.medicine_name
    batch_no = existing.batch_no
    read_quantity = existing.quantity
    read_version = existing.version

    if is_expired(existing.expiry_date, today):
        reason = f"Batch {batch_no} of {name} expired on {to_date(existing.expiry_date).isoformat()}"
        AuditLog.log_merge_rejected(batch_id, acting_user_id, reason)
        raise MergeRejected(f"{reason}; enter the new stock as a fresh batch instead")

    plan = plan_merge(existing, new_data)

    if expected_version is not None and expected_version != read_version:
        AuditLog.log_merge_conflict(batch_id, acting_user_id, read_quantity, read_version)
        raise MergeConflict(
            f"Batch {batch_no} of {name} was changed by someone else; review it and merge again"
        )

    stmt = (
        update(MedicineBatch)
        .where(
            MedicineBatch.id == batch_id,
            MedicineBatch.quantity == read_quantity,
            MedicineBatch.version == read_version,
        )
        .values(
            quantity=plan.new_total_quantity,
            selling_price=plan.new_selling_price,
            purchase_price=plan.new_purchase_price,
            expiry_date=plan.expiry_date,
            manufacturing_date=plan.manufacturing_date,
            version=read_version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    try:
        result = db.execute(stmt)
        if result.rowcount != 1:
            db.rollback()
            AuditLog.log_merge_conflict(batch_id, acting_user_id, read_quantity, read_version)
            raise MergeConflict(
                f"Batch {batch_no} of {name} was changed by someone else; review it and merge again"
            )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise WriteFailure(f"Could not update batch {batch_id}") from e

    logger.info(f"Merged into batch {batch_id} ({name} / {batch_no}): {plan.notes}")

    audit_logged = _write_merge_log(db, batch_id, name, batch_no, plan, acting_user_id)
    AuditLog.log_stock_merge(
        batch_id,
        name,
        batch_no,
        acting_user_id,
        changes={
            "quantity": [plan.previous_quantity, plan.new_total_quantity],
            "selling_price": [plan.previous_selling_price, plan.new_selling_price],
            "purchase_price": [plan.previous_purchase_price, plan.new_purchase_price],
        },
    )

    return MergeOutcome(
        batch_id=batch_id,
        previous_quantity=plan.previous_quantity,
        added_quantity=plan.added_quantity,
        new_total_quantity=plan.new_total_quantity,
        new_selling_price=plan.new_selling_price,
        new_purchase_price=plan.new_purchase_price,
        expiry_date=plan.expiry_date,
        manufacturing_date=plan.manufacturing_date,
        audit_logged=audit_logged,
    )


def list_merge_logs(db: Session, batch_id: int) -> list:
    return (
        db.query(StockMergeLog)
        .filter(StockMergeLog.medicine_id == batch_id)
        .order_by(StockMergeLog.merged_at.desc(), StockMergeLog.id.desc())
        .all()
    )
