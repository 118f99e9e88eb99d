"""
Duplicate batch detection before stock entry.

Three outcomes:
- exact duplicate: same medicine name AND batch number (case/space-insensitive)
- same name, different batch: a new batch of a known medicine (soft warning)
- new: nothing with this name yet

FAIL-OPEN: if the store read fails the check reports "no duplicate". A broken
lookup must never block stock entry; it only skips the warning. The failure is
logged for follow-up.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmastock.core.audit import AuditLog
from pharmastock.core.exceptions import LookupFailure
from pharmastock.models.batch import MedicineBatch, normalize_key
from pharmastock.schemas.batch import BatchRecord, DuplicateCheckResult

logger = logging.getLogger(__name__)


def _find_duplicate(db: Session, name_key: str, batch_key: str) -> DuplicateCheckResult:
    # Newest first, so the most recently entered match is reported
    exact = (
        db.query(MedicineBatch)
        .filter(
            MedicineBatch.normalized_name == name_key,
            MedicineBatch.normalized_batch_no == batch_key,
        )
        .order_by(MedicineBatch.created_at.desc(), MedicineBatch.id.desc())
        .first()
    )
    if exact:
        return DuplicateCheckResult(
            is_duplicate=True,
            existing_medicine=BatchRecord.model_validate(exact),
            is_same_name_different_batch=False,
        )

    same_name = (
        db.query(MedicineBatch.id)
        .filter(MedicineBatch.normalized_name == name_key)
        .first()
    )
    if same_name:
        return DuplicateCheckResult(is_same_name_different_batch=True)

    return DuplicateCheckResult()


def check_for_duplicate(db: Session, medicine_name: str, batch_no: str) -> DuplicateCheckResult:
    """Classify a prospective (name, batch number) entry against stored batches."""
    name_key = normalize_key(medicine_name)
    batch_key = normalize_key(batch_no)

    try:
        return _find_duplicate(db, name_key, batch_key)
    except SQLAlchemyError as e:
        db.rollback()
        failure = LookupFailure(f"Duplicate lookup failed for {name_key!r}/{batch_key!r}")
        failure.__cause__ = e
        logger.error(str(failure), exc_info=failure)
        AuditLog.log_lookup_failure(medicine_name, batch_no, e)
        return DuplicateCheckResult()
