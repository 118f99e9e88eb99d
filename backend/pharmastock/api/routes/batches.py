"""Batches: listing, duplicate-guarded entry, FEFO selection, and stock merges."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from pharmastock.api.deps import get_db, get_acting_user_id
from pharmastock.core.exceptions import BusinessError, ValidationError, MergeRejected, MergeConflict, WriteFailure
from pharmastock.schemas.batch import (
    BatchCreate,
    BatchCreateResponse,
    BatchGroup,
    BatchRecord,
    DuplicateCheckRequest,
    DuplicateCheckResult,
    FEFOAllocationResult,
)
from pharmastock.schemas.merge import IncomingStock, MergeOutcome, MergePreview, MergeRequest, StockMergeLogRecord
from pharmastock.services import batch_service, duplicate_service, merge_service
from pharmastock.services.fefo import group_medicines_by_name, get_best_batch_fefo, select_batches_fefo

router = APIRouter()


def _get_batch_or_404(db: Session, batch_id: int):
    batch = batch_service.get_batch(db, batch_id)
    if not batch:
        raise BusinessError.not_found("Batch", reason=f"id={batch_id}")
    return batch


@router.get("", response_model=List[BatchRecord])
def list_batches(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """All batches, or those whose name/batch number contains `search`."""
    if search:
        return batch_service.search_batches(db, search)
    return batch_service.list_batches(db)


@router.post("", response_model=BatchCreateResponse, status_code=201)
def create_batch(body: BatchCreate, db: Session = Depends(get_db)):
    """
    Enter a new batch.

    An exact duplicate (same medicine and batch number) is refused with 409 and
    the existing batch id, so the client can offer a merge instead.
    """
    check = duplicate_service.check_for_duplicate(db, body.medicine_name, body.batch_no)
    if check.is_duplicate:
        raise BusinessError.conflict(
            "Batch already exists; merge the new stock into it instead",
            existing_batch_id=check.existing_medicine.id,
            existing_version=check.existing_medicine.version,
        )
    batch = batch_service.create_batch(db, body)
    return BatchCreateResponse(
        batch=BatchRecord.model_validate(batch),
        is_same_name_different_batch=check.is_same_name_different_batch,
    )


@router.get("/grouped", response_model=List[BatchGroup])
def grouped_batches(db: Session = Depends(get_db)):
    """Batches grouped by medicine name, each group nearest expiry first."""
    groups = group_medicines_by_name(batch_service.list_batches(db))
    return [
        BatchGroup(
            name=name,
            total_quantity=sum(b.quantity for b in batches),
            batches=[BatchRecord.model_validate(b) for b in batches],
        )
        for name, batches in groups.items()
    ]


@router.post("/duplicate-check", response_model=DuplicateCheckResult)
def duplicate_check(body: DuplicateCheckRequest, db: Session = Depends(get_db)):
    return duplicate_service.check_for_duplicate(db, body.medicine_name, body.batch_no)


@router.get("/fefo/allocation", response_model=FEFOAllocationResult)
def fefo_allocation(
    medicine_name: str = Query(..., min_length=1),
    quantity: int = Query(..., description="Units required"),
    db: Session = Depends(get_db),
):
    """Which batches a sale of `quantity` units should draw from. Read-only."""
    batches = batch_service.list_batches(db, medicine_name=medicine_name)
    return select_batches_fefo(medicine_name.strip(), quantity, batches)


@router.get("/fefo/best", response_model=Optional[BatchRecord])
def fefo_best(
    medicine_name: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    batches = batch_service.list_batches(db, medicine_name=medicine_name)
    return get_best_batch_fefo(medicine_name.strip(), batches)


@router.get("/{batch_id}", response_model=BatchRecord)
def get_batch(batch_id: int, db: Session = Depends(get_db)):
    return _get_batch_or_404(db, batch_id)


@router.post("/{batch_id}/merge/preview", response_model=MergePreview)
def merge_preview(batch_id: int, body: IncomingStock, db: Session = Depends(get_db)):
    """Projected result of a merge plus operator warnings. Writes nothing."""
    existing = _get_batch_or_404(db, batch_id)
    try:
        return merge_service.preview_merge(existing, body)
    except ValidationError as e:
        raise BusinessError.bad_request(str(e))


@router.post("/{batch_id}/merge", response_model=MergeOutcome)
def merge(
    batch_id: int,
    body: MergeRequest,
    db: Session = Depends(get_db),
    acting_user_id: str = Depends(get_acting_user_id),
):
    """Merge confirmed incoming stock into an existing batch."""
    existing = _get_batch_or_404(db, batch_id)
    try:
        return merge_service.merge_stock(
            db,
            existing,
            body.new_data,
            acting_user_id,
            expected_version=body.expected_version,
        )
    except ValidationError as e:
        raise BusinessError.bad_request(str(e))
    except MergeRejected as e:
        raise BusinessError.unprocessable(str(e))
    except MergeConflict as e:
        raise BusinessError.conflict(str(e))
    except WriteFailure as e:
        raise BusinessError.service_unavailable(e)


@router.get("/{batch_id}/merge-logs", response_model=List[StockMergeLogRecord])
def merge_logs(batch_id: int, db: Session = Depends(get_db)):
    _get_batch_or_404(db, batch_id)
    return merge_service.list_merge_logs(db, batch_id)
