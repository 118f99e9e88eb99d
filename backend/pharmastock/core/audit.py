"""
Audit logging for stock-changing operations.

Every merge, refused merge, and failed audit write is emitted as one JSON line
on the "audit" logger, independently of the stock_merge_logs table, so the
trail survives even when the table insert fails.
"""
import logging
import json
from datetime import datetime
from typing import Any, Optional, Dict

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.utcnow().isoformat()


class AuditLog:
    """Central audit logging for inventory events."""

    @staticmethod
    def log_stock_merge(
        batch_id: int,
        medicine_name: str,
        batch_no: str,
        acting_user_id: str,
        changes: Dict[str, Any],
    ):
        """
        Log a completed merge.

        Usage:
            AuditLog.log_stock_merge(12, "Panadol", "B-7", "u-1", {"quantity": [100, 150]})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": "medicine_batch.merge",
            "resource_id": batch_id,
            "medicine_name": medicine_name,
            "batch_no": batch_no,
            "user_id": acting_user_id,
            "changes": changes,
        }
        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_merge_rejected(
        batch_id: int,
        acting_user_id: str,
        reason: str,
    ):
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "medicine_batch.merge_rejected",
            "resource_id": batch_id,
            "user_id": acting_user_id,
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_merge_conflict(
        batch_id: int,
        acting_user_id: str,
        read_quantity: int,
        read_version: int,
    ):
        """
        Log a merge lost to a concurrent change of the same batch.

        The quantity/version pair is what the merge was computed from; another
        writer changed the row before the conditional update ran.
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "medicine_batch.merge_conflict",
            "resource_id": batch_id,
            "user_id": acting_user_id,
            "read_quantity": read_quantity,
            "read_version": read_version,
        }
        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_audit_write_failure(
        batch_id: int,
        acting_user_id: str,
        error: Exception,
        entry: Optional[Dict[str, Any]] = None,
    ):
        """
        Log a merge whose stock_merge_logs row could not be written.

        The full entry is included so the row can be reconstructed by hand.
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "ERROR",
            "event_type": "stock_merge_log.write_failed",
            "resource_id": batch_id,
            "user_id": acting_user_id,
            "error": type(error).__name__,
        }
        if entry:
            log_entry["entry"] = entry

        audit_logger.error(json.dumps(log_entry, default=str))

    @staticmethod
    def log_lookup_failure(
        medicine_name: str,
        batch_no: str,
        error: Exception,
    ):
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "medicine_batch.duplicate_check_failed",
            "medicine_name": medicine_name,
            "batch_no": batch_no,
            "error": type(error).__name__,
        }
        audit_logger.warning(json.dumps(log_entry))
