"""
Stock error taxonomy and safe HTTP error responses.

Services raise the StockError subclasses below. Routers translate them into
HTTPExceptions through BusinessError, which keeps internal details (SQL errors,
driver messages) out of responses and in the logs.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class StockError(Exception):
    """Base class for batch inventory errors."""


class ValidationError(StockError):
    """Malformed merge input. Raised before any write."""


class LookupFailure(StockError):
    """A store read for duplicate checking failed.

    Never raised to callers: the duplicate check logs it and reports
    "no duplicate found".
    """


class MergeRejected(StockError):
    """Business-rule refusal of a merge, e.g. the existing batch is expired."""


class WriteFailure(StockError):
    """The batch update failed. The batch row is unchanged."""


class MergeConflict(WriteFailure):
    """The batch changed between the read and the conditional update."""


class AuditWriteFailure(StockError):
    """The merge log insert failed after a successful batch update. Logged only."""


class BusinessError:
    """Factory for HTTPExceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        if reason:
            logger.warning(f"Not found: {resource} - {reason}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """
        Generic 401. The acting user is handed over by the auth layer; when it
        is missing the request cannot be attributed and is refused.
        """
        logger.warning(f"Unauthorized request: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation errors.

        OK to include specific details here since the caller caused the issue.
        Examples: "Quantity cannot be negative", "Purchase price must be positive"
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str, **extra) -> HTTPException:
        """
        409 for resource conflicts.
        Examples: exact duplicate batch on create, concurrent merge on the same batch.
        """
        logger.info(f"Conflict: {detail}")
        payload = {"detail": detail, **extra} if extra else detail
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=payload,
        )

    @staticmethod
    def unprocessable(detail: str) -> HTTPException:
        """422 for business-rule refusals the operator can act on."""
        logger.info(f"Refused: {detail}")
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
        )

    @staticmethod
    def service_unavailable(original_error: Exception = None) -> HTTPException:
        """
        503 when the store rejected or could not take a write.

        SECURITY: Never expose SQL errors or internal paths to users.
        """
        if original_error:
            logger.error(
                f"Store write failed: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The inventory store is unavailable. Please try again.",
        )
