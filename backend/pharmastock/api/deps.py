"""FastAPI dependencies: DB session and the acting user.

Authentication happens upstream; the auth layer forwards the user it resolved
in the X-User-Id header. Stock-changing routes refuse requests without it.
"""
from typing import Generator, Optional

from fastapi import Header
from sqlalchemy.orm import Session

from pharmastock.core.exceptions import BusinessError
from pharmastock.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_acting_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise BusinessError.unauthorized("missing X-User-Id header")
    return x_user_id.strip()
