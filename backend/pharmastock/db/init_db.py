"""Create all tables. Run on app startup."""
import logging

from pharmastock.db.base import Base
from pharmastock.db.session import engine
from pharmastock.models import batch, stock_merge_log  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(bind=None):
    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ensured")
