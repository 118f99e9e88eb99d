"""Engine and session factory for the batch store."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from pharmastock.core.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Engine tuned for the backing database.

    - in-memory SQLite: one shared connection (StaticPool), or every checkout
      would see an empty database
    - file SQLite: a fresh connection per checkout (NullPool)
    - anything else: pooled, health-checked, recycled hourly
    """
    if database_url.startswith("sqlite"):
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else NullPool,
        )
    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)
