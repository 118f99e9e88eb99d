import os
from datetime import date
from decimal import Decimal

# Keep the app's own engine off the developer database during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from pharmastock.api.deps import get_db
from pharmastock.db.init_db import init_db
from pharmastock.db.session import build_engine, make_session_factory
from pharmastock.main import app
from pharmastock.models.batch import MedicineBatch
from pharmastock.schemas.batch import BatchRecord


@pytest.fixture()
def engine():
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def add_batch(db):
    """Insert a batch with sensible defaults; returns the ORM row."""

    def _add(medicine_name="Panadol", batch_no="B-1", quantity=100, selling_price="15.00",
             purchase_price="10.00", expiry_date=None, manufacturing_date=date(2024, 1, 1), **extra):
        batch = MedicineBatch(
            medicine_name=medicine_name,
            batch_no=batch_no,
            quantity=quantity,
            selling_price=Decimal(selling_price),
            purchase_price=Decimal(purchase_price),
            expiry_date=expiry_date,
            manufacturing_date=manufacturing_date,
            **extra,
        )
        db.add(batch)
        db.commit()
        db.refresh(batch)
        return batch

    return _add


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def record(id, quantity, expiry_date, medicine_name="Panadol", batch_no=None):
    """Build an in-memory batch for the pure FEFO/alert helpers."""
    if isinstance(expiry_date, str):
        expiry_date = date.fromisoformat(expiry_date)
    return BatchRecord(
        id=id,
        medicine_name=medicine_name,
        batch_no=batch_no or f"B-{id}",
        quantity=quantity,
        selling_price=Decimal("15.00"),
        purchase_price=Decimal("10.00"),
        expiry_date=expiry_date,
    )


@pytest.fixture()
def make_record():
    return record
