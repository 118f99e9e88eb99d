from sqlalchemy.pool import NullPool, StaticPool

from pharmastock.db.session import build_engine


def test_in_memory_sqlite_shares_one_connection() -> None:
    engine = build_engine("sqlite://")
    assert isinstance(engine.pool, StaticPool)
    engine.dispose()


def test_file_sqlite_opens_a_connection_per_checkout(tmp_path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'stock.db'}")
    assert isinstance(engine.pool, NullPool)
    engine.dispose()
