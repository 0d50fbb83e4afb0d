# Shared fixtures: every test runs against a fresh in-memory SQLite database
# injected through create_app(engine=...), so no PostgreSQL is needed.
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.pool import StaticPool

from orders.domain import OrderService
from orders.main import create_app
from orders.repository import OrderRepository, init_db


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(eng, "connect")
    def _fk_on(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def repository(engine):
    return OrderRepository(engine)


@pytest.fixture
def service(repository):
    return OrderService(repository)


@pytest.fixture
def client(engine):
    app = create_app(engine=engine)
    with TestClient(app) as c:
        yield c
