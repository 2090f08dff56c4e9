# tests/conftest.py

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from tasknest.db.crud import TaskStore
from tasknest.db.session import init_db
from tasknest.main import create_app

from .fakes import FakeSmsGateway


@pytest.fixture()
def engine():
    """Fresh in-memory SQLite per test; StaticPool keeps the one connection alive across sessions."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def store(engine):
    with Session(engine) as session:
        yield TaskStore(session)


@pytest.fixture()
def sms_gateway() -> FakeSmsGateway:
    return FakeSmsGateway()


@pytest.fixture()
def app(engine, sms_gateway):
    return create_app(db_engine=engine, sms_gateway=sms_gateway)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        c.headers.update({"X-User-Id": "user-1"})
        yield c
