# ruff: noqa: E402
# File: /tests/conftest.py
import pathlib
import sys
from datetime import UTC, datetime, timedelta

# Make repo root importable as "recordbase"
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import recordbase.models  # noqa: F401  (register tables on Base)
from recordbase.db.base_class import Base
from recordbase.engine.registry import PropertyTypeRegistry
from recordbase.schemas.database import DatabaseSchema
from recordbase.schemas.properties import PropertyOut
from recordbase.schemas.records import RecordOut

TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session():
    connection = engine.connect()
    trans = connection.begin()
    try:
        session = TestingSessionLocal(bind=connection)
        yield session
    finally:
        session.close()
        trans.rollback()
        connection.close()


@pytest.fixture()
def registry():
    return PropertyTypeRegistry()


# ---------- in-memory builders for engine tests ----------

def make_prop(pid, ptype, name=None, *, required=False, options=None, order=0, **config):
    cfg = dict(config)
    if options is not None:
        cfg["select_options"] = [{"id": o, "name": o.title()} for o in options]
    return PropertyOut(
        id=pid,
        database_id="db1",
        name=name or pid.title(),
        type=ptype,
        required=required,
        config=cfg,
        order=order,
    )


def make_schema(*props, views=None):
    return DatabaseSchema(
        id="db1",
        workspace_id="w1",
        name="Tasks",
        properties=list(props),
        views=list(views or []),
    )


def make_record(rid, minutes=0, **values):
    """Record `rid` created `minutes` after BASE_TIME."""
    ts = BASE_TIME + timedelta(minutes=minutes)
    return RecordOut(
        id=rid,
        database_id="db1",
        properties=values,
        created_at=ts,
        updated_at=ts,
    )


@pytest.fixture()
def status_schema():
    return make_schema(
        make_prop("name", "text", "Name"),
        make_prop("status", "select", "Status", options=["todo", "done"]),
        make_prop("score", "number", "Score"),
    )


@pytest.fixture()
def five_records():
    """3 done + 2 todo."""
    return [
        make_record("r1", 1, name="Write docs", status="done", score=5),
        make_record("r2", 2, name="Fix bug", status="todo", score=1),
        make_record("r3", 3, name="Ship release", status="done", score=3),
        make_record("r4", 4, name="Plan sprint", status="todo"),
        make_record("r5", 5, name="Review PR", status="done", score=8),
    ]
