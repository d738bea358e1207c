# File: /tests/test_db_indexes.py | Version: 2.0 | Path: /tests/test_db_indexes.py
from sqlalchemy import inspect
from sqlalchemy.engine import Engine


def _idx_names(engine: Engine, table_name: str) -> set[str]:
    insp = inspect(engine)
    return {i["name"] for i in insp.get_indexes(table_name)}


def test_expected_indexes_exist(db_session):
    engine = db_session.get_bind()
    tables = set(inspect(engine).get_table_names())
    assert {"database", "property", "record", "views"} <= tables

    # single-column indexes come from index=True on columns
    assert "ix_database_workspace_id" in _idx_names(engine, "database")
    assert "ix_property_database_id" in _idx_names(engine, "property")

    # record listing: database scope + soft-delete flag
    record_idx = _idx_names(engine, "record")
    assert "ix_record_database_id" in record_idx
    assert "ix_record_database_id_is_deleted" in record_idx

    assert "ix_views_database" in _idx_names(engine, "views")
