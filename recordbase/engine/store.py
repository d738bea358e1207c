# File: /recordbase/engine/store.py | Version: 1.1 | Title: Record Store contract + SQLAlchemy / in-memory implementations
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from recordbase.models.core_entities import Record

Predicate = Callable[[Any], bool]


@dataclass
class StoreQuery:
    database_id: str
    predicate: Optional[Predicate] = None
    sort_key: Optional[Callable[[Any], Any]] = None
    skip: int = 0
    limit: Optional[int] = None


class RecordStore(Protocol):
    def find(self, query: StoreQuery) -> List[Any]: ...

    def count(self, query: StoreQuery) -> int: ...

    def find_one(self, database_id: str, record_id: str) -> Optional[Any]: ...

    def existing_ids(self, database_id: str, ids: Iterable[str]) -> Set[str]: ...

    def find_by_ids(self, database_id: str, ids: Iterable[str]) -> List[Any]: ...


def apply_query(rows: Iterable[Any], query: StoreQuery) -> List[Any]:
    """Filter, order, then slice. Shared by every store that evaluates in memory."""
    matched = [r for r in rows if query.predicate is None or query.predicate(r)]
    if query.sort_key is not None:
        matched.sort(key=query.sort_key)
    end = None if query.limit is None else query.skip + query.limit
    return matched[query.skip:end]


class SqlRecordStore:
    """
    Scoping (database id, soft-delete flag) runs in SQL; the compiled
    predicate and sort key run over the JSON property maps in Python.
    """

    def __init__(self, db: Session):
        self.db = db

    def _scoped(self, database_id: str):
        return select(Record).where(
            Record.database_id == database_id,
            Record.is_deleted.is_(False),
        )

    def _rows(self, database_id: str) -> List[Record]:
        return list(self.db.execute(self._scoped(database_id)).scalars().all())

    def find(self, query: StoreQuery) -> List[Record]:
        return apply_query(self._rows(query.database_id), query)

    def count(self, query: StoreQuery) -> int:
        rows = self._rows(query.database_id)
        if query.predicate is None:
            return len(rows)
        return sum(1 for r in rows if query.predicate(r))

    def find_one(self, database_id: str, record_id: str) -> Optional[Record]:
        q = self._scoped(database_id).where(Record.id == record_id)
        return self.db.execute(q).scalars().first()

    def find_by_ids(self, database_id: str, ids: Iterable[str]) -> List[Record]:
        wanted = [str(i) for i in ids]
        if not wanted:
            return []
        q = self._scoped(database_id).where(Record.id.in_(wanted))
        return list(self.db.execute(q).scalars().all())

    def existing_ids(self, database_id: str, ids: Iterable[str]) -> Set[str]:
        return {r.id for r in self.find_by_ids(database_id, ids)}


class MemoryRecordStore:
    """Embedded store over plain objects exposing id/database_id/properties."""

    def __init__(self, records: Optional[Sequence[Any]] = None):
        self.records: List[Any] = list(records or [])

    def add(self, record: Any) -> Any:
        self.records.append(record)
        return record

    def _rows(self, database_id: str) -> List[Any]:
        return [
            r for r in self.records
            if r.database_id == database_id and not getattr(r, "is_deleted", False)
        ]

    def find(self, query: StoreQuery) -> List[Any]:
        return apply_query(self._rows(query.database_id), query)

    def count(self, query: StoreQuery) -> int:
        return len(apply_query(self._rows(query.database_id), StoreQuery(query.database_id, query.predicate)))

    def find_one(self, database_id: str, record_id: str) -> Optional[Any]:
        return next((r for r in self._rows(database_id) if r.id == record_id), None)

    def find_by_ids(self, database_id: str, ids: Iterable[str]) -> List[Any]:
        wanted = {str(i) for i in ids}
        return [r for r in self._rows(database_id) if r.id in wanted]

    def existing_ids(self, database_id: str, ids: Iterable[str]) -> Set[str]:
        return {r.id for r in self.find_by_ids(database_id, ids)}
