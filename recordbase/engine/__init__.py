from recordbase.engine.predicates import compile_filter, compile_filters, compile_search  # noqa: F401
from recordbase.engine.query import RecordQueryService  # noqa: F401
from recordbase.engine.registry import PropertyTypeRegistry  # noqa: F401
from recordbase.engine.rollups import compute_rollup  # noqa: F401
from recordbase.engine.sorting import build_comparator, build_sort_key  # noqa: F401
from recordbase.engine.store import MemoryRecordStore, SqlRecordStore, StoreQuery  # noqa: F401
from recordbase.engine.validator import RecordValidator  # noqa: F401
