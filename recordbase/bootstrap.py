# File: /recordbase/bootstrap.py | Version: 1.0 | Title: Runtime wiring (logging, Sentry, type registry, query service)
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from recordbase.core.logging import configure_logging
from recordbase.engine.query import RecordQueryService
from recordbase.engine.registry import PropertyTypeRegistry
from recordbase.engine.store import SqlRecordStore
from recordbase.observability.sentry import init_sentry_if_configured

log = logging.getLogger(__name__)


def init_runtime() -> PropertyTypeRegistry:
    """
    Call once at process start. Returns the registry every engine component
    should share.
    """
    configure_logging()
    init_sentry_if_configured()
    registry = PropertyTypeRegistry()
    log.info("Property type registry ready (%d types).", len(registry.types()))
    return registry


def query_service(db: Session, registry: PropertyTypeRegistry) -> RecordQueryService:
    return RecordQueryService(SqlRecordStore(db), registry)
