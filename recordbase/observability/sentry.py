# File: recordbase/observability/sentry.py | Version: 1.1 | Title: Optional Sentry initialization
import logging

from recordbase.core.config import settings

log = logging.getLogger(__name__)


def init_sentry_if_configured() -> bool:
    dsn = (settings.SENTRY_DSN or "").strip()
    if not dsn:
        log.info("Sentry disabled (no SENTRY_DSN).")
        return False

    import sentry_sdk

    traces = settings.SENTRY_TRACES_SAMPLE_RATE
    sentry_sdk.init(
        dsn=dsn,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=traces,
    )
    log.info("Sentry initialized (environment=%s).", settings.ENVIRONMENT)
    return True
