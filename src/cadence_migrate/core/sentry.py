"""Sentry error tracking integration for cadence-migrate."""
import os
from typing import Any

import sentry_sdk

from cadence_migrate.core.logging import get_logger


def init_sentry(service_name: str = "cadence-migrate") -> bool:
    """Initialize Sentry with service tagging.

    Does nothing unless SENTRY_DSN is set.

    Args:
        service_name: Service identifier attached to every event

    Returns:
        True if Sentry was initialized
    """
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return False

    environment = os.getenv("SENTRY_ENVIRONMENT", "development")

    def _tag_event(event: Any, hint: Any) -> Any:
        event.setdefault("tags", {})
        event["tags"]["service"] = service_name
        event["tags"]["component"] = "migration-engine"
        return event

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        traces_sample_rate=1.0 if environment == "development" else 0.1,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        before_send=_tag_event,
    )
    sentry_sdk.set_tag("service", service_name)

    get_logger("sentry").info("sentry_initialized", service=service_name, environment=environment)
    return True
