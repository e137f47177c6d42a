"""Tracing utilities wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from app.core.config import settings
from app.observability import client as opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace

logger = logging.getLogger(__name__)


def _trace_metadata(
    metadata: Optional[Dict[str, Any]],
    user_id: Optional[str],
    request_id: Optional[str],
) -> Dict[str, Any]:
    payload = {key: value for key, value in (metadata or {}).items() if value is not None}
    payload.setdefault("environment", settings.environment)
    if user_id:
        payload.setdefault("user_id", str(user_id))
    if request_id:
        payload.setdefault("request_id", request_id)
    return payload


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Open an Opik trace around a pipeline stage.

    Yields ``None`` when Opik is disabled so call sites can guard updates with a
    simple truthiness check. Exceptions raised inside the block are attached to
    the trace and re-raised unchanged.
    """
    client = opik_client.get_opik_client()
    opik_trace: Optional["Trace"] = None

    if client:
        try:
            opik_trace = client.trace(name=name, metadata=_trace_metadata(metadata, user_id, request_id))
        except Exception as exc:  # pragma: no cover - remote failure
            logger.debug("Unable to start Opik trace %s: %s", name, exc)
            opik_trace = None

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"exception_type": type(exc).__name__, "message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)
