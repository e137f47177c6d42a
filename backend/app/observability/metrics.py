"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Any, Dict, Iterator, Optional

from app.observability import client as opik_client

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived Opik trace when Opik is enabled."""
    client = opik_client.get_opik_client()
    if not client:
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        metric_trace = client.trace(name=f"metric:{name}", metadata=payload)
        metric_trace.end()
    except Exception as exc:  # pragma: no cover - remote failure
        logger.debug("Unable to record metric %s: %s", name, exc)


@contextmanager
def record_latency(name: str, metadata: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
    """Log ``<name>.latency_ms`` and ``<name>.success`` around a block.

    The yielded dict is merged into the metric metadata, so callers can attach
    values they only learn inside the block.
    """
    extra: Dict[str, Any] = dict(metadata or {})
    started = perf_counter()
    success = False
    try:
        yield extra
        success = True
    finally:
        latency_ms = (perf_counter() - started) * 1000
        log_metric(f"{name}.success", 1 if success else 0, metadata=extra)
        log_metric(f"{name}.latency_ms", latency_ms, metadata=extra)
