"""Prometheus metrics definitions for s3presign.

All metrics use the ``s3presign_`` prefix. Nothing is registered until
``init_metrics()`` is called, so importing the package has no side effects
on the global registry.
"""

from __future__ import annotations

from pathlib import Path

from prometheus_client import REGISTRY, CollectorRegistry, Counter, write_to_textfile

# Flag indicating whether metrics have been initialised via init_metrics().
_initialized: bool = False

# Registry the collectors were registered into.
_registry: CollectorRegistry | None = None

# ---------------------------------------------------------------------------
# Issuance counters
# ---------------------------------------------------------------------------
urls_issued_total: Counter | None = None
failures_total: Counter | None = None

# ---------------------------------------------------------------------------
# Verification counter  (labels: outcome)
# ---------------------------------------------------------------------------
verifications_total: Counter | None = None


def init_metrics(registry: CollectorRegistry | None = None) -> None:
    """Create and register all Prometheus metrics.

    Call once when metrics are enabled. Later calls are no-ops until
    ``reset_metrics()``.

    Args:
        registry: Registry to register into. Defaults to the global one.
    """
    global _initialized, _registry
    global urls_issued_total, failures_total, verifications_total

    if _initialized:
        return

    target = registry if registry is not None else REGISTRY
    _registry = target

    urls_issued_total = Counter(
        "s3presign_urls_issued_total",
        "Total presigned URLs issued",
        ["region"],
        registry=target,
    )

    failures_total = Counter(
        "s3presign_failures_total",
        "Total presign requests rejected, by error code",
        ["code"],
        registry=target,
    )

    verifications_total = Counter(
        "s3presign_verifications_total",
        "Total presigned URL verifications by outcome",
        ["outcome"],
        registry=target,
    )

    _initialized = True


def reset_metrics() -> None:
    """Unregister the collectors so init_metrics() can run again."""
    global _initialized, _registry
    global urls_issued_total, failures_total, verifications_total

    if _registry is not None:
        for collector in (urls_issued_total, failures_total, verifications_total):
            if collector is not None:
                _registry.unregister(collector)

    urls_issued_total = None
    failures_total = None
    verifications_total = None
    _registry = None
    _initialized = False


def write_textfile(path: str | Path) -> None:
    """Write the current metric values in the Prometheus text format.

    Intended for short-lived processes such as the CLI, whose output file
    is picked up by node_exporter's textfile collector. Does nothing if
    metrics were never initialised.
    """
    if _registry is None:
        return
    write_to_textfile(str(path), _registry)
