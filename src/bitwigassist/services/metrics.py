"""Prometheus metrics for BitwigAssist.

Exposes metrics for Grafana dashboards:
- Query resolution counts
- Action execution counts and latencies
- Execution session outcomes
- Bitwig Studio connection health
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, Info, generate_latest
from prometheus_client.core import CollectorRegistry

# =============================================================================
# Custom Registry (avoids conflicts in tests)
# =============================================================================

REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# Application Metrics
# =============================================================================

bitwigassist_info = Info(
    "bitwigassist",
    "BitwigAssist version and environment info",
    registry=REGISTRY,
)

# =============================================================================
# Query Metrics
# =============================================================================

queries_total = Counter(
    "bitwigassist_queries_total",
    "Total queries resolved",
    ["match"],  # topic/keyword/fallback
    registry=REGISTRY,
)

# =============================================================================
# Action Metrics
# =============================================================================

actions_total = Counter(
    "bitwigassist_actions_total",
    "Total actions dispatched to Bitwig Studio",
    ["kind", "status"],
    registry=REGISTRY,
)

action_duration_seconds = Histogram(
    "bitwigassist_action_duration_seconds",
    "Action execution time",
    ["kind"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=REGISTRY,
)

sessions_total = Counter(
    "bitwigassist_sessions_total",
    "Execution sessions by terminal status",
    ["status"],
    registry=REGISTRY,
)

# =============================================================================
# Connection Metrics
# =============================================================================

probes_total = Counter(
    "bitwigassist_probes_total",
    "Bitwig Studio connection probes",
    ["result"],  # connected/disconnected/error
    registry=REGISTRY,
)

bitwig_connected = Gauge(
    "bitwigassist_bitwig_connected",
    "Bitwig Studio connection status (1=connected, 0=not connected)",
    registry=REGISTRY,
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_query(match: str) -> None:
    """Record a resolved query."""
    queries_total.labels(match=match).inc()


def record_action(kind: str, success: bool, latency_seconds: float) -> None:
    """Record metrics for one dispatched action."""
    status = "success" if success else "error"
    actions_total.labels(kind=kind, status=status).inc()
    action_duration_seconds.labels(kind=kind).observe(latency_seconds)


def record_session(status: str) -> None:
    """Record a session reaching a terminal status."""
    sessions_total.labels(status=status).inc()


def record_probe(result: str, connected: bool) -> None:
    """Record a connection probe and update the connection gauge."""
    probes_total.labels(result=result).inc()
    bitwig_connected.set(1 if connected else 0)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY)


def init_metrics(version: str, env: str) -> None:
    """Initialize static metrics."""
    bitwigassist_info.info({"version": version, "environment": env})
