"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
claims_submitted_total = Counter(
    "claims_submitted_total",
    "Total number of payment claims stored",
)

claims_duplicate_total = Counter(
    "claims_duplicate_total",
    "Total claim submissions rejected for a reused transaction reference",
)

claims_reconciled_total = Counter(
    "claims_reconciled_total",
    "Total reconciliation attempts by outcome",
    ["action", "outcome"],  # approve/reject; changed, noop, invalid, failed
)

entitlements_granted_total = Counter(
    "entitlements_granted_total",
    "Total entitlement grant calls",
    ["source", "outcome"],  # free, approval, admin; created, existing
)

access_decisions_total = Counter(
    "access_decisions_total",
    "Access gate decisions",
    ["decision"],  # allow, not_found, payment_required
)

identity_requests_total = Counter(
    "identity_requests_total",
    "Identity provider verification requests",
    ["status"],
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open)",
    ["name"],
)

# Histograms
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration",
    ["method", "status"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5],
)

identity_request_duration_seconds = Histogram(
    "identity_request_duration_seconds",
    "Identity provider request duration",
    buckets=[0.1, 0.5, 1, 2, 5, 10],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
