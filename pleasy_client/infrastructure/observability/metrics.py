"""Prometheus metrics for settlement outcomes, close retries and classification quality"""

from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_counter = Counter(
    "pleasy_settlement_total",
    "Settlement workflows reaching a terminal phase",
    ["outcome", "reason"],  # done | failed
)

close_attempt_counter = Counter(
    "pleasy_close_attempts_total",
    "Account close attempts by verb and result",
    ["verb", "result"],  # PATCH | PUT, ok | error
)

# Read path metrics
classification_fallback_counter = Counter(
    "pleasy_classification_fallback_total",
    "Classifications that fell through to the raw-sign rule",
    ["account_kind"],  # loan | deposit
)

malformed_record_counter = Counter(
    "pleasy_malformed_records_total",
    "Backend records normalized to defaults",
    ["entity"],  # transaction | account
)

# Backend metrics
backend_failures_counter = Counter(
    "pleasy_backend_failures_total",
    "Failed banking backend calls",
    ["service"],  # accounts | transfers | history
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(done: bool, reason: str | None = None) -> None:
    """Record terminal settlement outcome"""
    outcome = "done" if done else "failed"
    settlement_counter.labels(outcome=outcome, reason=reason or "none").inc()


def record_close_attempt(verb: str, ok: bool) -> None:
    close_attempt_counter.labels(verb=verb, result="ok" if ok else "error").inc()
