"""Prometheus metrics for monitoring analysis outcomes and Claude API performance"""

from prometheus_client import Counter, Histogram

# Analysis metrics
analysis_counter = Counter(
    "statement_analysis_total",
    "Total statement analyses",
    ["outcome"],  # success | configuration_error | upstream_error | malformed_response | incomplete_result | error
)

account_category_counter = Counter(
    "statement_account_category_total",
    "Detected account categories",
    ["category"],  # CREDIT_CARD | DEBIT_ACCOUNT
)

transactions_extracted_histogram = Histogram(
    "statement_transactions_extracted",
    "Transactions extracted per statement",
    buckets=[0, 5, 10, 25, 50, 100, 250],
)

# Claude API metrics
upstream_latency_histogram = Histogram(
    "claude_api_latency_seconds",
    "Claude Messages API response time",
    ["stage"],  # detection | extraction
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)

upstream_failure_counter = Counter(
    "claude_api_failures_total",
    "Failed Claude Messages API calls",
    ["reason"],  # timeout | transport | status
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_analysis(outcome: str, account_category: str | None = None, transaction_count: int | None = None) -> None:
    """Record analysis metrics for monitoring success rates and statement mix"""
    analysis_counter.labels(outcome=outcome).inc()

    if account_category is not None:
        account_category_counter.labels(category=account_category).inc()

    if transaction_count is not None:
        transactions_extracted_histogram.observe(transaction_count)
