from prometheus_client import Counter, Histogram

UPSTREAM_REQUESTS = Counter(
    "metasearch_upstream_requests_total",
    "Total number of upstream provider requests",
    ["provider", "status"]
)

UPSTREAM_DURATION = Histogram(
    "metasearch_upstream_duration_seconds",
    "Histogram of upstream provider latency",
    ["provider"]
)

ADAPTER_FALLBACKS = Counter(
    "metasearch_adapter_fallbacks_total",
    "Number of searches answered with degraded or fallback data",
    ["kind"]
)
