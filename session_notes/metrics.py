"""Prometheus metrics for session notes.

All metric objects are defined here so they can be imported from any module.
"""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Creation metrics
# ---------------------------------------------------------------------------

NOTES_CREATED = Counter(
    "notes_created_total",
    "Total note creation attempts",
    ["status"],  # success, error
)

# ---------------------------------------------------------------------------
# Read metrics
# ---------------------------------------------------------------------------

SEARCH_REQUESTS = Counter(
    "notes_search_requests_total",
    "Total note searches",
    ["empty_query"],
)

VIEW_DURATION = Histogram(
    "notes_view_duration_seconds",
    "Time spent building a search or browse view",
    ["view"],  # search, list
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0),
)
