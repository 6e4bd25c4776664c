"""Prometheus metrics for monitoring projections, warnings and cash-flow recommendations"""

from prometheus_client import Counter, Histogram

from envelope_planner.domain.models import ProjectionResult

# Projection metrics
projection_counter = Counter(
    "envelope_projection_total",
    "Total projections computed",
    ["outcome"],  # ok | invalid | error
)

projection_warning_counter = Counter(
    "envelope_projection_warnings_total",
    "Skipped references reported by projections",
    ["kind"],  # orphaned_scheduled_payment | missing_account | iteration_cap
)

projection_events_histogram = Histogram(
    "envelope_projection_events",
    "Timeline length per projection",
    buckets=[10, 50, 100, 250, 500, 1000, 5000],
)

# Allocation metrics
recommendation_counter = Counter(
    "envelope_allocation_recommendation_total",
    "Cash-flow recommendations by phase",
    ["phase"],  # funded | overdue | steady_state | catch_up | multi_goal
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_projection(result: ProjectionResult) -> None:
    """Record projection size and any skipped references"""
    projection_counter.labels(outcome="ok").inc()
    projection_events_histogram.observe(len(result.timeline))

    for warning in result.warnings:
        projection_warning_counter.labels(kind=warning.kind.value).inc()


def record_projection_failure(outcome: str) -> None:
    projection_counter.labels(outcome=outcome).inc()


def record_recommendation(phase: str) -> None:
    recommendation_counter.labels(phase=phase).inc()
