# membership_sync/infra/metrics/sync_metrics.py
"""
Synchronization Metrics

Prometheus metrics for the event-sourcing synchronization engine:
- Event store appends
- Projector / reactor executions and failures
- Replays
- External command jobs
"""

from prometheus_client import Counter, Histogram

# ============================================================================
# Event Store Metrics
# ============================================================================

events_appended_total = Counter(
    'membership_sync_events_appended_total',
    'Events durably appended to the event store',
    ['event_type']
)

event_append_failures_total = Counter(
    'membership_sync_event_append_failures_total',
    'Appends rejected because the store could not persist',
    ['backend']
)

# ============================================================================
# Dispatch Metrics
# ============================================================================

handler_executions_total = Counter(
    'membership_sync_handler_executions_total',
    'Projector/reactor handler executions',
    ['handler', 'kind', 'event_type']
)

handler_failures_total = Counter(
    'membership_sync_handler_failures_total',
    'Projector/reactor handler failures (isolated, not propagated)',
    ['handler', 'kind', 'event_type', 'error']
)

dispatch_duration_seconds = Histogram(
    'membership_sync_dispatch_duration_seconds',
    'Time spent dispatching one event to all handlers',
    ['mode'],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

replays_total = Counter(
    'membership_sync_replays_total',
    'Full-log replays',
    ['status']
)

replayed_events_total = Counter(
    'membership_sync_replayed_events_total',
    'Events re-applied to projectors during replay'
)

# ============================================================================
# Job Layer Metrics
# ============================================================================

jobs_enqueued_total = Counter(
    'membership_sync_jobs_enqueued_total',
    'Commands enqueued by reactors',
    ['command']
)

jobs_succeeded_total = Counter(
    'membership_sync_jobs_succeeded_total',
    'Commands executed successfully against the external system',
    ['command']
)

jobs_failed_total = Counter(
    'membership_sync_jobs_failed_total',
    'Commands that exhausted their retries (ExternalActionFailed)',
    ['command']
)

job_duration_seconds = Histogram(
    'membership_sync_job_duration_seconds',
    'Command execution time including retries',
    ['command'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0]
)
