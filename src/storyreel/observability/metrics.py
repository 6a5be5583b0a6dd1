"""Prometheus metrics for Storyreel."""
from prometheus_client import Counter, Gauge, Histogram, Info


# Workflow submission metrics
workflows_submitted_total = Counter(
    'storyreel_workflows_submitted_total',
    'Total number of workflows accepted for execution',
    ['workflow_type']
)

workflows_rejected_total = Counter(
    'storyreel_workflows_rejected_total',
    'Total number of workflow submissions rejected',
    ['workflow_type', 'reason']
)

# Job outcome metrics
jobs_finished_total = Counter(
    'storyreel_jobs_finished_total',
    'Total number of jobs that reached a terminal state',
    ['workflow_type', 'status']
)

job_duration_seconds = Histogram(
    'storyreel_job_duration_seconds',
    'Job execution duration in seconds',
    ['workflow_type', 'status'],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0]
)

jobs_active = Gauge(
    'storyreel_jobs_active',
    'Number of jobs currently pending or running',
    ['workflow_type']
)

# Fan-out task metrics
tasks_created_total = Counter(
    'storyreel_tasks_created_total',
    'Total number of background tasks created'
)

tasks_finished_total = Counter(
    'storyreel_tasks_finished_total',
    'Total number of background tasks finished',
    ['status']
)

# System info
system_info = Info(
    'storyreel_system',
    'Storyreel system information'
)


def record_workflow_submitted(workflow_type: str) -> None:
    """Record accepted workflow submission."""
    workflows_submitted_total.labels(workflow_type=workflow_type).inc()


def record_workflow_rejected(workflow_type: str, reason: str) -> None:
    """Record rejected workflow submission."""
    workflows_rejected_total.labels(workflow_type=workflow_type, reason=reason).inc()


def record_job_started(workflow_type: str) -> None:
    jobs_active.labels(workflow_type=workflow_type).inc()


def record_job_finished(workflow_type: str, status: str, duration: float = None) -> None:
    """
    Record a job reaching a terminal state.

    Args:
        workflow_type: Backend family of the job
        status: Terminal status value
        duration: Seconds between start and end, when the job ever started
    """
    jobs_active.labels(workflow_type=workflow_type).dec()
    jobs_finished_total.labels(workflow_type=workflow_type, status=status).inc()
    if duration is not None:
        job_duration_seconds.labels(workflow_type=workflow_type, status=status).observe(duration)


def record_task_created() -> None:
    tasks_created_total.inc()


def record_task_finished(status: str) -> None:
    tasks_finished_total.labels(status=status).inc()


def init_system_info(version: str) -> None:
    """
    Initialize system information metric.

    Args:
        version: Application version
    """
    system_info.info({
        'version': version,
        'name': 'Storyreel'
    })
