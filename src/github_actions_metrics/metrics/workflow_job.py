#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Metrics emitted for the workflow job lifecycle."""

import abc
from enum import Enum

from prometheus_client import Counter, Histogram

from github_actions_metrics.metrics import labels
from github_actions_metrics.metrics.labels import Labels

RUNTIME_BUCKETS = [
    0.01,
    0.05,
    0.1,
    0.5,
    1,
    2,
    3,
    4,
    5,
    6,
    7,
    8,
    9,
    10,
    12,
    15,
    18,
    20,
    25,
    30,
    40,
    50,
    60,
    70,
    80,
    90,
    100,
    110,
    120,
    150,
    180,
    210,
    240,
    300,
    360,
    420,
    480,
    540,
    600,
    900,
    1200,
    1800,
    2400,
    3000,
    3600,
    float("inf"),
]

JOBS_QUEUED_TOTAL = Counter(
    name="github_workflow_jobs_queued_total",
    documentation="Total count of workflow jobs queued (events where job_status=queued)",
    labelnames=labels.WORKFLOW_JOB_LABELS,
)
JOBS_STARTED_TOTAL = Counter(
    name="github_workflow_jobs_started_total",
    documentation="Total count of workflow jobs started (events where job_status=in_progress)",
    labelnames=labels.WORKFLOW_JOB_LABELS,
)
JOBS_COMPLETED_TOTAL = Counter(
    name="github_workflow_jobs_completed_total",
    documentation="Total count of workflow jobs completed (events where job_status=completed)",
    labelnames=labels.WORKFLOW_JOB_LABELS,
)
JOB_CONCLUSIONS_TOTAL = Counter(
    name="github_workflow_job_conclusions_total",
    documentation="Total count of workflow job conclusions",
    labelnames=[*labels.WORKFLOW_JOB_LABELS, labels.JOB_CONCLUSION],
)
JOB_FAILURES_TOTAL = Counter(
    name="github_workflow_job_failures_total",
    documentation="Total count of failed workflow jobs by failed step and exit code",
    labelnames=[*labels.WORKFLOW_JOB_LABELS, labels.FAILED_STEP, labels.EXIT_CODE],
)
JOB_QUEUE_DURATION_SECONDS = Histogram(
    name="github_workflow_job_queue_duration_seconds",
    documentation="Queue times for workflow jobs in seconds",
    labelnames=labels.WORKFLOW_JOB_LABELS,
    buckets=RUNTIME_BUCKETS,
)
JOB_RUN_DURATION_SECONDS = Histogram(
    name="github_workflow_job_run_duration_seconds",
    documentation="Run times for workflow jobs in seconds",
    labelnames=[*labels.WORKFLOW_JOB_LABELS, labels.JOB_CONCLUSION],
    buckets=RUNTIME_BUCKETS,
)
JOB_IN_PROGRESS_DURATION_SECONDS = Counter(
    name="github_workflow_job_in_progress_duration_seconds",
    documentation="In progress time for workflow jobs in seconds",
    labelnames=labels.WORKFLOW_JOB_LABELS,
)
EVENTS_DROPPED_TOTAL = Counter(
    name="github_workflow_job_events_dropped_total",
    documentation="The number of workflow job events dropped because the event queue was full.",
)


class WorkflowJobMetric(str, Enum):
    """The metric families for workflow jobs.

    Attributes:
        JOBS_QUEUED: Counter of queued jobs.
        JOBS_STARTED: Counter of started jobs.
        JOBS_COMPLETED: Counter of completed jobs.
        JOB_CONCLUSIONS: Counter of job conclusions.
        JOB_FAILURES: Counter of failed jobs.
        QUEUE_DURATION: Histogram of queue durations.
        RUN_DURATION: Histogram of run durations.
        IN_PROGRESS_DURATION: Counter accruing the time jobs are in progress.
        EVENTS_DROPPED: Counter of events dropped by a full event queue.
    """

    JOBS_QUEUED = "jobs_queued"
    JOBS_STARTED = "jobs_started"
    JOBS_COMPLETED = "jobs_completed"
    JOB_CONCLUSIONS = "job_conclusions"
    JOB_FAILURES = "job_failures"
    QUEUE_DURATION = "queue_duration"
    RUN_DURATION = "run_duration"
    IN_PROGRESS_DURATION = "in_progress_duration"
    EVENTS_DROPPED = "events_dropped"


class MetricsSink(abc.ABC):
    """Receives the metric observations of the event reader."""

    @abc.abstractmethod
    def inc(self, metric: WorkflowJobMetric, labels: Labels, amount: float = 1) -> None:
        """Increment a counter.

        Args:
            metric: The counter to increment.
            labels: The labels of the time series.
            amount: The amount to increment by.
        """

    @abc.abstractmethod
    def observe(self, metric: WorkflowJobMetric, labels: Labels, value: float) -> None:
        """Observe a value in a histogram.

        Args:
            metric: The histogram to observe the value in.
            labels: The labels of the time series.
            value: The observed value.
        """


class PrometheusMetricsSink(MetricsSink):
    """Metrics sink backed by the prometheus client default registry."""

    _counters = {
        WorkflowJobMetric.JOBS_QUEUED: JOBS_QUEUED_TOTAL,
        WorkflowJobMetric.JOBS_STARTED: JOBS_STARTED_TOTAL,
        WorkflowJobMetric.JOBS_COMPLETED: JOBS_COMPLETED_TOTAL,
        WorkflowJobMetric.JOB_CONCLUSIONS: JOB_CONCLUSIONS_TOTAL,
        WorkflowJobMetric.JOB_FAILURES: JOB_FAILURES_TOTAL,
        WorkflowJobMetric.IN_PROGRESS_DURATION: JOB_IN_PROGRESS_DURATION_SECONDS,
        WorkflowJobMetric.EVENTS_DROPPED: EVENTS_DROPPED_TOTAL,
    }
    _histograms = {
        WorkflowJobMetric.QUEUE_DURATION: JOB_QUEUE_DURATION_SECONDS,
        WorkflowJobMetric.RUN_DURATION: JOB_RUN_DURATION_SECONDS,
    }

    def inc(self, metric: WorkflowJobMetric, labels: Labels, amount: float = 1) -> None:
        """Increment a counter.

        Args:
            metric: The counter to increment.
            labels: The labels of the time series. Empty for unlabelled counters.
            amount: The amount to increment by.
        """
        counter = self._counters[metric]
        if labels:
            counter.labels(**labels).inc(amount)
        else:
            counter.inc(amount)

    def observe(self, metric: WorkflowJobMetric, labels: Labels, value: float) -> None:
        """Observe a value in a histogram.

        Args:
            metric: The histogram to observe the value in.
            labels: The labels of the time series.
            value: The observed value.
        """
        self._histograms[metric].labels(**labels).observe(value)
