#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Test the Prometheus metrics sink."""

import secrets

from prometheus_client import REGISTRY

from github_actions_metrics.metrics import labels
from github_actions_metrics.metrics.workflow_job import PrometheusMetricsSink, WorkflowJobMetric


def _job_labels() -> dict[str, str]:
    """Create a label set unique to the test.

    Returns:
        The labels.
    """
    job_labels = {name: "" for name in labels.WORKFLOW_JOB_LABELS}
    job_labels[labels.JOB_NAME] = f"job-{secrets.token_hex(8)}"
    return job_labels


def test_inc_counter():
    """
    arrange: Create a Prometheus metrics sink.
    act: Increment the queued jobs counter twice.
    assert: The counter sample is 2.
    """
    sink = PrometheusMetricsSink()
    job_labels = _job_labels()

    sink.inc(WorkflowJobMetric.JOBS_QUEUED, job_labels)
    sink.inc(WorkflowJobMetric.JOBS_QUEUED, job_labels)

    assert REGISTRY.get_sample_value("github_workflow_jobs_queued_total", job_labels) == 2


def test_inc_counter_with_extra_labels():
    """
    arrange: Create a Prometheus metrics sink.
    act: Increment the failures counter with the failed step and exit code.
    assert: The counter sample with the extra labels is 1.
    """
    sink = PrometheusMetricsSink()
    job_labels = _job_labels()
    job_labels[labels.FAILED_STEP] = "1"
    job_labels[labels.EXIT_CODE] = "timed_out"

    sink.inc(WorkflowJobMetric.JOB_FAILURES, job_labels)

    assert REGISTRY.get_sample_value("github_workflow_job_failures_total", job_labels) == 1


def test_inc_in_progress_duration():
    """
    arrange: Create a Prometheus metrics sink.
    act: Accrue in progress time twice.
    assert: The counter holds the sum.
    """
    sink = PrometheusMetricsSink()
    job_labels = _job_labels()

    sink.inc(WorkflowJobMetric.IN_PROGRESS_DURATION, job_labels, 2.5)
    sink.inc(WorkflowJobMetric.IN_PROGRESS_DURATION, job_labels, 5)

    assert (
        REGISTRY.get_sample_value(
            "github_workflow_job_in_progress_duration_seconds_total", job_labels
        )
        == 7.5
    )


def test_inc_events_dropped():
    """
    arrange: Create a Prometheus metrics sink.
    act: Increment the unlabelled dropped events counter.
    assert: The counter increased by one.
    """
    sink = PrometheusMetricsSink()
    before = REGISTRY.get_sample_value("github_workflow_job_events_dropped_total") or 0

    sink.inc(WorkflowJobMetric.EVENTS_DROPPED, {})

    assert REGISTRY.get_sample_value("github_workflow_job_events_dropped_total") == before + 1


def test_observe_histogram():
    """
    arrange: Create a Prometheus metrics sink.
    act: Observe a run duration.
    assert: The histogram count and sum reflect the observation.
    """
    sink = PrometheusMetricsSink()
    job_labels = _job_labels()
    job_labels[labels.JOB_CONCLUSION] = "success"

    sink.observe(WorkflowJobMetric.RUN_DURATION, job_labels, 42.0)

    assert (
        REGISTRY.get_sample_value("github_workflow_job_run_duration_seconds_count", job_labels)
        == 1
    )
    assert (
        REGISTRY.get_sample_value("github_workflow_job_run_duration_seconds_sum", job_labels)
        == 42.0
    )
