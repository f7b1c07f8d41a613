# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Processing of workflow job events into metrics.

Events are put on a queue and processed one by one by a single loop, in the order GitHub
emitted them. The same loop periodically accrues the in progress time of running jobs.
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from github_actions_metrics.errors import JobLogsError
from github_actions_metrics.metrics import labels as metric_labels
from github_actions_metrics.metrics.job_logs import JobLogFetcher, ParseResult
from github_actions_metrics.metrics.labels import Labels, build_labels, extra_label
from github_actions_metrics.metrics.workflow_job import MetricsSink, WorkflowJobMetric
from github_actions_metrics.types_.github import (
    JobConclusion,
    WorkflowJobAction,
    WorkflowJobEvent,
)

logger = logging.getLogger(__name__)

IN_PROGRESS_JOB_CHECK_INTERVAL = 5.0

FAILED_STEP_NOT_FOUND = "null"
EXIT_CODE_NOT_AVAILABLE = "na"

# Put on the queue to wake up the loop on shutdown.
_STOP = object()


@dataclass
class InProgressJob:
    """A job between its in_progress and completed events.

    Attributes:
        start_time: The time the in_progress event was processed, in monotonic clock seconds.
        labels: The labels of the job.
    """

    start_time: float
    labels: Labels


class InProgressRegistry:
    """The jobs currently in progress, by job id.

    All access goes through a lock, as the registry is also read outside of the event loop.
    Labels are copied on the way in and out.
    """

    def __init__(self) -> None:
        """Construct the object."""
        self._jobs: dict[int, InProgressJob] = {}
        self._lock = threading.Lock()

    def add(self, job_id: int, start_time: float, labels: Labels) -> None:
        """Register a job as in progress, replacing a stale entry for the same job.

        Args:
            job_id: The id of the job.
            start_time: The time the job started.
            labels: The labels of the job.
        """
        with self._lock:
            self._jobs[job_id] = InProgressJob(start_time=start_time, labels=dict(labels))

    def remove(self, job_id: int) -> bool:
        """Remove a job.

        Args:
            job_id: The id of the job.

        Returns:
            Whether the job was registered.
        """
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def get(self, job_id: int) -> Optional[InProgressJob]:
        """Get a copy of the entry of a job.

        Args:
            job_id: The id of the job.

        Returns:
            The entry, or None if the job is not in progress.
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            return InProgressJob(start_time=job.start_time, labels=dict(job.labels))

    def snapshot(self) -> dict[int, InProgressJob]:
        """Get a copy of all entries.

        Returns:
            The entries by job id.
        """
        with self._lock:
            return {
                job_id: InProgressJob(start_time=job.start_time, labels=dict(job.labels))
                for job_id, job in self._jobs.items()
            }

    def for_each(self, func: Callable[[int, InProgressJob], None]) -> None:
        """Call a function on every entry while holding the lock.

        Args:
            func: Called with the job id and the entry.
        """
        with self._lock:
            for job_id, job in self._jobs.items():
                func(job_id, job)

    def __contains__(self, job_id: object) -> bool:
        """Check if a job is in progress.

        Args:
            job_id: The id of the job.

        Returns:
            Whether the job is registered.
        """
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        """Get the number of jobs in progress.

        Returns:
            The number of jobs.
        """
        with self._lock:
            return len(self._jobs)


class EventReader:
    """Turn workflow job events into metrics.

    Attributes:
        registry: The jobs in progress.
        accrual_interval: Seconds between accruals of the in progress time.
    """

    def __init__(  # pylint: disable=too-many-arguments, too-many-positional-arguments
        self,
        metrics_sink: MetricsSink,
        log_fetcher: Optional[JobLogFetcher] = None,
        accrual_interval: float = IN_PROGRESS_JOB_CHECK_INTERVAL,
        max_queue_size: int = 0,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
    ):
        """Construct the object.

        Args:
            metrics_sink: Receives the metric observations.
            log_fetcher: Fetches the job logs. Without it, the metrics relying on the job log
                are not emitted.
            accrual_interval: Seconds between accruals of the in progress time.
            max_queue_size: Capacity of the event queue, 0 for unbounded.
            clock: Monotonic clock in seconds.
            stop_event: Stops the loop once set. Share it with the log fetcher so a log being
                read is abandoned on shutdown.
        """
        self.registry = InProgressRegistry()
        self.accrual_interval = accrual_interval
        self._metrics_sink = metrics_sink
        self._log_fetcher = log_fetcher
        self._clock = clock
        self._events: queue.Queue[Any] = queue.Queue(maxsize=max_queue_size)
        self._stop_event = stop_event if stop_event is not None else threading.Event()

    @property
    def stop_event(self) -> threading.Event:
        """The event signalling the loop to stop.

        Returns:
            The stop event.
        """
        return self._stop_event

    def submit(self, event: Any) -> bool:
        """Put an event on the queue for processing.

        Forcing the events through a queue ensures they are processed sequentially. Safe to call
        from any thread, never blocks.

        Args:
            event: The event to process.

        Returns:
            Whether the event was queued. False if the queue is full and the event was dropped.
        """
        try:
            self._events.put_nowait(event)
        except queue.Full:
            logger.warning("Event queue full, dropping event: %s", _describe(event))
            self._metrics_sink.inc(WorkflowJobMetric.EVENTS_DROPPED, {})
            return False
        return True

    def run(self) -> None:
        """Process the queued events and accrue the in progress time until stopped."""
        logger.info("Starting the workflow job event loop")
        next_accrual = self._clock() + self.accrual_interval
        while not self._stop_event.is_set():
            timeout = max(0.0, next_accrual - self._clock())
            try:
                event = self._events.get(timeout=timeout)
            except queue.Empty:
                event = None
            if event is _STOP:
                break
            if event is not None:
                self._dispatch_safely(event)
            if self._clock() >= next_accrual:
                self._accrue_safely()
                next_accrual = self._clock() + self.accrual_interval
        logger.info("Workflow job event loop stopped")

    def stop(self) -> None:
        """Signal the loop to stop, also abandoning any log being read."""
        self._stop_event.set()
        try:
            self._events.put_nowait(_STOP)
        except queue.Full:
            # The loop checks the stop event on its next wake up.
            pass

    def _dispatch_safely(self, event: Any) -> None:
        """Dispatch an event, logging any unexpected error.

        Args:
            event: The event to process.
        """
        try:
            self.dispatch(event)
        # The loop must survive any event.
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error processing event: %s", _describe(event))

    def _accrue_safely(self) -> None:
        """Accrue the in progress time, logging any unexpected error."""
        try:
            self.accrue()
        # The loop must survive any accrual error.
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error accruing in progress time")

    def accrue(self) -> None:
        """Increment the in progress time of every job in progress.

        Each job accrues one interval, or the time since it started if that is shorter.
        """
        now = self._clock()

        def _accrue_job(_: int, job: InProgressJob) -> None:
            duration = self.accrual_interval
            if job.start_time + self.accrual_interval > now:
                duration = now - job.start_time
            self._metrics_sink.inc(
                WorkflowJobMetric.IN_PROGRESS_DURATION, job.labels, max(duration, 0.0)
            )

        self.registry.for_each(_accrue_job)

    def in_progress_jobs(self) -> list[dict[str, Any]]:
        """Describe the jobs in progress.

        Returns:
            The job id, labels and seconds since start of each job, ordered by job id.
        """
        now = self._clock()
        return [
            {"job_id": job_id, "labels": job.labels, "running_seconds": now - job.start_time}
            for job_id, job in sorted(self.registry.snapshot().items())
        ]

    def dispatch(self, event: Any) -> None:
        """Process a single event.

        Events should be processed in the same order that GitHub emits them.

        Args:
            event: The event to process. Anything but a workflow job event is ignored.
        """
        if not isinstance(event, WorkflowJobEvent):
            logger.debug("Ignoring event of type %s", type(event).__name__)
            return

        labels, log_fields = build_labels(event)
        context = metric_labels.format_log_fields(log_fields)

        if event.action == WorkflowJobAction.QUEUED:
            self._metrics_sink.inc(WorkflowJobMetric.JOBS_QUEUED, labels)
        elif event.action == WorkflowJobAction.IN_PROGRESS:
            self._process_in_progress(event, labels, context)
        elif event.action == WorkflowJobAction.COMPLETED:
            self._process_completed(event, labels, context)
        else:
            logger.debug("Ignoring workflow job action %s, %s", event.action, context)

    def _process_in_progress(
        self,
        event: WorkflowJobEvent,
        labels: Labels,
        context: str,
    ) -> None:
        """Process the in_progress event of a job.

        Args:
            event: The event.
            labels: The labels of the job.
            context: The job context rendered for log messages.
        """
        self._metrics_sink.inc(WorkflowJobMetric.JOBS_STARTED, labels)
        self.registry.add(event.workflow_job.id, self._clock(), labels)

        if self._log_fetcher is None:
            return

        parse_result = self._fetch_job_log(event, context)
        if parse_result is None:
            return
        logger.info("Read workflow job log, %s", context)
        self._metrics_sink.observe(
            WorkflowJobMetric.QUEUE_DURATION, labels, parse_result.queue_time.total_seconds()
        )

    def _process_completed(
        self,
        event: WorkflowJobEvent,
        labels: Labels,
        context: str,
    ) -> None:
        """Process the completed event of a job.

        Args:
            event: The event.
            labels: The labels of the job.
            context: The job context rendered for log messages.
        """
        job = event.workflow_job
        self._metrics_sink.inc(WorkflowJobMetric.JOBS_COMPLETED, labels)
        self.registry.remove(job.id)

        conclusion = job.conclusion
        if conclusion is None:
            logger.warning("Completed workflow job without conclusion, %s", context)
            return
        self._metrics_sink.inc(
            WorkflowJobMetric.JOB_CONCLUSIONS,
            extra_label(labels, metric_labels.JOB_CONCLUSION, conclusion),
        )

        exit_code = EXIT_CODE_NOT_AVAILABLE
        run_time_seconds: Optional[float] = None
        # Without GitHub credentials the metrics from the job log are skipped, the others are
        # still emitted.
        if self._log_fetcher is not None:
            parse_result = self._fetch_job_log(event, context)
            if parse_result is None:
                return
            exit_code = parse_result.exit_code
            run_time_seconds = parse_result.run_time.total_seconds()
            logger.info("Read workflow job log, %s exit_code=%r", context, exit_code)

        if conclusion == JobConclusion.FAILURE:
            failed_step = FAILED_STEP_NOT_FOUND
            for index, step in enumerate(job.steps):
                if step.conclusion == JobConclusion.FAILURE:
                    failed_step = str(index)
                    break
                if step.conclusion == JobConclusion.TIMED_OUT:
                    failed_step = str(index)
                    exit_code = JobConclusion.TIMED_OUT.value
                    break
            failure_labels = extra_label(labels, metric_labels.EXIT_CODE, exit_code)
            failure_labels = extra_label(failure_labels, metric_labels.FAILED_STEP, failed_step)
            self._metrics_sink.inc(WorkflowJobMetric.JOB_FAILURES, failure_labels)

        if run_time_seconds is not None:
            self._metrics_sink.observe(
                WorkflowJobMetric.RUN_DURATION,
                extra_label(labels, metric_labels.JOB_CONCLUSION, conclusion),
                run_time_seconds,
            )

    def _fetch_job_log(
        self, event: WorkflowJobEvent, context: str
    ) -> Optional[ParseResult]:
        """Fetch and parse the log of a job, logging failures.

        Args:
            event: The event of the job.
            context: The job context rendered for log messages.

        Returns:
            The parse result, or None if the log could not be read.
        """
        # Only called when a log fetcher is configured.
        assert self._log_fetcher is not None  # nosec B101
        job_identity = event.job_identity
        if job_identity is None:
            logger.warning("Cannot fetch workflow job log without repository, %s", context)
            return None
        try:
            return self._log_fetcher.fetch_and_parse(job_identity)
        except JobLogsError:
            logger.exception("Failed to read workflow job log, %s", context)
            return None


def _describe(event: Any) -> str:
    """Describe an event for logging.

    Args:
        event: The event.

    Returns:
        A short description.
    """
    if isinstance(event, WorkflowJobEvent):
        return f"{event.action} job_id={event.workflow_job.id}"
    return type(event).__name__
