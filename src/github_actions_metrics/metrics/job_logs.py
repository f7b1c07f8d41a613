#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Functions to fetch the log of a workflow job and extract timings and the exit code.

The webhook events do not carry queue or run timestamps, so these are taken from the
timestamped lines of the job log. Lines in an unknown format are ignored.
"""

import logging
import re
import threading
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Iterator, Optional

from requests import RequestException

from github_actions_metrics.errors import JobLogsError, PlatformClientError
from github_actions_metrics.github_client import GithubClient
from github_actions_metrics.types_.github import JobIdentity

logger = logging.getLogger(__name__)

LOG_LINE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})\.(\d{1,9})Z\s(.+)$")
EXIT_CODE_PATTERN = re.compile(r"##\[error\]Process completed with exit code (\d)\.")

ERROR_PREFIX = "##[error]"
QUEUED_PREFIX = "Waiting for a runner to pick up this job..."
STARTED_PREFIX = "Job is about to start running on the runner:"

EXIT_CODE_NOT_FOUND = "null"

# Stands in for a timestamp missing from the log.
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class ParseResult:
    """Facts extracted from a workflow job log.

    Attributes:
        exit_code: The exit code of the failing process, or "null" if none was logged.
        queue_time: Time between the job being queued and a runner picking it up.
        run_time: Time between the runner starting the job and the last log line.
    """

    exit_code: str
    queue_time: timedelta
    run_time: timedelta


def _parse_timestamp(seconds_part: str, fraction_part: str) -> datetime:
    """Parse a log timestamp split at the decimal point.

    Args:
        seconds_part: The timestamp up to the seconds, e.g. "2024-01-01T10:00:00".
        fraction_part: The digits of the fractional seconds.

    Returns:
        The timestamp in UTC, truncated to microseconds.
    """
    timestamp = datetime.strptime(seconds_part, "%Y-%m-%dT%H:%M:%S")
    microseconds = int(fraction_part[:6].ljust(6, "0"))
    return timestamp.replace(microsecond=microseconds, tzinfo=timezone.utc)


def parse_job_log(lines: Iterable[str]) -> ParseResult:
    """Extract the exit code and timings from the lines of a workflow job log.

    The last timestamped line which is neither an error nor a queued/started marker is taken as
    the completion time. Missing markers leave the corresponding timestamp at ZERO_TIME, which
    yields degenerate durations.

    Args:
        lines: The lines of the log, without line endings.

    Returns:
        The parse result.
    """
    exit_code = EXIT_CODE_NOT_FOUND
    queued_time = started_time = completed_time = ZERO_TIME

    for line in lines:
        match = LOG_LINE_PATTERN.match(line)
        if match is None:
            continue
        seconds_part, fraction_part, message = match.groups()
        try:
            timestamp = _parse_timestamp(seconds_part, fraction_part)
        except ValueError:
            logger.debug("Ignoring log line with invalid timestamp: %s", seconds_part)
            continue

        if message.startswith(ERROR_PREFIX):
            exit_code_match = EXIT_CODE_PATTERN.search(message)
            if exit_code_match is not None:
                exit_code = exit_code_match.group(1)
            continue
        if message.startswith(QUEUED_PREFIX):
            queued_time = timestamp
            continue
        if message.startswith(STARTED_PREFIX):
            started_time = timestamp
            continue
        completed_time = timestamp

    return ParseResult(
        exit_code=exit_code,
        queue_time=started_time - queued_time,
        run_time=completed_time - started_time,
    )


class JobLogFetcher:
    """Fetch workflow job logs from GitHub and parse them."""

    def __init__(self, github_client: GithubClient, stop_event: Optional[threading.Event] = None):
        """Construct the object.

        Args:
            github_client: The client to retrieve the logs with.
            stop_event: Reading a log is abandoned once this event is set.
        """
        self._github_client = github_client
        self._stop_event = stop_event

    def fetch_and_parse(self, job: JobIdentity) -> ParseResult:
        """Download the log of a job and parse it.

        The log is read line by line and never held in memory as a whole.

        Args:
            job: The job to fetch the log for.

        Raises:
            JobLogsError: If the log cannot be retrieved or read.

        Returns:
            The parse result.
        """
        try:
            url = self._github_client.get_job_logs_url(job.owner, job.repo, job.job_id)
            response = self._github_client.stream_job_logs(url)
        except PlatformClientError as exc:
            raise JobLogsError(f"Cannot retrieve the log of job {job.job_id}") from exc

        with closing(response):
            if response.encoding is None:
                response.encoding = "utf-8"
            try:
                return parse_job_log(
                    self._interruptible(response.iter_lines(decode_unicode=True), job)
                )
            except RequestException as exc:
                raise JobLogsError(f"Cannot read the log of job {job.job_id}") from exc

    def _interruptible(self, lines: Iterable[str], job: JobIdentity) -> Iterator[str]:
        """Yield the lines until the stop event is set.

        Args:
            lines: The lines to pass through.
            job: The job the lines belong to.

        Raises:
            JobLogsError: If the stop event was set while reading.

        Yields:
            The lines.
        """
        for line in lines:
            if self._stop_event is not None and self._stop_event.is_set():
                raise JobLogsError(f"Reading the log of job {job.job_id} interrupted by shutdown")
            yield line
