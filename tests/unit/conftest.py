#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Unit test setups and configurations."""

from unittest.mock import MagicMock

import pytest

from github_actions_metrics.metrics.job_logs import JobLogFetcher
from tests.unit.fakes import FakeClock, RecordingMetricsSink


@pytest.fixture(name="metrics_sink")
def metrics_sink_fixture() -> RecordingMetricsSink:
    return RecordingMetricsSink()


@pytest.fixture(name="clock")
def clock_fixture() -> FakeClock:
    return FakeClock()


@pytest.fixture(name="log_fetcher")
def log_fetcher_fixture() -> MagicMock:
    return MagicMock(spec=JobLogFetcher)
