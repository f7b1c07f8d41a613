# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Base configuration for the Application."""

import logging
from typing import Optional, TextIO

import yaml
from pydantic import BaseModel, NonNegativeInt, PositiveFloat

from github_actions_metrics.configuration.github import GitHubConfiguration
from github_actions_metrics.event_reader import IN_PROGRESS_JOB_CHECK_INTERVAL

logger = logging.getLogger(__name__)


class ApplicationConfiguration(BaseModel):
    """Main entry point for the Application Configuration.

    Attributes:
        name: Name to identify the application.
        github_config: GitHub configuration. Without it, the metrics from the job logs are not
            emitted.
        accrual_interval: Seconds between accruals of the in progress time of running jobs.
        event_queue_size: Capacity of the event queue, 0 for unbounded.
    """

    name: str = "github-actions-metrics"
    github_config: Optional[GitHubConfiguration] = None
    accrual_interval: PositiveFloat = IN_PROGRESS_JOB_CHECK_INTERVAL
    event_queue_size: NonNegativeInt = 0

    @staticmethod
    def from_yaml_file(file: TextIO) -> "ApplicationConfiguration":
        """Initialize configuration from a YAML formatted file.

        Args:
            file: The file object to parse the configuration from.

        Returns:
            The configuration.
        """
        config = yaml.safe_load(file) or {}
        return ApplicationConfiguration.model_validate(config)
