# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing the application configuration."""

from github_actions_metrics.configuration.base import ApplicationConfiguration  # noqa: F401
from github_actions_metrics.configuration.github import GitHubConfiguration  # noqa: F401
