# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Module containing GitHub Configuration."""

from pydantic import BaseModel, PositiveFloat

from github_actions_metrics.github_client import DEFAULT_TIMEOUT_SECONDS, GITHUB_API_URL


class GitHubConfiguration(BaseModel):
    """GitHub configuration for the application.

    Attributes:
       token: GitHub Token, needs read access to the actions of the repositories.
       api_url: Base URL of the GitHub REST API, for GitHub Enterprise Server.
       timeout: Timeout in seconds of each request, bounding how long a log download can
           hold up the event processing.
    """

    token: str
    api_url: str = GITHUB_API_URL
    timeout: PositiveFloat = DEFAULT_TIMEOUT_SECONDS
