# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Errors used by the application."""


class PlatformClientError(Exception):
    """Base class for all github client errors."""


class PlatformApiError(PlatformClientError):
    """Represents an error when the GitHub API returns an error."""


class TokenError(PlatformClientError):
    """Represents an error when the token is invalid or has not enough permissions."""


class JobNotFoundError(PlatformClientError):
    """Represents an error when the job could not be found on the platform."""


class JobLogsError(Exception):
    """Represents an error when the log of a workflow job cannot be fetched or read."""
