# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""GitHub API client for retrieving workflow job logs."""
import functools
import logging
from typing import Callable, ParamSpec, TypeVar

import requests
from requests import RequestException

from github_actions_metrics.errors import JobNotFoundError, PlatformApiError, TokenError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT_SECONDS = 60

# Parameters of the function decorated with catch_http_errors
ParamT = ParamSpec("ParamT")
# Return type of the function decorated with catch_http_errors
ReturnT = TypeVar("ReturnT")


def catch_http_errors(func: Callable[ParamT, ReturnT]) -> Callable[ParamT, ReturnT]:
    """Catch HTTP errors and raise custom exceptions.

    Args:
        func: The target function to catch common errors for.

    Returns:
        The decorated function.
    """

    @functools.wraps(func)
    def wrapper(*args: ParamT.args, **kwargs: ParamT.kwargs) -> ReturnT:
        """Catch common errors when using the GitHub API.

        Args:
            args: Placeholder for positional arguments.
            kwargs: Placeholder for keyword arguments.

        Raises:
            TokenError: If there was an error with the provided token.
            JobNotFoundError: If the requested job does not exist.
            PlatformApiError: If there was an unexpected error using the GitHub API.

        Returns:
            The decorated function.
        """
        try:
            return func(*args, **kwargs)
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code in (401, 403):
                if status_code == 401:
                    msg = "Invalid token."
                else:
                    msg = "Provided token has not enough permissions or has reached rate-limit."
                raise TokenError(msg) from exc
            if status_code == 404:
                raise JobNotFoundError(str(exc)) from exc
            raise PlatformApiError from exc
        except RequestException as exc:
            raise PlatformApiError from exc

    return wrapper


class GithubClient:
    """GitHub API client."""

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Instantiate the GitHub API client.

        Args:
            token: GitHub personal token for API requests.
            api_url: Base URL of the GitHub REST API.
            timeout: Timeout in seconds for each request.
        """
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self._token}",
                "X-GitHub-Api-Version": GITHUB_API_VERSION,
            }
        )

    @catch_http_errors
    def get_job_logs_url(self, owner: str, repo: str, job_id: int) -> str:
        """Get the short-lived download URL of the log of a workflow job.

        The GitHub API answers with a redirect to the log location, the redirect is not followed.

        Args:
            owner: Owner of the repository.
            repo: Name of the repository.
            job_id: The id of the workflow job.

        Raises:
            PlatformApiError: If the API did not answer with a log location.

        Returns:
            The URL to download the log from.
        """
        url = f"{self._api_url}/repos/{owner}/{repo}/actions/jobs/{job_id}/logs"
        response = self._session.get(url, allow_redirects=False, timeout=self._timeout)
        response.raise_for_status()
        location = response.headers.get("Location")
        if not location:
            raise PlatformApiError(
                f"No log location for job {job_id} in {owner}/{repo}, "
                f"status code {response.status_code}"
            )
        return location

    @catch_http_errors
    def stream_job_logs(self, url: str) -> requests.Response:
        """Open the log of a workflow job for streaming.

        The log location is pre-authenticated, so no credentials are sent along.

        Args:
            url: The URL returned by get_job_logs_url.

        Returns:
            The response with the body not yet consumed. The caller must close it.
        """
        response = requests.get(url, stream=True, timeout=self._timeout)
        try:
            response.raise_for_status()
        except requests.HTTPError:
            response.close()
            raise
        return response
