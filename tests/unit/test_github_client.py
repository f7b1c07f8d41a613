# Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""Test the GitHub API client."""

from unittest.mock import MagicMock

import pytest
import requests

from github_actions_metrics.errors import JobNotFoundError, PlatformApiError, TokenError
from github_actions_metrics.github_client import GithubClient


def _response(status_code: int, headers: dict | None = None) -> requests.Response:
    """Create a response.

    Args:
        status_code: The HTTP status code.
        headers: The response headers.

    Returns:
        The response.
    """
    response = requests.Response()
    response.status_code = status_code
    response.headers.update(headers or {})
    response.url = "https://api.github.com/repos/owner/repo/actions/jobs/1/logs"
    response.raw = MagicMock()
    return response


@pytest.fixture(name="github_client")
def github_client_fixture() -> GithubClient:
    """Create a GithubClient object with a mocked session."""
    github_client = GithubClient("token", api_url="https://github.example.com/api/v3/")
    github_client._session = MagicMock(spec=requests.Session)
    return github_client


def test_get_job_logs_url(github_client: GithubClient):
    """
    arrange: A session mock answering with a redirect to the log location.
    act: Get the job logs URL.
    assert: The redirect location is returned and the redirect is not followed.
    """
    location = "https://pipelines.example.com/logs/1?sig=abc"
    github_client._session.get.return_value = _response(302, {"Location": location})

    url = github_client.get_job_logs_url("owner", "repo", 1)

    assert url == location
    github_client._session.get.assert_called_once_with(
        "https://github.example.com/api/v3/repos/owner/repo/actions/jobs/1/logs",
        allow_redirects=False,
        timeout=60,
    )


def test_get_job_logs_url_no_location(github_client: GithubClient):
    """
    arrange: A session mock answering with a success but no location.
    act: Get the job logs URL.
    assert: PlatformApiError is raised.
    """
    github_client._session.get.return_value = _response(200)

    with pytest.raises(PlatformApiError):
        github_client.get_job_logs_url("owner", "repo", 1)


@pytest.mark.parametrize(
    "status_code, expected_error",
    [
        pytest.param(401, TokenError, id="invalid token"),
        pytest.param(403, TokenError, id="missing permission"),
        pytest.param(404, JobNotFoundError, id="job not found"),
        pytest.param(500, PlatformApiError, id="server error"),
    ],
)
def test_get_job_logs_url_http_errors(
    github_client: GithubClient, status_code: int, expected_error: type[Exception]
):
    """
    arrange: A session mock answering with an HTTP error.
    act: Get the job logs URL.
    assert: The matching error is raised.
    """
    github_client._session.get.return_value = _response(status_code)

    with pytest.raises(expected_error):
        github_client.get_job_logs_url("owner", "repo", 1)


def test_get_job_logs_url_connection_error(github_client: GithubClient):
    """
    arrange: A session mock failing to connect.
    act: Get the job logs URL.
    assert: PlatformApiError is raised.
    """
    github_client._session.get.side_effect = requests.ConnectionError("refused")

    with pytest.raises(PlatformApiError):
        github_client.get_job_logs_url("owner", "repo", 1)


def test_stream_job_logs(github_client: GithubClient, monkeypatch: pytest.MonkeyPatch):
    """
    arrange: Mock requests.get to return a successful response.
    act: Stream the job logs.
    assert: The log location is requested for streaming without credentials.
    """
    response = _response(200)
    get_mock = MagicMock(return_value=response)
    monkeypatch.setattr("github_actions_metrics.github_client.requests.get", get_mock)

    assert github_client.stream_job_logs("https://logs.example.com/1") is response
    get_mock.assert_called_once_with("https://logs.example.com/1", stream=True, timeout=60)


def test_stream_job_logs_expired(github_client: GithubClient, monkeypatch: pytest.MonkeyPatch):
    """
    arrange: Mock requests.get to return a forbidden response, as for an expired location.
    act: Stream the job logs.
    assert: TokenError is raised.
    """
    monkeypatch.setattr(
        "github_actions_metrics.github_client.requests.get",
        MagicMock(return_value=_response(403)),
    )

    with pytest.raises(TokenError):
        github_client.stream_job_logs("https://logs.example.com/1")
