#  Copyright 2025 Canonical Ltd.
#  See LICENSE file for licensing details.

"""The HTTP server for github-actions-metrics.

Receives the workflow job webhooks and serves the metrics.
"""

import json
from dataclasses import dataclass

from flask import Flask, request
from prometheus_client import generate_latest
from pydantic import ValidationError

from github_actions_metrics.event_reader import EventReader
from github_actions_metrics.types_.github import WorkflowJobEvent

EVENT_READER_NAME = "event_reader"
GITHUB_EVENT_HEADER = "X-GitHub-Event"
WORKFLOW_JOB_EVENT = "workflow_job"
PING_EVENT = "ping"

app = Flask(__name__)


@app.route("/health", methods=["GET"])
def get_health() -> tuple[str, int]:
    """Get the health of the HTTP server.

    Returns:
        A empty response.
    """
    return ("", 204)


@app.route("/metrics", methods=["GET"])
def metrics() -> bytes:
    """Return prometheus metrics from default registry.

    Returns:
        The latest metrics from the default Prometheus registry.
    """
    return generate_latest()


@app.route("/jobs/in-progress", methods=["GET"])
def get_in_progress_jobs() -> tuple[str, int]:
    """List the workflow jobs in progress.

    Returns:
        The jobs in JSON format.
    """
    event_reader: EventReader = app.config[EVENT_READER_NAME]
    return (json.dumps(event_reader.in_progress_jobs()), 200)


@app.route("/webhook", methods=["POST"])
def receive_webhook() -> tuple[str, int]:
    """Receive a GitHub webhook delivery.

    Only workflow_job events are processed, other events are acknowledged and ignored.

    Returns:
        An empty response, or the reason the delivery was rejected.
    """
    github_event = request.headers.get(GITHUB_EVENT_HEADER, "")
    if github_event == PING_EVENT:
        return ("", 200)
    if github_event != WORKFLOW_JOB_EVENT:
        app.logger.debug("Ignoring webhook event: %s", github_event)
        return ("", 204)

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return ("Invalid JSON payload", 400)
    try:
        event = WorkflowJobEvent.build_from_github(payload)
    except ValidationError as err:
        app.logger.warning("Invalid workflow_job payload: %s", err)
        return ("Invalid workflow_job payload", 400)

    event_reader: EventReader = app.config[EVENT_READER_NAME]
    if not event_reader.submit(event):
        return ("Event queue full", 503)
    return ("", 202)


@dataclass
class FlaskArgs:
    """Arguments for Flask HTTP server.

    Attributes:
        host: The hostname to listen on for the HTTP server.
        port: The port to listen on for the HTTP server.
        debug: Start the flask HTTP server in debug mode.
    """

    host: str
    port: int
    debug: bool


def start_http_server(event_reader: EventReader, flask_args: FlaskArgs) -> None:
    """Start the HTTP server for receiving webhooks and serving metrics.

    Args:
        event_reader: The event reader to submit the workflow job events to.
        flask_args: The arguments for the flask HTTP server.
    """
    app.logger.info("Starting the server...")
    app.config[EVENT_READER_NAME] = event_reader
    app.run(
        host=flask_args.host,
        port=flask_args.port,
        debug=flask_args.debug,
        use_reloader=False,
    )
