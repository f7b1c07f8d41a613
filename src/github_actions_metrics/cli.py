# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""The CLI entrypoint for github-actions-metrics application."""

import importlib.metadata
import logging
import signal
import sys
import threading
from functools import partial
from types import FrameType
from typing import Optional, TextIO

import click

from github_actions_metrics.configuration import ApplicationConfiguration
from github_actions_metrics.event_reader import EventReader
from github_actions_metrics.github_client import GithubClient
from github_actions_metrics.http_server import FlaskArgs, start_http_server
from github_actions_metrics.metrics.job_logs import JobLogFetcher
from github_actions_metrics.metrics.workflow_job import PrometheusMetricsSink
from github_actions_metrics.thread_manager import ThreadManager

logger = logging.getLogger(__name__)


def build_event_reader(
    config: ApplicationConfiguration, stop_event: threading.Event
) -> EventReader:
    """Build the event reader from the configuration.

    Args:
        config: The application configuration.
        stop_event: Stops the event loop and any log download once set.

    Returns:
        The event reader.
    """
    log_fetcher: Optional[JobLogFetcher] = None
    if config.github_config is not None:
        github_client = GithubClient(
            token=config.github_config.token,
            api_url=config.github_config.api_url,
            timeout=config.github_config.timeout,
        )
        log_fetcher = JobLogFetcher(github_client, stop_event=stop_event)
    else:
        logger.warning("No GitHub configuration, the metrics from the job logs are disabled")
    return EventReader(
        metrics_sink=PrometheusMetricsSink(),
        log_fetcher=log_fetcher,
        accrual_interval=config.accrual_interval,
        max_queue_size=config.event_queue_size,
        stop_event=stop_event,
    )


def _set_stop_signal_handlers(event_reader: EventReader) -> None:
    """Stop the event reader on SIGTERM and SIGINT.

    Args:
        event_reader: The event reader to stop.
    """

    def stop_handler(signal_code: int, _: FrameType | None) -> None:
        """Handle a signal.

        Args:
            signal_code: The signal code to handle.
        """
        logger.info("Signal '%s' received. Will terminate.", signal.strsignal(signal_code))
        event_reader.stop()

    signal.signal(signal.SIGTERM, stop_handler)
    signal.signal(signal.SIGINT, stop_handler)


@click.command()
@click.option(
    "--config-file",
    type=click.File(mode="r", encoding="utf-8"),
    required=True,
    help="The file path containing the configurations.",
)
@click.option(
    "--host",
    type=str,
    help="The hostname to listen on for the HTTP server.",
    default="127.0.0.1",
)
@click.option(
    "--port",
    type=int,
    help="The port to listen on for the HTTP server.",
    default=8080,
)
@click.option(
    "--debug",
    is_flag=True,
    show_default=True,
    default=False,
    help="Debug mode for testing.",
)
@click.option(
    "--log-level",
    type=click.Choice(
        [
            "CRITICAL",
            "FATAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ]
    ),
    default="INFO",
    help="The log level for the application.",
)
# The entry point for the CLI will be tested with integration test.
def main(
    config_file: TextIO,
    host: str,
    port: int,
    debug: bool,
    log_level: str,
) -> None:  # pragma: no cover
    """Start the webhook receiver and the workflow job event loop.

    Args:
        config_file: The configuration file.
        host: The hostname to listen on for the HTTP server
        port: The port to listen on the HTTP server.
        debug: Whether to start the application in debug mode.
        log_level: The log level.
    """
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    version = importlib.metadata.version("github-actions-metrics")
    logging.info("Starting GitHub actions metrics service version: %s", version)

    config = ApplicationConfiguration.from_yaml_file(config_file)
    stop_event = threading.Event()
    event_reader = build_event_reader(config, stop_event)
    _set_stop_signal_handlers(event_reader)
    http_server_args = FlaskArgs(host=host, port=port, debug=debug)

    thread_manager = ThreadManager(stop_event)
    thread_manager.add_thread(
        target=partial(start_http_server, event_reader, http_server_args), daemon=True
    )
    thread_manager.add_thread(target=event_reader.run, name="event-reader")
    thread_manager.start()

    try:
        thread_manager.wait()
    finally:
        event_reader.stop()
