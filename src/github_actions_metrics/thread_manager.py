# Copyright 2025 Canonical Ltd.
# See LICENSE file for licensing details.

"""Manager for the threads of the service."""

import logging
import threading
from queue import Empty, Queue
from typing import Any, Callable

logger = logging.getLogger(__name__)

# How often the waiting main thread checks for the stop event.
STOP_POLL_INTERVAL = 1.0


class ThreadManager:
    """Run a group of threads until one fails or a stop is requested."""

    def __init__(self, stop_event: threading.Event) -> None:
        """Construct the object.

        Args:
            stop_event: Set to request the threads to stop.
        """
        self.stop_event = stop_event
        self.err_queue: Queue[Exception] = Queue()
        self.threads: list[threading.Thread] = []

    def add_thread(self, target: Callable[[], None], **kwargs: Any) -> None:
        """Add a thread.

        The thread will not execute until `start` is called. An exception escaping the target is
        sent to the error queue.

        Args:
            target: The function for the thread to execute.
            kwargs: Any other keyword arguments to pass to the Thread object.
        """

        def target_with_err_queue() -> None:
            """Run the target, sending errors to the queue."""
            try:
                target()
            # All possible type of exception is caught and then handled in the main thread.
            except Exception as err:  # pylint: disable=broad-exception-caught
                logger.exception("Caught exception in thread")
                self.err_queue.put(err)

        self.threads.append(threading.Thread(target=target_with_err_queue, **kwargs))

    def start(self) -> None:
        """Start execution on all threads."""
        for thread in self.threads:
            thread.start()

    def wait(self) -> None:
        """Wait until a stop is requested or a thread fails.

        Raises:
            Exception: The unhandled exception raised in a thread.
        """
        while not self.stop_event.is_set():
            try:
                exception = self.err_queue.get(timeout=STOP_POLL_INTERVAL)
            except Empty:
                continue
            self.stop_event.set()
            raise exception
