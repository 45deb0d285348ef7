"""Syslog forwarder: drains the message queue into the TCP connection."""

import logging
import threading
from enum import Enum
from typing import Callable

from rsyslog_cron.backoff import ExponentialBackoff
from rsyslog_cron.errors import FormatError
from rsyslog_cron.formatter import MessageFormatter
from rsyslog_cron.message_queue import MessageQueue
from rsyslog_cron.tcp_client import SyslogConnection

logger = logging.getLogger(__name__)


class ForwarderState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    STREAMING = "streaming"


class SyslogForwarder:
    """Sole consumer of the message queue.

    DISCONNECTED -> CONNECTING -> STREAMING, and back to DISCONNECTED on any
    dial, format or write error, sleeping a capped exponential backoff delay
    before every new dial. Runs until ``shutdown_event`` is set; in
    production nothing sets it and the process is simply killed.

    Delivery is at-most-once: a message that was dequeued but could not be
    written is counted in ``dropped`` and not retried.
    """

    def __init__(
        self,
        connection: SyslogConnection,
        message_queue: MessageQueue,
        formatter: MessageFormatter,
        shutdown_event: threading.Event | None = None,
        backoff: ExponentialBackoff | None = None,
        sleep: Callable[[float], object] | None = None,
    ):
        self._connection = connection
        self._queue = message_queue
        self._formatter = formatter
        self._shutdown = shutdown_event or threading.Event()
        self._backoff = backoff or ExponentialBackoff()
        self._sleep = sleep or self._shutdown.wait
        self._state = ForwarderState.DISCONNECTED
        self._sent = 0
        self._dropped = 0
        self._lock = threading.Lock()

    @property
    def state(self) -> ForwarderState:
        return self._state

    @property
    def sent(self) -> int:
        with self._lock:
            return self._sent

    @property
    def dropped(self) -> int:
        with self._lock:
            return self._dropped

    def run(self):
        """Connect, stream, back off and reconnect until shutdown."""
        while not self._shutdown.is_set():
            self._state = ForwarderState.CONNECTING
            if self._connection.connect():
                self._state = ForwarderState.STREAMING
                self._stream()

            self._connection.close()
            self._state = ForwarderState.DISCONNECTED
            if self._shutdown.is_set():
                break

            delay = self._backoff.next_delay()
            logger.info("syslog: Reconnecting in %.2fs", delay)
            self._sleep(delay)

    def _stream(self):
        """Forward messages until a format or write error occurs."""
        while not self._shutdown.is_set():
            message = self._queue.dequeue()

            try:
                line = self._formatter.format(message)
            except FormatError as e:
                # Goes to local output only, the syslog stream is what failed.
                logger.error(
                    "syslog: Dropping message from job %r, template cannot be rendered: %s",
                    message.job_name, e,
                )
                self._record_dropped()
                return

            if not self._connection.send(line.encode("utf-8")):
                logger.warning("syslog: Lost in-flight message from job %r", message.job_name)
                self._record_dropped()
                return

            with self._lock:
                self._sent += 1
            self._backoff.reset()

    def _record_dropped(self):
        with self._lock:
            self._dropped += 1
