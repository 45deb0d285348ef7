"""Byte sink that turns a process output stream into one message per line."""

from datetime import datetime
from typing import Callable

from rsyslog_cron.message_queue import MessageQueue
from rsyslog_cron.models import Message, SEVERITY_INFO


class LineWriter:
    """Accumulates bytes and enqueues a Message for every completed line.

    Bytes after the last newline stay buffered until the next write (or
    ``flush``). Not thread-safe: each output stream gets its own instance.
    """

    def __init__(
        self,
        job_name: str,
        message_queue: MessageQueue,
        severity: int = SEVERITY_INFO,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._job_name = job_name
        self._queue = message_queue
        self._severity = severity
        self._clock = clock
        self._buffer = bytearray()

    @property
    def buffered(self) -> bytes:
        return bytes(self._buffer)

    @property
    def severity(self) -> int:
        return self._severity

    def write(self, data: bytes | str) -> int:
        """Buffer *data* and emit every complete line. Returns len(data)."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._buffer += data

        if b"\n" in self._buffer:
            *lines, rest = bytes(self._buffer).split(b"\n")
            for line in lines:
                self._emit(line)
            self._buffer = bytearray(rest)

        return len(data)

    def flush(self):
        """Emit the trailing fragment, if any, as a final message."""
        if self._buffer:
            self._emit(bytes(self._buffer))
            self._buffer = bytearray()

    def _emit(self, line: bytes):
        self._queue.enqueue(Message(
            timestamp=self._clock(),
            job_name=self._job_name,
            text=line.decode("utf-8", errors="replace"),
            severity=self._severity,
        ))
