"""Bounded FIFO shared by every job run and the syslog forwarder."""

import queue

from rsyslog_cron.models import Message

DEFAULT_QUEUE_SIZE = 1000


class MessageQueue:
    """Multi-producer, single-consumer message channel.

    ``enqueue`` blocks while the queue is full so a stalled forwarder slows
    down noisy jobs instead of dropping their output.
    """

    def __init__(self, maxsize: int = DEFAULT_QUEUE_SIZE):
        if maxsize <= 0:
            raise ValueError(f"queue size must be positive, got {maxsize}")
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    def enqueue(self, message: Message):
        self._queue.put(message)

    def dequeue(self) -> Message:
        """Block until a message is available and return it."""
        return self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()
