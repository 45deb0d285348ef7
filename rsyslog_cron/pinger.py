"""Fire-and-forget HTTP success / failure pings."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

import requests

from rsyslog_cron.errors import PingError

logger = logging.getLogger(__name__)

DEFAULT_PING_TIMEOUT = 1.0
DEFAULT_MAX_WORKERS = 4


class Pinger:
    """Sends GET requests to monitoring URLs on a bounded thread pool.

    At most ``max_workers`` pings are in flight; further pings wait in the
    pool's queue. Failures are logged and handed to ``on_error``, never
    raised to the caller of ``dispatch``.

    Each ping is a standalone ``requests.get`` so pool threads share no
    connection state. A ``session`` may be passed to route requests through
    it instead; it must then be safe to use from several threads.
    """

    def __init__(self, timeout: float = DEFAULT_PING_TIMEOUT,
                 max_workers: int = DEFAULT_MAX_WORKERS,
                 session: requests.Session | None = None):
        self._timeout = timeout
        self._session = session
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ping")

    @property
    def timeout(self) -> float:
        return self._timeout

    def ping(self, url: str):
        """GET *url*. Raises PingError on transport errors or non-2xx status."""
        if not url:
            return
        get = self._session.get if self._session is not None else requests.get
        try:
            resp = get(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise PingError(str(e)) from e
        if not 200 <= resp.status_code <= 299:
            raise PingError(f"Expected HTTP2xx status, got HTTP{resp.status_code}")

    def dispatch(self, url: str, on_error: Callable[[str, Exception], None] | None = None) -> Future | None:
        """Ping *url* in the background. Blank URLs are skipped."""
        if not url:
            return None
        return self._pool.submit(self._ping_and_report, url, on_error)

    def _ping_and_report(self, url: str, on_error) -> bool:
        try:
            self.ping(url)
        except PingError as e:
            logger.warning("Ping to %s failed: %s", url, e)
            self._report(url, e, on_error)
            return False
        except Exception as e:
            # Nobody reads the future, so anything left in it is never seen.
            logger.exception("Ping to %s raised an unexpected error", url)
            self._report(url, e, on_error)
            return False
        logger.debug("Ping to %s succeeded", url)
        return True

    @staticmethod
    def _report(url: str, error: Exception, on_error):
        if on_error is None:
            return
        try:
            on_error(url, error)
        except Exception:
            logger.exception("Error handler for ping to %s failed", url)

    def shutdown(self, wait: bool = False):
        self._pool.shutdown(wait=wait)
        if self._session is not None:
            self._session.close()
