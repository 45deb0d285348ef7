"""Plain TCP connection to the remote syslog collector."""

import logging
import socket

logger = logging.getLogger(__name__)

TCP_DIAL_TIMEOUT = 5.0
READ_WRITE_TIMEOUT = 1.0


class SyslogConnection:
    """Single outbound TCP stream. Errors are logged and reported as False."""

    def __init__(self, host: str, port: int,
                 dial_timeout: float = TCP_DIAL_TIMEOUT,
                 write_timeout: float = READ_WRITE_TIMEOUT):
        self._host = host
        self._port = port
        self._dial_timeout = dial_timeout
        self._write_timeout = write_timeout
        self._sock: socket.socket | None = None

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> bool:
        """Dial the collector. Returns True on success."""
        self.close()
        try:
            self._sock = socket.create_connection(
                (self._host, self._port), timeout=self._dial_timeout,
            )
        except OSError as e:
            logger.warning("syslog: Unable to dial %s: %s", self.address, e)
            return False
        logger.info("syslog: Connected to %s", self.address)
        return True

    def send(self, data: bytes) -> bool:
        """Write *data* within the write timeout. Closes the socket on failure."""
        if not self._sock:
            return False
        try:
            self._sock.settimeout(self._write_timeout)
            self._sock.sendall(data)
            return True
        except OSError as e:
            logger.warning("syslog: Write to %s failed: %s", self.address, e)
            self.close()
            return False

    def close(self):
        if self._sock:
            try:
                self._sock.close()
            except OSError:
                pass
            self._sock = None
