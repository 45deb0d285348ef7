"""Tests for the syslog TCP connection."""

import socket

from rsyslog_cron.tcp_client import SyslogConnection


def _unused_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


class TestSyslogConnectionConnect:
    def test_connect_success(self, line_server):
        host, port, _, _ = line_server
        conn = SyslogConnection(host, port)
        assert conn.connect() is True
        assert conn.connected is True
        conn.close()
        assert conn.connected is False

    def test_connect_failure(self):
        conn = SyslogConnection("127.0.0.1", _unused_port(), dial_timeout=1.0)
        assert conn.connect() is False
        assert conn.connected is False

    def test_reconnect_replaces_socket(self, line_server):
        host, port, _, _ = line_server
        conn = SyslogConnection(host, port)
        assert conn.connect() is True
        first = conn._sock
        assert conn.connect() is True
        assert conn._sock is not first
        conn.close()

    def test_address(self):
        assert SyslogConnection("logs.example.com", 514).address == "logs.example.com:514"


class TestSyslogConnectionSend:
    def test_send(self, line_server):
        host, port, received, data_event = line_server
        conn = SyslogConnection(host, port)
        conn.connect()
        assert conn.send(b"<134>Jan 02 03:04:05 h job: hi\n") is True
        assert data_event.wait(timeout=2)
        assert bytes(received) == b"<134>Jan 02 03:04:05 h job: hi\n"
        conn.close()

    def test_send_without_connection(self):
        conn = SyslogConnection("127.0.0.1", 1)
        assert conn.send(b"data") is False

    def test_send_error_closes_connection(self):
        class BrokenSocket:
            def settimeout(self, value):
                pass

            def sendall(self, data):
                raise BrokenPipeError("broken pipe")

            def close(self):
                pass

        conn = SyslogConnection("127.0.0.1", 1)
        conn._sock = BrokenSocket()
        assert conn.send(b"data") is False
        assert conn.connected is False

    def test_send_timeout_closes_connection(self):
        class SlowSocket:
            timeout = None

            def settimeout(self, value):
                SlowSocket.timeout = value

            def sendall(self, data):
                raise socket.timeout("timed out")

            def close(self):
                pass

        conn = SyslogConnection("127.0.0.1", 1, write_timeout=1.0)
        conn._sock = SlowSocket()
        assert conn.send(b"data") is False
        assert SlowSocket.timeout == 1.0
        assert conn.connected is False
