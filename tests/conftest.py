import socket
import threading

import pytest


def _start_line_server(shutdown_event):
    """Start a TCP server collecting every byte it receives.

    Returns (host, port, received, data_event).
    """
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.settimeout(0.5)
    srv.bind(("127.0.0.1", 0))
    srv.listen(5)
    host, port = srv.getsockname()
    received = bytearray()
    data_event = threading.Event()

    def handle(conn):
        conn.settimeout(0.5)
        while not shutdown_event.is_set():
            try:
                data = conn.recv(4096)
            except socket.timeout:
                continue
            except OSError:
                break
            if not data:
                break
            received.extend(data)
            data_event.set()
        conn.close()

    def accept_loop():
        while not shutdown_event.is_set():
            try:
                conn, _ = srv.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            threading.Thread(target=handle, args=(conn,), daemon=True).start()
        srv.close()

    threading.Thread(target=accept_loop, daemon=True).start()
    return host, port, received, data_event


@pytest.fixture
def line_server():
    """A running collector: yields (host, port, received, data_event)."""
    shutdown = threading.Event()
    yield _start_line_server(shutdown)
    shutdown.set()
