import logging
import socket
import threading

import pytest

receive_default_size = 8000

class OneShotServer:
    """Accepts a single connection, records the request head, replies and closes."""

    def __init__(self, response: bytes):
        self.response = response
        self.received = b''
        self.connections = 0

        self.sock = socket.socket()
        self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.listen(1)
        self.sock.settimeout(5.0)
        self.port = self.sock.getsockname()[1]
        self.thread = threading.Thread(target=self.serve, daemon=True)

    def serve(self):
        try:
            conn, addr = self.sock.accept()
        except OSError:
            return
        self.connections += 1

        with conn:
            data = b''
            while b'\r\n\r\n' not in data:
                chunk = conn.recv(receive_default_size)
                if not chunk:
                    break
                data += chunk
            self.received = data
            conn.sendall(self.response)

    def start(self):
        self.thread.start()
        return self

    def close(self):
        self.sock.close()
        self.thread.join(timeout=5.0)


@pytest.fixture
def http_server():
    servers = []

    def start(response: bytes = b'HTTP/1.1 200 OK\r\nContent-Length: 5\r\n\r\nhello') -> OneShotServer:
        server = OneShotServer(response).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.close()


class FakeSession:
    """Stands in for a connected socket."""

    def __init__(self, chunks=(), recv_error=None, send_error=None):
        self.chunks = list(chunks)
        self.recv_error = recv_error
        self.send_error = send_error
        self.sent = b''
        self.closed = False

    def sendall(self, data):
        if self.send_error:
            raise self.send_error
        self.sent += data

    def recv(self, size):
        if self.chunks:
            return self.chunks.pop(0)
        if self.recv_error:
            raise self.recv_error
        return b''

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture(autouse=True)
def restore_root_logger():
    # client.main reconfigures the root logger on every call
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level

    yield

    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
