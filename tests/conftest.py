"""
Shared fixtures: an in-process stub VNC server speaking just enough RFB
to answer one authentication handshake per connection.
"""

import os
import socketserver
import struct
import threading

import pytest

from vncbrute.services.key_derivation import encrypt_challenge
from vncbrute.utils.logger import Logger


class StubVncServer(socketserver.ThreadingTCPServer):
    """
    RFB 3.8 handshake up to SecurityResult.

    Attributes:
        password: Accepted password, or None to reject everything
        security_types: Types offered to the client
        forced_status: If set, sent instead of checking the response
        close_after_version: Hang up right after the banner exchange
    """
    allow_reuse_address = True
    request_queue_size = 128
    daemon_threads = True

    def __init__(self, password=None, security_types=(2,), forced_status=None,
                 close_after_version=False):
        self.password = password
        self.security_types = bytes(security_types)
        self.forced_status = forced_status
        self.close_after_version = close_after_version
        self.connections = 0
        self.responses = []
        self._lock = threading.Lock()
        super().__init__(("127.0.0.1", 0), StubVncHandler)

    @property
    def port(self):
        return self.server_address[1]


class StubVncHandler(socketserver.BaseRequestHandler):

    def _read(self, size):
        data = b""
        while len(data) < size:
            chunk = self.request.recv(size - len(data))
            if not chunk:
                raise ConnectionError("client went away")
            data += chunk
        return data

    def handle(self):
        server = self.server
        with server._lock:
            server.connections += 1
        try:
            self.request.sendall(b"RFB 003.008\n")
            self._read(12)
            if server.close_after_version:
                return

            self.request.sendall(bytes([len(server.security_types)]) + server.security_types)
            if 2 not in server.security_types:
                return
            self._read(1)

            challenge = os.urandom(16)
            self.request.sendall(challenge)
            response = self._read(16)
            with server._lock:
                server.responses.append(response)

            if server.forced_status is not None:
                status = server.forced_status
            elif server.password is not None and response == encrypt_challenge(challenge, server.password):
                status = 0
            else:
                status = 1
            self.request.sendall(struct.pack(">I", status))
        except ConnectionError:
            pass


@pytest.fixture
def vnc_server():
    """Factory fixture: start a stub server with the given behaviour."""
    servers = []

    def start(**kwargs):
        server = StubVncServer(**kwargs)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


@pytest.fixture
def logger():
    return Logger(name="VncBruteTest", console=False)


@pytest.fixture
def wordlist(tmp_path):
    """Factory fixture: write lines to a temporary password file."""
    def write(lines, name="passwords.txt"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="latin-1")
        return str(path)
    return write
