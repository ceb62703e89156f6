import socketserver
import threading

import pytest
from werkzeug.serving import make_server

from vaudenay.oracle import BLOCK_SIZE, LocalOracle, PaddingOracle
from vaudenay.server import create_app

KEY = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
ZERO_IV = b'\x00' * BLOCK_SIZE


class ScriptedOracle(PaddingOracle):
    """Answers every query with the same verdict."""

    def __init__(self, verdict):
        super().__init__()
        self.verdict = verdict

    def _query(self, ciphertext):
        return self.verdict


@pytest.fixture
def oracle():
    return LocalOracle(KEY)


@pytest.fixture
def http_server():
    """Flask oracle served over real HTTP on a free loopback port."""
    app = create_app(KEY)
    server = make_server("127.0.0.1", 0, app)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_port}", app
    server.shutdown()
    thread.join()


class OracleRequestHandler(socketserver.BaseRequestHandler):
    """Raw packet oracle: num_blocks || ciphertext || 0x00 -> b'1' / b'0'."""

    def handle(self):
        local = self.server.oracle
        while True:
            header = self._read(1)
            if not header:
                return
            body = self._read(header[0] * BLOCK_SIZE + 1)
            if self.server.reply is not None:
                self.request.sendall(self.server.reply)
                continue
            ciphertext = body[:-1]
            valid = local.check_padding(ciphertext[:BLOCK_SIZE], ciphertext[BLOCK_SIZE:])
            self.request.sendall(b'1\n' if valid else b'0\n')

    def _read(self, size):
        data = b''
        while len(data) < size:
            chunk = self.request.recv(size - len(data))
            if not chunk:
                return b''
            data += chunk
        return data


class OracleTCPServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture
def tcp_server():
    """Start a packet oracle; call the returned function with an optional fixed reply."""
    servers = []

    def start(reply=None):
        server = OracleTCPServer(("127.0.0.1", 0), OracleRequestHandler)
        server.oracle = LocalOracle(KEY)
        server.reply = reply
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server.server_address

    yield start
    for server in servers:
        server.shutdown()
        server.server_close()

