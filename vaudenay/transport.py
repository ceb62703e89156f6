"""
Remote padding oracles.

TcpOracle speaks the raw packet protocol of the classic oracle servers:

    < num_blocks(1) || ciphertext(16*num_blocks) || null-terminator(1) >

and reads back an ASCII digit: '1' for good padding, '0' for bad padding.

HttpOracle talks to a JSON API such as the one in vaudenay.server:

    POST /api/verify_padding  {"iv": base64, "ciphertext": base64}
    -> {"valid": true|false}
"""

import base64
import socket

import requests

from vaudenay.errors import InvalidCiphertextLength, OracleTransportError
from vaudenay.oracle import BLOCK_SIZE, PaddingOracle, Verdict

DEFAULT_TIMEOUT = 10.0  # seconds per oracle round-trip
MAX_BLOCKS = 0xFF       # block count must fit the one-byte header
REPLY_SIZE = 2          # status digit + terminator


def encode_packet(ciphertext: bytes) -> bytes:
    """Frame ciphertext as num_blocks || ciphertext || 0x00."""
    if not ciphertext or len(ciphertext) % BLOCK_SIZE != 0:
        raise InvalidCiphertextLength(len(ciphertext), BLOCK_SIZE)
    num_blocks = len(ciphertext) // BLOCK_SIZE
    if num_blocks > MAX_BLOCKS:
        raise InvalidCiphertextLength(len(ciphertext), BLOCK_SIZE)
    return bytes([num_blocks]) + ciphertext + b'\x00'


def parse_reply(reply: bytes) -> Verdict:
    """Map the first reply byte to a verdict."""
    if not reply:
        raise OracleTransportError("empty reply from oracle")
    status = chr(reply[0])
    if status == '1':
        return Verdict.VALID
    if status == '0':
        return Verdict.INVALID
    return Verdict.MALFORMED


class TcpOracle(PaddingOracle):
    """Padding oracle behind a persistent TCP connection."""

    def __init__(self, host: str, port: int, timeout: float = DEFAULT_TIMEOUT) -> None:
        super().__init__()
        self.host = host
        self.port = port
        try:
            self.conn = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise OracleTransportError(f"cannot connect to {host}:{port}: {e}") from e

    def _query(self, ciphertext: bytes) -> Verdict:
        packet = encode_packet(ciphertext)
        try:
            self.conn.sendall(packet)
        except OSError as e:
            raise OracleTransportError(f"error writing: {e}") from e
        return parse_reply(self._recv_exact(REPLY_SIZE))

    def _recv_exact(self, size: int) -> bytes:
        reply = b''
        while len(reply) < size:
            try:
                chunk = self.conn.recv(size - len(reply))
            except OSError as e:
                raise OracleTransportError(f"error reading: {e}") from e
            if not chunk:
                raise OracleTransportError(
                    f"connection closed after {len(reply)} of {size} reply bytes")
            reply += chunk
        return reply

    def close(self) -> None:
        self.conn.close()


class HttpOracle(PaddingOracle):
    """Padding oracle exposed as a JSON web API."""

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT, session=None) -> None:
        super().__init__()
        self.url = base_url.rstrip('/') + "/api/verify_padding"
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _query(self, ciphertext: bytes) -> Verdict:
        payload = {
            "iv": base64.b64encode(ciphertext[:BLOCK_SIZE]).decode(),
            "ciphertext": base64.b64encode(ciphertext[BLOCK_SIZE:]).decode(),
        }
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise OracleTransportError(f"oracle request failed: {e}") from e

        try:
            valid = response.json().get("valid")
        except (ValueError, AttributeError):
            return Verdict.MALFORMED
        if not isinstance(valid, bool):
            return Verdict.MALFORMED
        return Verdict.VALID if valid else Verdict.INVALID

    def close(self) -> None:
        self.session.close()
