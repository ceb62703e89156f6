"""
Padding oracle clients.

PaddingOracle is the interface the attack talks to: it sends a forged block
followed by the target block and gets back a three-valued Verdict.
Subclasses only implement _query(ciphertext).

LocalOracle is a vulnerable AES-CBC endpoint living in-process (random or
given key), used by the demo, the Flask server and the tests.
"""

import os
from enum import Enum
from typing import Optional

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from vaudenay.errors import InvalidCiphertextLength

BLOCK_SIZE = 16


class Verdict(Enum):
    VALID = 1
    INVALID = 0
    MALFORMED = -1


class PaddingOracle:
    """CBC padding oracle queried with two-block ciphertexts."""

    def __init__(self) -> None:
        self._queries = 0

    def query(self, forged_block: bytes, following_block: bytes) -> Verdict:
        if len(forged_block) != BLOCK_SIZE or len(following_block) != BLOCK_SIZE:
            raise InvalidCiphertextLength(len(forged_block) + len(following_block))
        self._queries += 1
        return self._query(bytes(forged_block) + bytes(following_block))

    def _query(self, ciphertext: bytes) -> Verdict:
        """Submit ciphertext (first block acts as IV) and return the verdict.

        This should e.g. call a remote server and map its reply.
        """
        raise NotImplementedError

    @property
    def queries(self) -> int:
        """Number of times the oracle has been used."""
        return self._queries

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class LocalOracle(PaddingOracle):
    """AES-CBC decryptor leaking PKCS#7 padding validity."""

    def __init__(self, key: Optional[bytes] = None) -> None:
        super().__init__()
        if key is None:
            key = os.urandom(BLOCK_SIZE)
        if len(key) not in AES.key_size:
            raise ValueError(f"AES key must be 16, 24 or 32 bytes, got {len(key)}")
        self.key = key

    def encrypt(self, plaintext: bytes, iv: Optional[bytes] = None) -> bytes:
        """Return iv || AES-CBC(pad(plaintext))."""
        if iv is None:
            iv = os.urandom(BLOCK_SIZE)
        cipher = AES.new(self.key, AES.MODE_CBC, iv)
        return iv + cipher.encrypt(pad(plaintext, BLOCK_SIZE, style='pkcs7'))

    def check_padding(self, iv: bytes, ciphertext: bytes) -> bool:
        cipher = AES.new(self.key, AES.MODE_CBC, iv)
        try:
            unpad(cipher.decrypt(ciphertext), BLOCK_SIZE, style='pkcs7')
            return True
        except ValueError:
            return False

    def _query(self, ciphertext: bytes) -> Verdict:
        valid = self.check_padding(ciphertext[:BLOCK_SIZE], ciphertext[BLOCK_SIZE:])
        return Verdict.VALID if valid else Verdict.INVALID
