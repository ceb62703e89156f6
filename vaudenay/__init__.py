"""CBC padding oracle attack (Vaudenay) with TCP/HTTP oracle clients."""

from vaudenay.attack import decrypt, decrypt_block, decrypt_parallel, discover_next_byte
from vaudenay.errors import (AttackExhausted, InvalidCiphertextLength, MalformedResponseError,
                             OracleTransportError, PaddingOracleError)
from vaudenay.oracle import BLOCK_SIZE, LocalOracle, PaddingOracle, Verdict
