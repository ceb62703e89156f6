"""Exceptions raised by the padding-oracle attack and its oracle clients."""


class PaddingOracleError(Exception):
    """Base class for every attack failure."""


class InvalidCiphertextLength(PaddingOracleError, ValueError):
    def __init__(self, length: int, block_size: int = 16):
        self.length = length
        super().__init__(
            f"invalid ciphertext length {length} "
            f"(need at least 2 blocks and a multiple of {block_size})"
        )


class OracleTransportError(PaddingOracleError):
    """The oracle could not be reached or its reply could not be read."""


class MalformedResponseError(OracleTransportError):
    """The oracle answered, but not with a padding verdict."""


class AttackExhausted(PaddingOracleError):
    def __init__(self, block_index: int):
        self.block_index = block_index
        super().__init__(f"attack failed: no valid guess left for block {block_index}")
