"""
Guess space for the padding-oracle byte search.

Only pad values (0x01..0x10) and printable bytes are worth submitting: the
attack targets text, and pruning the rest avoids most coincidental
valid-padding hits.
"""

from typing import Iterator, Optional

MAX_PAD = 16            # largest PKCS#7 pad value for a 16-byte block
PRINTABLE_MIN = 0x20    # ' '
GUESS_LIMIT = 0x7B      # exclusive: guesses run 0x00..0x7A


def is_plausible(b: int) -> bool:
    """True if b is a possible pad byte or a printable character."""
    if 0x01 <= b <= MAX_PAD:
        return True
    return b >= PRINTABLE_MIN


def next_guess(current: int) -> Optional[int]:
    """Smallest plausible guess strictly greater than current, or None."""
    for g in range(current + 1, GUESS_LIMIT):
        if is_plausible(g):
            return g
    return None


def guesses(start: int = 0) -> Iterator[int]:
    """Yield plausible guesses from start (inclusive) up to GUESS_LIMIT."""
    g = start if start < GUESS_LIMIT and is_plausible(start) else next_guess(start)
    while g is not None:
        yield g
        g = next_guess(g)
