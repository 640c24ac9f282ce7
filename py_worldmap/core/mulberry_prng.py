"""
Seed hashing and the Mulberry32 PRNG used by every stochastic step.

The seed text is reduced to an unsigned 32-bit integer by an avalanche hash,
which then seeds a Mulberry32 stream. All arithmetic emulates 32-bit
wrapping integer math so the same seed always yields the same stream.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF


def _uint32(n: int) -> int:
    """Convert to unsigned 32-bit integer."""
    return n & _MASK32


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiplication (unsigned result)."""
    return (a * b) & _MASK32


def _code_units(value: str):
    """Yield UTF-16 code units so astral characters hash as surrogate pairs."""
    data = value.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def hash_string(value: str) -> int:
    """
    Hash seed text to an unsigned 32-bit integer.

    Order sensitive: every code unit is mixed in, then rotated, and the
    accumulator gets a final xor-shift/multiply avalanche.

    Args:
        value: Seed text

    Returns:
        Integer in [0, 2**32)
    """
    units = list(_code_units(value))
    h = _uint32(1779033703 ^ len(units))
    for unit in units:
        h = _imul(h ^ unit, 3432918353)
        h = _uint32((h << 13) | (h >> 19))
    h = _imul(h ^ (h >> 16), 2246822507)
    h = _imul(h ^ (h >> 13), 3266489909)
    return _uint32(h ^ (h >> 16))


class Mulberry32:
    """
    Mulberry32 counter-based PRNG.

    Each draw adds an odd increment to the state and runs two
    multiply-xorshift rounds over it.
    """

    def __init__(self, seed: int):
        """Initialize with an unsigned 32-bit seed."""
        self.state = _uint32(int(seed))
        self.call_count = 0

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self.state = _uint32(self.state + 0x6D2B79F5)
        t = self.state
        r = _imul(t ^ (t >> 15), t | 1)
        r ^= _uint32(r + _imul(r ^ (r >> 7), r | 61))
        return _uint32(r ^ (r >> 14)) / 4294967296.0

    def randint(self, n: int) -> int:
        """Integer in [0, n)."""
        return int(self.random() * n)

    def uniform(self, low: float, span: float) -> float:
        """Float in [low, low + span)."""
        return low + self.random() * span

    def signed(self) -> float:
        """Float in [-1, 1)."""
        return self.random() * 2 - 1

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]
