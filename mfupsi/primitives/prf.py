"""
Pseudorandom mixing functions used to place and encode elements.

Three keyed functions drive the whole protocol:
- F_1(K1, x): partition index of x
- F_2(K2, x): band vector of x inside its partition's linear system
- F_r(Kr, x): representation value x's equation must evaluate to

All of them are built from the same 64-bit avalanche mix. The outputs must
match bit-for-bit across implementations, so the constants and the 2^64
wraparound are part of the contract.
"""

import secrets
from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np

from ..errors import InvalidDimension

MASK64 = (1 << 64) - 1
GOLDEN_GAMMA = 0x9E3779B97F4A7C15


class PRFProtocol(Protocol):
    """
    Generic keyed PRF interface.

    Takes a 64-bit input and produces a 64-bit pseudorandom output.
    """

    @property
    def key(self) -> int:
        """Get the PRF secret key."""
        ...

    def evaluate(self, input: int) -> int:
        """Evaluate the PRF on a 64-bit input."""
        ...


def hash_partition(key: int, x: int) -> int:
    """
    Deterministic 64-bit avalanche mix of (key, x).

    xor key and x, xor-shift by 33, multiply by the odd constant
    0x9E3779B97F4A7C15 (mod 2^64), xor-shift by 33 again.
    """
    h = (key ^ x) & MASK64
    h ^= h >> 33
    h = (h * GOLDEN_GAMMA) & MASK64
    h ^= h >> 33
    return h


def band_support(k2: int, element: int, d1: int, w: int) -> tuple[int, list[int]]:
    """
    Return (start, bits) describing the band of sparse_vector().

    bits[i] is the 0/1 coefficient at position start + i.
    """
    if d1 < 1:
        raise InvalidDimension("d1 must be at least 1")
    if w < 1 or w > d1:
        raise InvalidDimension(f"band width {w} must be in [1, {d1}]")

    start = hash_partition(k2, element) % (d1 - w + 1)
    bits = [
        hash_partition(k2 ^ ((element + i) & MASK64), element) % 2
        for i in range(w)
    ]
    return start, bits


def sparse_vector(k2: int, element: int, d1: int, w: int) -> list[int]:
    """
    Length-d1 vector with one contiguous width-w band of 0/1 coefficients.

    Everything outside [start, start + w) is zero.
    """
    start, bits = band_support(k2, element, d1, w)
    v = [0] * d1
    v[start:start + w] = bits
    return v


@dataclass(frozen=True)
class Keys:
    """The three 64-bit keys shared by all parties."""

    k1: int  # F_1: partition hash
    k2: int  # F_2: band vector
    kr: int  # F_r: element representation

    @classmethod
    def generate(cls, rng: Optional[np.random.Generator] = None) -> "Keys":
        """
        Draw fresh keys.

        Args:
            rng: Seeded generator for reproducible runs. If None, keys come
                from the secrets module.
        """
        if rng is None:
            return cls(secrets.randbits(64), secrets.randbits(64), secrets.randbits(64))
        k1, k2, kr = (int(k) for k in rng.integers(0, 1 << 64, size=3, dtype=np.uint64))
        return cls(k1, k2, kr)


class MixPRF:
    """
    The keyed functions F_1, F_2 and F_r bundled over one key set.

    evaluate() exposes the raw partition mix so MixPRF satisfies
    PRFProtocol; the helpers below reduce it to protocol values.
    """

    def __init__(self, keys: Keys):
        self._keys = keys

    @property
    def key(self) -> int:
        """Get the partition key K1."""
        return self._keys.k1

    @property
    def keys(self) -> Keys:
        return self._keys

    def evaluate(self, input: int) -> int:
        return hash_partition(self._keys.k1, input)

    def partition(self, element: int, num_partitions: int) -> int:
        """Partition index F_1(K1, x) mod b."""
        return hash_partition(self._keys.k1, element) % num_partitions

    def band(self, element: int, d1: int, w: int) -> list[int]:
        """Band vector F_2(K2, x) of length d1."""
        return sparse_vector(self._keys.k2, element, d1, w)

    def band_support(self, element: int, d1: int, w: int) -> tuple[int, list[int]]:
        """Band start and bits of F_2(K2, x)."""
        return band_support(self._keys.k2, element, d1, w)

    def represent(self, element: int, q: int) -> int:
        """Representation value F_r(Kr, x) mod q."""
        return hash_partition(self._keys.kr, element) % q
