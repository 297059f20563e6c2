"""
Dense matrices over Z_q.

Matrices are numpy arrays of dtype=object holding Python ints, so every
entry stays exact for moduli up to 2^64 and beyond. Results are always
reduced into [0, q).
"""

from typing import Optional, Sequence

import numpy as np

from ..errors import InvalidDimension


def zero_matrix(rows: int, cols: int) -> np.ndarray:
    """Create a rows x cols matrix of zeros."""
    m = np.empty((rows, cols), dtype=object)
    m.fill(0)
    return m


def as_field_matrix(data: Sequence[Sequence[int]], q: int) -> np.ndarray:
    """Convert nested sequences to a reduced object matrix."""
    m = np.array([[int(v) for v in row] for row in data], dtype=object)
    return m % q


def random_matrix(rows: int, cols: int, q: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Uniformly random matrix with entries in [0, q).

    For q > 2^64 several 64-bit words are concatenated per entry (plus one
    spare word to keep the modulo bias negligible).
    """
    rng = rng or np.random.default_rng()
    if q <= 1 << 64:
        return rng.integers(0, q, size=(rows, cols), dtype=np.uint64).astype(object)

    words = -(-q.bit_length() // 64) + 1
    raw = rng.integers(0, 1 << 64, size=(rows, cols, words), dtype=np.uint64)

    m = zero_matrix(rows, cols)
    for i in range(rows):
        for j in range(cols):
            value = 0
            for word in raw[i, j]:
                value = (value << 64) | int(word)
            m[i, j] = value % q
    return m


def matrix_add(a: np.ndarray, b: np.ndarray, q: int) -> np.ndarray:
    """C = A + B (mod q)."""
    if a.shape != b.shape:
        raise InvalidDimension(f"Shape mismatch: {a.shape} vs {b.shape}")
    return (a + b) % q


def matrix_sub(a: np.ndarray, b: np.ndarray, q: int) -> np.ndarray:
    """C = A - B (mod q)."""
    if a.shape != b.shape:
        raise InvalidDimension(f"Shape mismatch: {a.shape} vs {b.shape}")
    return (a - b) % q


def vector_matrix_multiply(v: Sequence[int], m: np.ndarray, q: int) -> np.ndarray:
    """Row vector times matrix: v^T * M (mod q)."""
    if len(v) != m.shape[0]:
        raise InvalidDimension(f"Vector length {len(v)} does not match {m.shape[0]} rows")
    vec = np.array([int(x) for x in v], dtype=object)
    return np.dot(vec, m) % q


def matrix_size_bytes(rows: int, cols: int, entry_bytes: int = 8) -> int:
    """Transmission size of a dense rows x cols matrix."""
    return rows * cols * entry_bytes
