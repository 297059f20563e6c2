"""
Message types exchanged between parties and the server.

Parties and the server share nothing else: every upload, update, query and
response crosses the boundary as one of these, so byte counts are taken
from the messages themselves.
"""

from dataclasses import dataclass

import numpy as np

from .encoding.encoder import delta_matrix
from .primitives.matrix import matrix_size_bytes


@dataclass
class MaskedUpload:
    """
    Setup upload from party to server.

    matrix is the party's encoding plus its mask (mod q), d1 x b.
    """

    party_id: int
    matrix: np.ndarray

    def size_bytes(self, word_bytes: int) -> int:
        rows, cols = self.matrix.shape
        return matrix_size_bytes(rows, cols, word_bytes)


@dataclass
class EncodingDelta:
    """
    Incremental update from party to server.

    Only touched partitions are sent. The mask cancels in the difference
    (new + S) - (old + S), so the columns are the plain encoding delta.
    """

    party_id: int
    columns: dict[int, list[int]]  # Partition -> new column - old column (mod q)

    @property
    def touched(self) -> list[int]:
        return sorted(self.columns)

    def to_matrix(self, d1: int, num_partitions: int) -> np.ndarray:
        return delta_matrix(self.columns, d1, num_partitions)

    def size_bytes(self, word_bytes: int) -> int:
        # Partition index (4 bytes) + column per touched partition
        return sum(4 + len(col) * word_bytes for col in self.columns.values())


@dataclass
class QueryMessage:
    """
    PIR query from party to server.

    One one-hot selector of length L per hypercube dimension. The band
    vector and the partition index stay with the party.
    """

    selectors: list[list[int]]


@dataclass
class ResponseMessage:
    """PIR response: the folded, still masked row of width d1."""

    row: list[int]
