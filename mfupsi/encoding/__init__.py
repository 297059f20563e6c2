"""
Banded linear-system encoding of a party's data set.
"""

from .solver import Solution, solve, gaussian_elimination
from .encoder import Encoder, EncodingState, PartitionEncoding, delta_matrix

__all__ = [
    "Solution",
    "solve",
    "gaussian_elimination",
    "Encoder",
    "EncodingState",
    "PartitionEncoding",
    "delta_matrix",
]
