"""
Parameters for the MFUPSI protocol.

Key parameters:
- num_clients: Number of parties n
- dataset_size: Elements per party
- partition_size: Encoding width d1 (unknowns per partition system)
- expansion_factor: Slack epsilon on the number of partitions
- pir_dimension: Hypercube dimension z of the PIR fold
- band_width: Width w of each equation's nonzero band
- modulus: Prime q of the field
- representation_width: Words per encrypted slot in the cost model

Derived:
- num_partitions b = ceil((1 + epsilon) * dataset_size * num_clients / d1)
- fold_edge L = ceil(b^(1/z)), so that L^z >= b

Tradeoffs:
- Larger d1 means fewer, bigger systems: elimination cost grows with d1
  while the PIR database (b slots) shrinks
- Larger z shrinks each selection vector to L = b^(1/z) slots but adds
  folding rounds
- Larger w lowers the chance an element's equation is left unresolved
"""

import math
from dataclasses import dataclass
from typing import Optional

from .errors import InvalidDimension, InvalidHypercube
from .pir.hypercube import Hypercube, compute_pir_dimension_size
from .primitives.field import element_bytes, is_prime


@dataclass
class Params:
    """Experiment configuration for one MFUPSI run."""

    num_clients: int  # n: number of parties
    dataset_size: int  # Elements per party
    partition_size: int  # d1: encoding width per partition
    modulus: int  # q: prime field modulus
    band_width: int  # w: band width of each equation
    num_updates: int = 0  # Elements changed per updated party
    num_queries: int = 0  # Queries issued in the query phase
    expansion_factor: float = 0.2  # epsilon
    pir_dimension: int = 2  # z
    representation_width: int = 1024  # Words per encrypted slot (LWE dimension)
    fold_edge: Optional[int] = None  # L; defaults to ceil(b^(1/z))
    strict_solver: bool = False  # Raise SingularSystem on inconsistent partitions

    def __post_init__(self):
        if self.num_clients < 1:
            raise ValueError("num_clients must be at least 1")
        if self.dataset_size < 1:
            raise ValueError("dataset_size must be at least 1")
        if self.num_updates < 0:
            raise ValueError("num_updates must be non-negative")
        if self.num_queries < 0:
            raise ValueError("num_queries must be non-negative")
        if self.expansion_factor < 0:
            raise ValueError("expansion_factor must be non-negative")
        if self.representation_width < 1:
            raise ValueError("representation_width must be at least 1")
        if self.partition_size < 1:
            raise InvalidDimension("partition_size must be at least 1")
        if self.band_width < 1 or self.band_width > self.partition_size:
            raise InvalidDimension("band_width must be in [1, partition_size]")
        if not is_prime(self.modulus):
            raise ValueError("modulus must be prime")

        self._num_partitions = math.ceil(
            (1.0 + self.expansion_factor) * self.dataset_size * self.num_clients
            / self.partition_size
        )

        if self.fold_edge is None:
            self.fold_edge = compute_pir_dimension_size(self._num_partitions, self.pir_dimension)
        elif self.pir_dimension < 1:
            raise InvalidHypercube("pir_dimension must be at least 1")

        # Checked once per (b, z) pair, before any query runs
        if self.fold_edge < 1 or self.fold_edge ** self.pir_dimension < self._num_partitions:
            raise InvalidHypercube(
                f"fold_edge {self.fold_edge}^{self.pir_dimension} cannot cover "
                f"{self._num_partitions} partitions"
            )

    @property
    def num_partitions(self) -> int:
        """Number of partitions b."""
        return self._num_partitions

    @property
    def num_slots(self) -> int:
        """Hypercube capacity L^z (>= b)."""
        return self.fold_edge ** self.pir_dimension

    @property
    def hypercube(self) -> Hypercube:
        """Hypercube layout of the b partitions."""
        return Hypercube(self._num_partitions, self.pir_dimension, self.fold_edge)

    @property
    def word_bytes(self) -> int:
        """Bytes per transmitted field element."""
        return element_bytes(self.modulus)

    @classmethod
    def default(cls) -> "Params":
        """Recommended parameters (inherited from FUPSI and SparsePIR)."""
        dataset_size = 1 << 16
        return cls(
            num_clients=10,
            dataset_size=dataset_size,
            num_updates=dataset_size // 100,
            num_queries=100,
            partition_size=512,
            expansion_factor=0.2,
            pir_dimension=2,
            representation_width=1024,
            modulus=(1 << 64) - 59,
            band_width=80,
        )

    @classmethod
    def test(cls) -> "Params":
        """Small configuration for quick runs."""
        return cls(
            num_clients=3,
            dataset_size=1024,
            num_updates=50,
            num_queries=10,
            partition_size=128,
            expansion_factor=0.2,
            pir_dimension=2,
            representation_width=512,
            modulus=(1 << 32) - 5,
            band_width=30,
        )

    @classmethod
    def performance(cls) -> "Params":
        """Large-scale configuration."""
        dataset_size = 1 << 20
        return cls(
            num_clients=50,
            dataset_size=dataset_size,
            num_updates=int(dataset_size * 0.05),
            num_queries=1000,
            partition_size=1024,
            expansion_factor=0.2,
            pir_dimension=3,
            representation_width=2048,
            modulus=(1 << 64) - 59,
            band_width=100,
        )

    @classmethod
    def tiny(cls, modulus: int = 65537) -> "Params":
        """Two parties of four elements each: the smallest end-to-end scenario."""
        return cls(
            num_clients=2,
            dataset_size=4,
            num_updates=2,
            num_queries=4,
            partition_size=2,
            expansion_factor=0.0,
            pir_dimension=1,
            representation_width=1,
            modulus=modulus,
            band_width=1,
        )

    def __repr__(self) -> str:
        return (
            f"Params(num_clients={self.num_clients}, dataset_size={self.dataset_size}, "
            f"partition_size={self.partition_size}, num_partitions={self.num_partitions}, "
            f"expansion_factor={self.expansion_factor}, band_width={self.band_width}, "
            f"pir_dimension={self.pir_dimension}, fold_edge={self.fold_edge}, "
            f"representation_width={self.representation_width}, modulus={self.modulus})"
        )
