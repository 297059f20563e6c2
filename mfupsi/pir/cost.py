"""
Cost models for the homomorphic layer of the PIR fold.

No encryption is performed. Instead every piece of work the encrypted
protocol would do (sending selection vectors, folding slots, returning
the response) is priced by a CostModel. Swapping the model changes the
accounted figures without touching the fold itself.
"""

import math
from dataclasses import dataclass
from typing import Protocol

from .hypercube import Hypercube


@dataclass(frozen=True)
class Cost:
    """Price of one unit of work."""

    time_units: int  # Scalar operations
    bytes: int  # Bytes on the wire


class CostModel(Protocol):
    """
    Prices a block of active_slots rows, each row_width field elements wide.
    """

    def cost(self, active_slots: int, row_width: int) -> Cost:
        ...


@dataclass(frozen=True)
class DenseCostModel:
    """
    Every scalar is a separate ciphertext of representation_width words.
    """

    representation_width: int  # Words per encrypted scalar
    word_bytes: int = 8

    def cost(self, active_slots: int, row_width: int) -> Cost:
        scalars = active_slots * row_width
        return Cost(
            time_units=scalars,
            bytes=scalars * self.representation_width * self.word_bytes,
        )


@dataclass(frozen=True)
class CompressedCostModel:
    """
    packing scalars share one ciphertext of representation_width words.

    Computation still touches every scalar; only the wire size shrinks.
    """

    representation_width: int
    word_bytes: int = 8
    packing: int = 64  # Scalars per ciphertext

    def __post_init__(self):
        if self.packing < 1:
            raise ValueError("packing must be at least 1")

    def cost(self, active_slots: int, row_width: int) -> Cost:
        scalars = active_slots * row_width
        ciphertexts = math.ceil(scalars / self.packing)
        return Cost(
            time_units=scalars,
            bytes=ciphertexts * self.representation_width * self.word_bytes,
        )


@dataclass(frozen=True)
class QueryCost:
    """Accounted cost of one PIR query."""

    query_bytes: int
    response_bytes: int
    compute_units: int


def account_query(model: CostModel, cube: Hypercube, row_width: int) -> QueryCost:
    """
    Price one query against cube with rows of row_width elements.

    - query: one length-L selection vector per dimension
    - response: a single row of row_width elements
    - computation: each round touches its active slots times row_width
    """
    query_bytes = sum(model.cost(cube.edge, 1).bytes for _ in range(cube.dimension))
    response_bytes = model.cost(1, row_width).bytes
    compute_units = sum(
        model.cost(cube.active_slots(r), row_width).time_units
        for r in range(cube.dimension)
    )
    return QueryCost(
        query_bytes=query_bytes,
        response_bytes=response_bytes,
        compute_units=compute_units,
    )
