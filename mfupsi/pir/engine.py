"""
PIR query engine: selection vectors and the hypercube fold.

Per query, the client
1. finds the element's partition j = F_1(K1, x) mod b,
2. decomposes j into z hypercube digits,
3. builds one one-hot selector of length L per digit, and keeps the
   element's band vector as the dimension-1 weighting of the row.

The server folds the aggregated encoding one cube axis per round until a
single row of width d1 is left. The fold never sees the band vector: the
client applies it to the row when decoding, which is the same linear
combination the encoder used when it built the element's equation.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..errors import InvalidDimension
from ..primitives.matrix import zero_matrix
from ..primitives.prf import MixPRF
from .cost import CostModel, QueryCost, account_query
from .hypercube import Hypercube


@dataclass(frozen=True)
class SelectionSet:
    """Client-side state of one query. Never persisted."""

    element: int
    partition: int
    digits: tuple[int, ...]
    band: list[int]  # Dimension-1 weighting over the d1 row positions
    selectors: list[list[int]]  # One one-hot vector of length L per digit


def one_hot(length: int, position: int) -> list[int]:
    v = [0] * length
    v[position] = 1
    return v


def build_selection(prf: MixPRF, element: int, cube: Hypercube, d1: int, w: int) -> SelectionSet:
    """Build the selection set for element."""
    partition = prf.partition(element, cube.num_partitions)
    digits = cube.decompose(partition)
    return SelectionSet(
        element=element,
        partition=partition,
        digits=digits,
        band=prf.band(element, d1, w),
        selectors=[one_hot(cube.edge, digit) for digit in digits],
    )


def fold(aggregate: np.ndarray, selectors: Sequence[Sequence[int]], cube: Hypercube, q: int) -> np.ndarray:
    """
    Fold a d1 x b matrix down to one length-d1 row.

    The b columns become the first b slots of an (L, ..., L, d1) tensor,
    padded with zero slots. Round d contracts the leading cube axis with
    selectors[d], shrinking the live slots by a factor of L.
    """
    d1, num_partitions = aggregate.shape
    if num_partitions != cube.num_partitions:
        raise InvalidDimension(
            f"Aggregate has {num_partitions} partitions, cube expects {cube.num_partitions}"
        )
    if len(selectors) != cube.dimension:
        raise InvalidDimension(f"Expected {cube.dimension} selectors, got {len(selectors)}")

    slots = zero_matrix(cube.num_slots, d1)
    slots[:num_partitions, :] = aggregate.T
    tensor = slots.reshape((cube.edge,) * cube.dimension + (d1,))

    for selector in selectors:
        if len(selector) != cube.edge:
            raise InvalidDimension(f"Selector length {len(selector)} does not match edge {cube.edge}")
        vec = np.array([int(s) for s in selector], dtype=object)
        tensor = np.tensordot(vec, tensor, axes=(0, 0)) % q

    return tensor


class QueryEngine:
    """
    Stateless query pipeline for one configuration.

    Cost figures come from the injected CostModel and are deterministic;
    wall-clock time is measured by the caller.
    """

    def __init__(self, cube: Hypercube, d1: int, band_width: int, q: int, cost_model: CostModel):
        self.cube = cube
        self.d1 = d1
        self.band_width = band_width
        self.q = q
        self.cost_model = cost_model

    def answer(self, aggregate: np.ndarray, selectors: Sequence[Sequence[int]]) -> np.ndarray:
        return fold(aggregate, selectors, self.cube, self.q)

    def account(self) -> QueryCost:
        return account_query(self.cost_model, self.cube, self.d1)
