"""
Client-side encoding of a data set into per-partition solution vectors.

Each element x lands in partition j = F_1(K1, x) mod b and contributes one
equation <F_2(K2, x), e_j> = F_r(Kr, x) to that partition's banded system.
Solving every system gives the d1 x b encoding matrix whose column j is
e_j. Members are always ordered ascending before the system is built, so
rebuilding a partition with the same membership reproduces the same
column exactly.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from ..params import Params
from ..primitives.matrix import random_matrix, zero_matrix
from ..primitives.prf import MixPRF
from .solver import solve


@dataclass
class PartitionEncoding:
    """Solved system of one partition."""

    vector: list[int]  # e_j, length d1
    resolved: list[int] = field(default_factory=list)  # Members whose equation got a pivot
    unresolved: list[int] = field(default_factory=list)  # Members left dependent (maybe inconsistent)


@dataclass
class EncodingState:
    """
    A party's encoding matrix together with the membership behind it.

    members[j] is sorted; partitions absent from members are empty and
    hold a zero column.
    """

    matrix: np.ndarray  # d1 x b
    members: dict[int, list[int]] = field(default_factory=dict)
    resolved: dict[int, list[int]] = field(default_factory=dict)

    def elements(self) -> set[int]:
        return {x for ms in self.members.values() for x in ms}

    def is_resolved(self, element: int, partition: int) -> bool:
        return element in self.resolved.get(partition, ())

    def column(self, partition: int) -> list[int]:
        return [int(v) for v in self.matrix[:, partition]]


def delta_matrix(columns: dict[int, list[int]], d1: int, num_partitions: int) -> np.ndarray:
    """Dense d1 x b delta: the given columns, zero elsewhere."""
    m = zero_matrix(d1, num_partitions)
    for j, col in columns.items():
        m[:, j] = col
    return m


class Encoder:
    """Builds and solves the banded systems of one party."""

    def __init__(self, params: Params, prf: MixPRF):
        self.params = params
        self.prf = prf

    def partition_of(self, element: int) -> int:
        return self.prf.partition(element, self.params.num_partitions)

    def group(self, elements: Iterable[int]) -> dict[int, list[int]]:
        """Bucket elements by partition; each bucket sorted ascending."""
        buckets: dict[int, set[int]] = {}
        for x in elements:
            buckets.setdefault(self.partition_of(x), set()).add(x)
        return {j: sorted(xs) for j, xs in buckets.items()}

    def build_linear_system(self, members: list[int]) -> tuple[list[list[int]], list[int]]:
        """One banded equation per member: band coefficients and representation target."""
        p = self.params
        M = [self.prf.band(x, p.partition_size, p.band_width) for x in members]
        y = [self.prf.represent(x, p.modulus) for x in members]
        return M, y

    def encode_partition(self, members: list[int]) -> PartitionEncoding:
        p = self.params
        if not members:
            return PartitionEncoding(vector=[0] * p.partition_size)

        M, y = self.build_linear_system(members)
        solution = solve(M, y, p.modulus, strict=p.strict_solver)
        pivoted = set(solution.pivot_rows)
        return PartitionEncoding(
            vector=solution.values,
            resolved=[x for i, x in enumerate(members) if i in pivoted],
            unresolved=[x for i, x in enumerate(members) if i not in pivoted],
        )

    def encode(self, data_set: Iterable[int]) -> EncodingState:
        """
        Encode a whole data set.

        Empty partitions keep a zero column and never build a system.
        """
        p = self.params
        state = EncodingState(matrix=zero_matrix(p.partition_size, p.num_partitions))
        for j, members in self.group(data_set).items():
            enc = self.encode_partition(members)
            state.matrix[:, j] = enc.vector
            state.members[j] = members
            state.resolved[j] = enc.resolved
        return state

    def incremental_update(
        self,
        state: EncodingState,
        adds: Iterable[int],
        deletes: Iterable[int],
    ) -> tuple[EncodingState, dict[int, list[int]]]:
        """
        Re-solve only the partitions touched by adds or deletes.

        Args:
            state: Current encoding (left unmodified)
            adds: Elements to insert
            deletes: Elements to remove

        Returns:
            (new_state, delta) where delta maps each touched partition to
            new_column - old_column (mod q)

        Raises:
            ValueError: If an element is both added and deleted, or a
                deleted element is not encoded
        """
        p = self.params
        adds = set(adds)
        deletes = set(deletes)
        overlap = adds & deletes
        if overlap:
            raise ValueError(f"Elements both added and deleted: {sorted(overlap)}")

        touched: dict[int, tuple[set[int], set[int]]] = {}
        for x in adds:
            touched.setdefault(self.partition_of(x), (set(), set()))[0].add(x)
        for x in deletes:
            j = self.partition_of(x)
            if x not in state.members.get(j, ()):
                raise ValueError(f"Cannot delete element {x}: not encoded")
            touched.setdefault(j, (set(), set()))[1].add(x)

        new_state = EncodingState(
            matrix=state.matrix.copy(),
            members=dict(state.members),
            resolved=dict(state.resolved),
        )
        delta: dict[int, list[int]] = {}

        for j in sorted(touched):
            j_adds, j_deletes = touched[j]
            members = sorted((set(state.members.get(j, ())) - j_deletes) | j_adds)
            enc = self.encode_partition(members)

            old = state.column(j)
            delta[j] = [(new - prev) % p.modulus for new, prev in zip(enc.vector, old)]
            new_state.matrix[:, j] = enc.vector
            if members:
                new_state.members[j] = members
                new_state.resolved[j] = enc.resolved
            else:
                new_state.members.pop(j, None)
                new_state.resolved.pop(j, None)

        return new_state, delta

    def generate_mask(self, rng: Optional[np.random.Generator] = None) -> np.ndarray:
        """Uniform d1 x b mask; drawn once per party at setup."""
        p = self.params
        return random_matrix(p.partition_size, p.num_partitions, p.modulus, rng)
