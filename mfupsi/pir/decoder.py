"""
Client-side membership judgment.

The folded response is the querying partition's column of the aggregate,
still carrying every party's mask. Cancelling the masks of the other
parties is a reconstruction step whose algebra the protocol leaves open,
so it is injected as a Reconstruction strategy. The decoder itself only
removes what the querying party knows (its own mask and the complement
supplied by the strategy) and checks the element's equation.
"""

from typing import Protocol, Sequence

import numpy as np

from ..errors import UnknownClient
from ..primitives.matrix import matrix_add, matrix_sub, vector_matrix_multiply, zero_matrix
from ..primitives.prf import MixPRF
from .engine import SelectionSet, fold
from .hypercube import Hypercube


class Reconstruction(Protocol):
    """
    Supplies the part of a response that is not the querier's own upload.

    The driver reports every upload and delta so the strategy can track
    what the server holds.
    """

    def register(self, party_id: int, masked: np.ndarray) -> None:
        ...

    def apply_delta(self, party_id: int, delta: np.ndarray) -> None:
        ...

    def complement(self, party_id: int, selection: SelectionSet) -> np.ndarray:
        """Folded sum of every other party's masked contribution."""
        ...


class LeaveOneOutReconstruction:
    """
    Reconstruction by folding the sum of all other parties' uploads.

    A benchmarking stand-in for a secret-sharing reconstruction: it sees
    every masked upload and delta, which a deployed protocol would not.
    Its work is not part of the accounted PIR cost.

    The other parties' uploads are removed whole, encodings included, so
    a query judged with this strategy answers "is x in the querier's own
    set". An element held only by another party is reported absent.
    """

    def __init__(self, cube: Hypercube, d1: int, q: int):
        self.cube = cube
        self.q = q
        self._d1 = d1
        self._uploads: dict[int, np.ndarray] = {}

    def register(self, party_id: int, masked: np.ndarray) -> None:
        """Record a party's masked setup upload."""
        self._uploads[party_id] = masked.copy()

    def apply_delta(self, party_id: int, delta: np.ndarray) -> None:
        """Track an incremental update of a party's upload."""
        self._uploads[party_id] = matrix_add(self._uploads[party_id], delta, self.q)

    def complement(self, party_id: int, selection: SelectionSet) -> np.ndarray:
        if party_id not in self._uploads:
            raise UnknownClient(f"No upload registered for party {party_id}")
        total = zero_matrix(self._d1, self.cube.num_partitions)
        for upload in self._uploads.values():
            total = total + upload
        others = matrix_sub(total % self.q, self._uploads[party_id], self.q)
        return fold(others, selection.selectors, self.cube, self.q)


def judge(
    prf: MixPRF,
    response_row: Sequence[int],
    element: int,
    own_mask_row: Sequence[int],
    complement_row: Sequence[int],
    d1: int,
    w: int,
    q: int,
) -> bool:
    """
    Decide whether element is encoded in the querying party's partition.

    Only the band positions of the element contribute; the recovered
    value is compared with F_r(Kr, x). Pure: no state is read or written.
    """
    start, bits = prf.band_support(element, d1, w)
    band = slice(start, start + w)
    residual = np.array(
        [
            [int(r) - int(m) - int(c)]
            for r, m, c in zip(response_row[band], own_mask_row[band], complement_row[band])
        ],
        dtype=object,
    )
    value = vector_matrix_multiply(bits, residual, q)[0]
    return int(value) == prf.represent(element, q)


class ResponseDecoder:
    """judge() bound to one party's PRF and configuration."""

    def __init__(self, prf: MixPRF, d1: int, band_width: int, q: int):
        self.prf = prf
        self.d1 = d1
        self.band_width = band_width
        self.q = q

    def judge(
        self,
        response_row: Sequence[int],
        element: int,
        own_mask_row: Sequence[int],
        complement_row: Sequence[int],
    ) -> bool:
        return judge(
            self.prf,
            response_row,
            element,
            own_mask_row,
            complement_row,
            self.d1,
            self.band_width,
            self.q,
        )
