"""
Server implementation for MFUPSI.

The server's role:
1. Sum the masked uploads of all parties into one aggregated encoding
2. Merge incremental column deltas into the stored aggregate
3. Answer PIR queries by folding the aggregate down to one row

The server never sees an unmasked encoding.
"""

import logging
from typing import Iterable, Optional

import numpy as np

from .errors import InvalidDimension
from .messages import EncodingDelta, MaskedUpload, QueryMessage, ResponseMessage
from .params import Params
from .pir.cost import CostModel, DenseCostModel, QueryCost
from .pir.engine import QueryEngine
from .primitives.matrix import zero_matrix

logger = logging.getLogger(__name__)


class Aggregator:
    """
    Holds the aggregated d1 x b encoding.

    aggregate() is order independent: the sum mod q does not depend on the
    order uploads arrive in.
    """

    def __init__(self, d1: int, num_partitions: int, q: int):
        self.d1 = d1
        self.num_partitions = num_partitions
        self.q = q
        self._encoding: Optional[np.ndarray] = None

    @property
    def encoding(self) -> np.ndarray:
        if self._encoding is None:
            raise RuntimeError("Must call aggregate() before reading the encoding")
        return self._encoding

    @property
    def ready(self) -> bool:
        return self._encoding is not None

    def _check(self, matrix: np.ndarray) -> None:
        if matrix.shape != (self.d1, self.num_partitions):
            raise InvalidDimension(
                f"Matrix shape {matrix.shape} != ({self.d1}, {self.num_partitions})"
            )

    def aggregate(self, matrices: Iterable[np.ndarray]) -> np.ndarray:
        """
        Sum the masked matrices entrywise mod q and store the result.

        Raises:
            InvalidDimension: If any matrix has the wrong shape
        """
        total = zero_matrix(self.d1, self.num_partitions)
        for matrix in matrices:
            self._check(matrix)
            total = total + matrix
        self._encoding = total % self.q
        return self._encoding

    def incremental_merge(self, deltas: Iterable[EncodingDelta]) -> None:
        """
        Add each delta's touched columns into the stored aggregate in place.

        Untouched columns are never read or written.
        """
        deltas = list(deltas)
        encoding = self.encoding
        for delta in deltas:
            for j, col in delta.columns.items():
                if not 0 <= j < self.num_partitions:
                    raise InvalidDimension(f"Partition {j} out of range")
                if len(col) != self.d1:
                    raise InvalidDimension(f"Column length {len(col)} != {self.d1}")
        for delta in deltas:
            for j, col in delta.columns.items():
                encoding[:, j] = (encoding[:, j] + np.array(col, dtype=object)) % self.q


class Server:
    """
    MFUPSI server: aggregator plus PIR query engine.

    The server answers queries without learning which partition is
    selected, since every query is a set of one-hot selectors it folds
    blindly.
    """

    def __init__(self, params: Params, cost_model: Optional[CostModel] = None):
        """
        Initialize the server.

        Args:
            params: Protocol parameters
            cost_model: PIR cost model (defaults to DenseCostModel)
        """
        self.params = params
        if cost_model is None:
            cost_model = DenseCostModel(params.representation_width, params.word_bytes)
        self.aggregator = Aggregator(params.partition_size, params.num_partitions, params.modulus)
        self.engine = QueryEngine(
            params.hypercube,
            params.partition_size,
            params.band_width,
            params.modulus,
            cost_model,
        )

    def setup(self, uploads: list[MaskedUpload]) -> None:
        """Aggregate the setup uploads of all parties."""
        self.aggregator.aggregate(u.matrix for u in uploads)
        logger.debug("aggregated %d uploads", len(uploads))

    def update(self, deltas: list[EncodingDelta]) -> None:
        if not self.aggregator.ready:
            raise RuntimeError("Must call setup() before update()")
        self.aggregator.incremental_merge(deltas)
        logger.debug(
            "merged %d deltas touching %d columns",
            len(deltas),
            sum(len(d.columns) for d in deltas),
        )

    def answer(self, query: QueryMessage) -> ResponseMessage:
        """
        Fold the aggregate with the query's selectors.

        Returns:
            Response holding the selected (masked) row of width d1
        """
        if not self.aggregator.ready:
            raise RuntimeError("Must call setup() before answer()")
        row = self.engine.answer(self.aggregator.encoding, query.selectors)
        return ResponseMessage(row=[int(v) for v in row])

    def account(self) -> QueryCost:
        """Cost-model figures of one query under the current configuration."""
        return self.engine.account()
