"""
Party (client) role of the MFUPSI protocol.

The party's role:
1. Encode its data set and upload it under a private mask (setup)
2. Re-encode touched partitions and send the column deltas (update)
3. Build PIR queries for single elements
4. Judge membership from the server's response

Work is split into prepare_*() methods that compute without side effects
and commit_*() methods that install the result, so a phase that fails for
any party leaves every party unchanged.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .encoding.encoder import Encoder, EncodingState
from .messages import EncodingDelta, MaskedUpload, QueryMessage, ResponseMessage
from .params import Params
from .pir.decoder import ResponseDecoder
from .pir.engine import SelectionSet, build_selection
from .primitives.matrix import matrix_add
from .primitives.prf import MixPRF

logger = logging.getLogger(__name__)


@dataclass
class PendingUpdate:
    """Result of prepare_update(), installed by commit_update()."""

    state: EncodingState
    delta: dict[int, list[int]]
    data_set: set[int]


class Party:
    """
    One data owner.

    The encoding matrix and the mask never leave the party; only their sum
    (at setup) and column deltas (at update) are sent.
    """

    def __init__(self, party_id: int, params: Params, prf: MixPRF, data_set: Iterable[int]):
        self.party_id = party_id
        self.params = params
        self.prf = prf
        self.data_set = set(data_set)
        self.encoder = Encoder(params, prf)
        self.decoder = ResponseDecoder(prf, params.partition_size, params.band_width, params.modulus)
        self.cube = params.hypercube
        self._state: Optional[EncodingState] = None
        self._mask: Optional[np.ndarray] = None

    @property
    def state(self) -> EncodingState:
        if self._state is None:
            raise RuntimeError("Must call commit_setup() before using the encoding")
        return self._state

    @property
    def mask(self) -> np.ndarray:
        if self._mask is None:
            raise RuntimeError("Must call commit_setup() before using the mask")
        return self._mask

    def prepare_setup(self) -> EncodingState:
        """Encode the full data set."""
        return self.encoder.encode(self.data_set)

    def commit_setup(self, state: EncodingState, mask: np.ndarray) -> MaskedUpload:
        """
        Install the encoding and the lifetime mask, and build the upload.

        Raises:
            RuntimeError: If the party was already set up (masks are never
                regenerated)
        """
        if self._mask is not None:
            raise RuntimeError("Party already set up; the mask cannot be replaced")
        p = self.params
        if mask.shape != (p.partition_size, p.num_partitions):
            raise ValueError(f"Mask shape {mask.shape} does not match encoding shape")

        self._state = state
        self._mask = mask
        return MaskedUpload(
            party_id=self.party_id,
            matrix=matrix_add(state.matrix, mask, p.modulus),
        )

    def prepare_update(self, adds: Iterable[int], deletes: Iterable[int]) -> PendingUpdate:
        """Re-solve the partitions touched by adds and deletes."""
        adds = set(adds)
        deletes = set(deletes)
        missing = deletes - self.data_set
        if missing:
            raise ValueError(f"Cannot delete elements not in the data set: {sorted(missing)}")

        state, delta = self.encoder.incremental_update(self.state, adds, deletes)
        return PendingUpdate(
            state=state,
            delta=delta,
            data_set=(self.data_set - deletes) | adds,
        )

    def commit_update(self, pending: PendingUpdate) -> EncodingDelta:
        self._state = pending.state
        self.data_set = pending.data_set
        logger.debug(
            "party %d updated %d partitions", self.party_id, len(pending.delta)
        )
        return EncodingDelta(party_id=self.party_id, columns=pending.delta)

    def query(self, element: int) -> tuple[SelectionSet, QueryMessage]:
        """Build the selection set for element and the message for the server."""
        p = self.params
        selection = build_selection(self.prf, element, self.cube, p.partition_size, p.band_width)
        return selection, QueryMessage(selectors=selection.selectors)

    def judge(
        self,
        selection: SelectionSet,
        response: ResponseMessage,
        complement_row: list[int],
    ) -> bool:
        """Membership of selection.element in this party's encoding."""
        own_mask_row = [int(v) for v in self.mask[:, selection.partition]]
        return self.decoder.judge(response.row, selection.element, own_mask_row, complement_row)
