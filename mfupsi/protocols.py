"""
Protocol interfaces for the parties and the server of MFUPSI.

Any party or server that satisfies these interfaces can be driven by
MFUPSIProtocol, so alternative encoders or PIR back ends can be swapped in.

Phase model:
- Setup: each party encodes its data set and uploads it under a lifetime
  mask; the server sums the uploads
- Update: a party re-encodes the partitions its changes touch and sends
  the column deltas; the server merges them in place
- Query: a party sends one-hot selectors, the server folds, and the party
  judges membership from the returned row
"""

from typing import Iterable, Protocol

import numpy as np

from .encoding.encoder import EncodingState
from .messages import EncodingDelta, MaskedUpload, QueryMessage, ResponseMessage
from .pir.cost import QueryCost
from .pir.engine import SelectionSet


class PSIParty(Protocol):
    """
    Protocol for MFUPSI parties.

    Every phase is split into a side-effect free prepare step and a commit
    step, so the driver can keep a failing phase atomic.
    """

    party_id: int
    data_set: set[int]

    def prepare_setup(self) -> EncodingState:
        """Encode the data set without installing it."""
        ...

    def commit_setup(self, state: EncodingState, mask: np.ndarray) -> MaskedUpload:
        """
        Install the encoding and mask.

        Returns:
            The masked upload for the server
        """
        ...

    def prepare_update(self, adds: Iterable[int], deletes: Iterable[int]):
        """Re-encode touched partitions without installing them."""
        ...

    def commit_update(self, pending) -> EncodingDelta:
        """Install a prepared update and return its delta message."""
        ...

    def query(self, element: int) -> tuple[SelectionSet, QueryMessage]:
        ...

    def judge(
        self,
        selection: SelectionSet,
        response: ResponseMessage,
        complement_row: list[int],
    ) -> bool:
        ...


class PSIServer(Protocol):
    """
    Protocol for MFUPSI servers.

    A server must support:
    1. Aggregating setup uploads
    2. Merging incremental deltas
    3. Answering PIR queries
    """

    def setup(self, uploads: list[MaskedUpload]) -> None:
        ...

    def update(self, deltas: list[EncodingDelta]) -> None:
        ...

    def answer(self, query: QueryMessage) -> ResponseMessage:
        ...

    def account(self) -> QueryCost:
        """Cost-model figures of one query."""
        ...
