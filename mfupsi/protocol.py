"""
Driver for a full MFUPSI benchmark run.

MFUPSIProtocol owns the parties, the server and the metrics of one
configuration and exposes the phase surface:

    protocol = MFUPSIProtocol(Params.test(), seed=1)
    protocol.generate_keys()
    protocol.setup_phase()
    protocol.update_phase(2)
    protocol.query_phase()
    print(protocol.get_metrics())

Each phase computes every party's result before installing any of them,
so a phase that raises leaves the protocol exactly as it was.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence, TypeVar

import numpy as np

from .errors import UnknownClient
from .metrics import MetricsAccumulator, PhaseMetrics, Timer
from .params import Params
from .party import Party
from .pir.cost import CostModel
from .pir.decoder import LeaveOneOutReconstruction, Reconstruction
from .primitives.matrix import random_matrix
from .primitives.prf import Keys, MixPRF
from .protocols import PSIParty, PSIServer
from .server import Server

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def generate_client_data(
    size: int,
    rng: Optional[np.random.Generator] = None,
    exclude: Iterable[int] = (),
) -> set[int]:
    """
    Draw size distinct 64-bit elements, none of them in exclude.

    Args:
        size: Number of elements
        rng: Random generator (fresh unseeded one if None)
        exclude: Elements that must not be drawn

    Returns:
        Set of exactly size elements
    """
    if size < 0:
        raise ValueError("size must be non-negative")
    rng = rng or np.random.default_rng()
    excluded = set(exclude)
    data: set[int] = set()
    while len(data) < size:
        draw = rng.integers(0, 1 << 64, size=size - len(data), dtype=np.uint64)
        for value in draw:
            value = int(value)
            if value not in excluded:
                data.add(value)
    return data


class MFUPSIProtocol:
    """
    One MFUPSI configuration: n parties, one server, one metrics accumulator.

    Party 0 is the querier of the query phase.
    """

    def __init__(
        self,
        params: Params,
        cost_model: Optional[CostModel] = None,
        seed: Optional[int] = None,
        workers: int = 1,
        reconstruction: Optional[Reconstruction] = None,
    ):
        """
        Initialize the protocol.

        Args:
            params: Protocol parameters
            cost_model: PIR cost model (server default if None)
            seed: Seed for data sets, masks, updates and (if given) keys
            workers: Threads for per-party encoding work
            reconstruction: Mask-cancellation strategy for decoding
                (LeaveOneOutReconstruction if None)
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")

        self.params = params
        self.workers = workers
        self._seeded = seed is not None
        self._rng = np.random.default_rng(seed)
        self.server: PSIServer = Server(params, cost_model)
        self.reconstruction: Reconstruction = reconstruction or LeaveOneOutReconstruction(
            params.hypercube, params.partition_size, params.modulus
        )
        self._metrics = MetricsAccumulator()
        self._keys: Optional[Keys] = None
        self._prf: Optional[MixPRF] = None
        self._parties: list[PSIParty] = []

    @property
    def keys(self) -> Keys:
        if self._keys is None:
            raise RuntimeError("Must call generate_keys() before using keys")
        return self._keys

    @property
    def parties(self) -> list[PSIParty]:
        return list(self._parties)

    @property
    def is_setup(self) -> bool:
        return bool(self._parties)

    def _map(self, fn: Callable[[T], R], items: Sequence[T]) -> list[R]:
        """Apply fn to every item, in parallel when workers > 1."""
        if self.workers == 1 or len(items) <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = [executor.submit(fn, item) for item in items]
            return [f.result() for f in futures]

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def generate_keys(self) -> Keys:
        """
        Draw the shared keys (K1, K2, Kr).

        Keys come from the OS CSPRNG unless the protocol was seeded.

        Raises:
            RuntimeError: If called after setup_phase()
        """
        if self.is_setup:
            raise RuntimeError("Keys cannot change after setup_phase()")
        self._keys = Keys.generate(self._rng if self._seeded else None)
        self._prf = MixPRF(self._keys)
        return self._keys

    def setup_phase(self, data_sets: Optional[Sequence[Iterable[int]]] = None) -> PhaseMetrics:
        """
        Encode, mask and upload every party's data set; aggregate on the server.

        Args:
            data_sets: One data set per party (random ones if None)

        Returns:
            Metrics of this phase

        Raises:
            RuntimeError: If keys are missing or setup already ran
            ValueError: If the number of data sets differs from num_clients
        """
        if self._prf is None:
            raise RuntimeError("Must call generate_keys() before setup_phase()")
        if self.is_setup:
            raise RuntimeError("setup_phase() already ran")

        p = self.params
        if data_sets is None:
            data_sets = [generate_client_data(p.dataset_size, self._rng) for _ in range(p.num_clients)]
        if len(data_sets) != p.num_clients:
            raise ValueError(f"Expected {p.num_clients} data sets, got {len(data_sets)}")

        logger.info("setup: %d parties, %d partitions", p.num_clients, p.num_partitions)
        parties: list[PSIParty] = [Party(i, p, self._prf, data) for i, data in enumerate(data_sets)]

        # Masks are drawn outside the timed region
        masks = [random_matrix(p.partition_size, p.num_partitions, p.modulus, self._rng) for _ in parties]

        metrics = PhaseMetrics()
        with Timer() as t:
            states = self._map(lambda party: party.prepare_setup(), parties)
            uploads = [party.commit_setup(state, mask) for party, state, mask in zip(parties, states, masks)]
        metrics.setup_client_ms = t.elapsed_ms
        metrics.setup_comm_bytes = sum(u.size_bytes(p.word_bytes) for u in uploads)

        with Timer() as t:
            self.server.setup(uploads)
        metrics.setup_server_ms = t.elapsed_ms

        for upload in uploads:
            self.reconstruction.register(upload.party_id, upload.matrix)
        self._parties = parties

        logger.info(
            "setup done: client %.1f ms, server %.1f ms, %d bytes",
            metrics.setup_client_ms,
            metrics.setup_server_ms,
            metrics.setup_comm_bytes,
        )
        self._metrics.add(metrics)
        return metrics

    def update_phase(self, num_parties_to_update: int) -> PhaseMetrics:
        """
        Apply num_updates random changes to each of the first parties.

        Half of the changes (rounded up) add fresh elements, the rest
        delete existing ones.

        Args:
            num_parties_to_update: How many parties (from party 0) update

        Returns:
            Metrics of this phase

        Raises:
            RuntimeError: If setup_phase() has not run
            UnknownClient: If more parties are requested than exist
        """
        if not self.is_setup:
            raise RuntimeError("Must call setup_phase() before update_phase()")
        if num_parties_to_update < 0:
            raise ValueError("num_parties_to_update must be non-negative")
        if num_parties_to_update > len(self._parties):
            raise UnknownClient(
                f"Cannot update {num_parties_to_update} parties; only {len(self._parties)} exist"
            )

        p = self.params
        parties = self._parties[:num_parties_to_update]
        changes = [self._draw_changes(party) for party in parties]

        metrics = PhaseMetrics()
        with Timer() as t:
            pending = self._map(
                lambda item: item[0].prepare_update(*item[1]),
                list(zip(parties, changes)),
            )
            deltas = [party.commit_update(pu) for party, pu in zip(parties, pending)]
        metrics.update_client_ms = t.elapsed_ms
        metrics.update_comm_bytes = sum(d.size_bytes(p.word_bytes) for d in deltas)

        with Timer() as t:
            self.server.update(deltas)
        metrics.update_server_ms = t.elapsed_ms

        for delta in deltas:
            self.reconstruction.apply_delta(
                delta.party_id, delta.to_matrix(p.partition_size, p.num_partitions)
            )

        logger.info(
            "update done: %d parties, client %.1f ms, server %.1f ms, %d bytes",
            num_parties_to_update,
            metrics.update_client_ms,
            metrics.update_server_ms,
            metrics.update_comm_bytes,
        )
        self._metrics.add(metrics)
        return metrics

    def _draw_changes(self, party: PSIParty) -> tuple[set[int], set[int]]:
        n = self.params.num_updates
        num_deletes = min(n // 2, len(party.data_set))
        adds = generate_client_data(n - n // 2, self._rng, exclude=party.data_set)
        current = sorted(party.data_set)
        picks = self._rng.choice(len(current), size=num_deletes, replace=False) if num_deletes else []
        deletes = {current[int(i)] for i in picks}
        return adds, deletes

    def query_phase(self, elements: Optional[Sequence[int]] = None) -> PhaseMetrics:
        """
        Run num_queries membership queries from party 0.

        By default queries alternate between elements party 0 holds and
        fresh elements it does not.

        Args:
            elements: Elements to query instead of the default mix

        Returns:
            Metrics of this phase, including hit and false-positive counts
        """
        if not self.is_setup:
            raise RuntimeError("Must call setup_phase() before query_phase()")

        querier = self._parties[0]
        if elements is None:
            elements = self._draw_queries(querier)

        metrics = PhaseMetrics()
        for element in elements:
            self._run_query(querier, element, metrics)

        logger.info(
            "query done: %d queries, %d/%d hits, %d false positives",
            metrics.queries,
            metrics.hits,
            metrics.expected_hits,
            metrics.false_positives,
        )
        self._metrics.add(metrics)
        return metrics

    def query(self, element: int, party_id: int = 0) -> bool:
        """Single membership query, outside any metrics."""
        if not self.is_setup:
            raise RuntimeError("Must call setup_phase() before query()")
        if not 0 <= party_id < len(self._parties):
            raise UnknownClient(f"No party {party_id}")
        party = self._parties[party_id]
        selection, message = party.query(element)
        response = self.server.answer(message)
        complement = self.reconstruction.complement(party_id, selection)
        return party.judge(selection, response, [int(v) for v in complement])

    def _draw_queries(self, querier: PSIParty) -> list[int]:
        held = sorted(querier.data_set)
        elements = []
        for i in range(self.params.num_queries):
            if i % 2 == 0 and held:
                elements.append(held[int(self._rng.integers(len(held)))])
            else:
                elements.append(generate_client_data(1, self._rng, exclude=querier.data_set).pop())
        return elements

    def _run_query(self, party: PSIParty, element: int, metrics: PhaseMetrics) -> None:
        with Timer() as t:
            selection, message = party.query(element)
        metrics.query_client_gen_ms += t.elapsed_ms

        with Timer() as t:
            response = self.server.answer(message)
        metrics.query_server_ms += t.elapsed_ms

        complement = [int(v) for v in self.reconstruction.complement(party.party_id, selection)]

        with Timer() as t:
            member = party.judge(selection, response, complement)
        metrics.query_decrypt_ms += t.elapsed_ms

        cost = self.server.account()
        metrics.query_bytes += cost.query_bytes
        metrics.response_bytes += cost.response_bytes
        metrics.query_compute_units += cost.compute_units

        expected = element in party.data_set
        metrics.queries += 1
        metrics.expected_hits += int(expected)
        metrics.hits += int(expected and member)
        metrics.false_positives += int(member and not expected)
        logger.debug("query %d: member=%s expected=%s", element, member, expected)

    # -------------------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------------------

    def get_metrics(self) -> PhaseMetrics:
        """Totals of every phase since construction or the last reset."""
        return self._metrics.snapshot()

    def reset_metrics(self) -> None:
        self._metrics.reset()
