"""
Per-phase measurements of an MFUPSI run.

Every phase fills its own PhaseMetrics and merges it into the protocol's
MetricsAccumulator. Times are wall-clock milliseconds; byte counts come
from the messages (setup, update) or from the PIR cost model (query).
"""

import threading
import time
from dataclasses import dataclass, fields, replace


@dataclass
class PhaseMetrics:
    """Counters of one or more phases. All fields are additive."""

    # Setup
    setup_client_ms: float = 0.0  # Encoding of every party
    setup_server_ms: float = 0.0  # Aggregation
    setup_comm_bytes: int = 0  # Masked uploads

    # Update
    update_client_ms: float = 0.0
    update_server_ms: float = 0.0
    update_comm_bytes: int = 0  # Touched columns only

    # Query
    query_client_gen_ms: float = 0.0
    query_server_ms: float = 0.0
    query_decrypt_ms: float = 0.0
    query_bytes: int = 0
    response_bytes: int = 0
    query_compute_units: int = 0

    # Outcomes
    queries: int = 0
    expected_hits: int = 0  # Queries for elements the querier holds
    hits: int = 0  # Held elements judged present
    false_positives: int = 0  # Foreign elements judged present

    def merge(self, other: "PhaseMetrics") -> None:
        """Add other's counters into self."""
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def copy(self) -> "PhaseMetrics":
        return replace(self)

    @property
    def query_comm_bytes(self) -> int:
        return self.query_bytes + self.response_bytes

    @property
    def false_negatives(self) -> int:
        return self.expected_hits - self.hits

    @property
    def false_positive_rate(self) -> float:
        foreign = self.queries - self.expected_hits
        return self.false_positives / foreign if foreign else 0.0


class MetricsAccumulator:
    """Thread-safe running total of PhaseMetrics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._total = PhaseMetrics()

    def add(self, metrics: PhaseMetrics) -> None:
        with self._lock:
            self._total.merge(metrics)

    def snapshot(self) -> PhaseMetrics:
        with self._lock:
            return self._total.copy()

    def reset(self) -> None:
        with self._lock:
            self._total = PhaseMetrics()


class Timer:
    """
    Context manager measuring wall-clock time with time.perf_counter().

    Example:
        with Timer() as t:
            work()
        metrics.setup_client_ms += t.elapsed_ms
    """

    def __init__(self):
        self._start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.elapsed = time.perf_counter() - self._start

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000.0
