"""
MFUPSI: multi-party fully updatable private set intersection benchmark.

Each party encodes its set as solutions of small banded linear systems
over Z_q, uploads the encoding under a private mask, and later updates
only the partitions its changes touch. Membership queries retrieve one
partition's row from the aggregated encoding with a hypercube PIR fold.

Modules:
- primitives: Field arithmetic, PRFs and matrix helpers
- encoding: Gaussian elimination solver and the client encoder
- pir: Hypercube addressing, the fold, cost models and decoding
- party / server: The two protocol roles
- protocol: Phase driver and metrics for one configuration
- protocols: Interfaces for alternative parties and servers
"""

from . import primitives
from . import encoding
from . import pir
from . import protocols
from .errors import MFUPSIError, InvalidDimension, SingularSystem, InvalidHypercube, UnknownClient
from .params import Params
from .party import Party
from .server import Aggregator, Server
from .metrics import PhaseMetrics, MetricsAccumulator
from .protocol import MFUPSIProtocol, generate_client_data

__all__ = [
    "primitives",
    "encoding",
    "pir",
    "protocols",
    "MFUPSIError",
    "InvalidDimension",
    "SingularSystem",
    "InvalidHypercube",
    "UnknownClient",
    "Params",
    "Party",
    "Aggregator",
    "Server",
    "PhaseMetrics",
    "MetricsAccumulator",
    "MFUPSIProtocol",
    "generate_client_data",
]
