"""
PIR layer: hypercube addressing, the fold, cost models and decoding.
"""

from .hypercube import Hypercube, compute_pir_dimension_size
from .cost import Cost, CostModel, DenseCostModel, CompressedCostModel, QueryCost, account_query
from .engine import SelectionSet, QueryEngine, build_selection, fold, one_hot
from .decoder import Reconstruction, LeaveOneOutReconstruction, ResponseDecoder, judge

__all__ = [
    "Hypercube",
    "compute_pir_dimension_size",
    "Cost",
    "CostModel",
    "DenseCostModel",
    "CompressedCostModel",
    "QueryCost",
    "account_query",
    "SelectionSet",
    "QueryEngine",
    "build_selection",
    "fold",
    "one_hot",
    "Reconstruction",
    "LeaveOneOutReconstruction",
    "ResponseDecoder",
    "judge",
]
