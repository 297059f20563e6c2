"""
Field arithmetic, PRFs and matrix helpers shared by every protocol layer.
"""

from .field import add_mod, sub_mod, mul_mod, fast_pow, mod_inverse, is_prime, element_bytes
from .prf import PRFProtocol, Keys, MixPRF, hash_partition, sparse_vector, band_support
from .matrix import (
    zero_matrix,
    random_matrix,
    as_field_matrix,
    matrix_add,
    matrix_sub,
    vector_matrix_multiply,
    matrix_size_bytes,
)

__all__ = [
    "add_mod",
    "sub_mod",
    "mul_mod",
    "fast_pow",
    "mod_inverse",
    "is_prime",
    "element_bytes",
    "PRFProtocol",
    "Keys",
    "MixPRF",
    "hash_partition",
    "sparse_vector",
    "band_support",
    "zero_matrix",
    "random_matrix",
    "as_field_matrix",
    "matrix_add",
    "matrix_sub",
    "vector_matrix_multiply",
    "matrix_size_bytes",
]
