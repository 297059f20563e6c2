"""
Tests for field arithmetic, PRFs and matrix helpers.
"""

import numpy as np
import pytest

from mfupsi.errors import InvalidDimension
from mfupsi.primitives import (
    Keys,
    add_mod,
    as_field_matrix,
    band_support,
    element_bytes,
    fast_pow,
    hash_partition,
    is_prime,
    matrix_add,
    matrix_size_bytes,
    matrix_sub,
    mod_inverse,
    mul_mod,
    random_matrix,
    sparse_vector,
    sub_mod,
    vector_matrix_multiply,
    zero_matrix,
)
from mfupsi.primitives.prf import MASK64

from helpers import TEST_MODULUS, make_prf


class TestField:
    """Test Z_q arithmetic."""

    def test_basic_ops(self):
        assert add_mod(5, 4, 7) == 2
        assert sub_mod(2, 5, 7) == 4
        assert mul_mod(3, 5, 7) == 1

    def test_large_modulus_no_overflow(self):
        q = (1 << 64) - 59
        assert add_mod(q - 1, q - 1, q) == q - 2
        assert mul_mod(q - 1, q - 1, q) == 1

    def test_fast_pow(self):
        assert fast_pow(3, 4, 7) == 81 % 7
        assert fast_pow(2, 0, 7) == 1
        assert fast_pow(5, 10, 1) == 0
        q = (1 << 64) - 59
        assert fast_pow(12345, q - 1, q) == 1  # Fermat

    @pytest.mark.parametrize("q", [2, 7, 257])
    def test_inverse_every_nonzero_element(self, q):
        for a in range(1, q):
            assert mul_mod(a, mod_inverse(a, q), q) == 1

    def test_inverse_property(self):
        for q in (7, TEST_MODULUS, (1 << 32) - 5):
            for a in (1, 2, 3, q - 1, 12345 % q):
                assert mul_mod(a, mod_inverse(a, q), q) == 1

    def test_inverse_of_zero_is_zero(self):
        assert mod_inverse(0, 7) == 0
        assert mod_inverse(14, 7) == 0

    def test_is_prime(self):
        assert is_prime(2)
        assert is_prime(TEST_MODULUS)
        assert is_prime((1 << 32) - 5)
        assert is_prime((1 << 64) - 59)
        assert not is_prime(1)
        assert not is_prime(0)
        assert not is_prime(561)  # Carmichael
        assert not is_prime(1 << 32)

    def test_element_bytes(self):
        assert element_bytes(2) == 1
        assert element_bytes(257) == 2
        assert element_bytes(TEST_MODULUS) == 3
        assert element_bytes((1 << 32) - 5) == 4
        assert element_bytes((1 << 64) - 59) == 8


class TestPRF:
    """Test the keyed mixing functions."""

    def test_hash_of_zero(self):
        assert hash_partition(0, 0) == 0

    def test_hash_depends_on_key_xor_input(self):
        assert hash_partition(0xDEADBEEF, 42) == hash_partition(0xDEADBEEF ^ 42, 0)

    def test_hash_is_deterministic_and_64_bit(self):
        for x in (1, 2, MASK64, 1 << 40):
            h = hash_partition(7, x)
            assert h == hash_partition(7, x)
            assert 0 <= h <= MASK64

    def test_hash_avalanche(self):
        assert hash_partition(0, 1) != hash_partition(0, 2)
        assert hash_partition(1, 5) != hash_partition(2, 5)

    def test_sparse_vector_band(self):
        for x in range(50):
            v = sparse_vector(99, x, 16, 5)
            start, bits = band_support(99, x, 16, 5)
            assert len(v) == 16
            assert 0 <= start <= 16 - 5
            assert v[start:start + 5] == bits
            assert all(c == 0 for i, c in enumerate(v) if not start <= i < start + 5)
            assert set(v) <= {0, 1}

    def test_full_width_band_starts_at_zero(self):
        start, bits = band_support(3, 1234, 8, 8)
        assert start == 0
        assert len(bits) == 8

    def test_band_width_validation(self):
        with pytest.raises(InvalidDimension, match="band width"):
            band_support(1, 1, 4, 5)
        with pytest.raises(InvalidDimension, match="band width"):
            band_support(1, 1, 4, 0)
        with pytest.raises(InvalidDimension, match="d1 must be at least 1"):
            sparse_vector(1, 1, 0, 1)

    def test_seeded_keys_reproducible(self):
        a = Keys.generate(np.random.default_rng(5))
        b = Keys.generate(np.random.default_rng(5))
        assert a == b
        assert all(0 <= k <= MASK64 for k in (a.k1, a.k2, a.kr))

    def test_unseeded_keys_differ(self):
        assert Keys.generate() != Keys.generate()

    def test_mix_prf(self):
        prf = make_prf(1)
        keys = prf.keys
        assert prf.key == keys.k1
        assert prf.evaluate(10) == hash_partition(keys.k1, 10)
        assert prf.partition(10, 13) == hash_partition(keys.k1, 10) % 13
        assert prf.represent(10, TEST_MODULUS) == hash_partition(keys.kr, 10) % TEST_MODULUS
        assert prf.band(10, 16, 4) == sparse_vector(keys.k2, 10, 16, 4)


class TestMatrix:
    """Test object-dtype matrix helpers."""

    def test_zero_matrix(self):
        m = zero_matrix(2, 3)
        assert m.shape == (2, 3)
        assert m.dtype == object
        assert all(v == 0 for v in m.flat)

    def test_add_sub_inverse(self):
        q = (1 << 64) - 59
        a = random_matrix(3, 4, q, np.random.default_rng(0))
        b = random_matrix(3, 4, q, np.random.default_rng(1))
        assert np.array_equal(matrix_sub(matrix_add(a, b, q), b, q), a)

    def test_shape_mismatch(self):
        with pytest.raises(InvalidDimension, match="Shape mismatch"):
            matrix_add(zero_matrix(2, 2), zero_matrix(2, 3), 7)
        with pytest.raises(InvalidDimension, match="Shape mismatch"):
            matrix_sub(zero_matrix(2, 2), zero_matrix(3, 2), 7)

    def test_random_matrix_range(self):
        for q in (7, (1 << 64) - 59, (1 << 89) - 1):
            m = random_matrix(4, 4, q, np.random.default_rng(3))
            assert all(0 <= int(v) < q for v in m.flat)

    def test_random_matrix_seeded(self):
        a = random_matrix(2, 5, TEST_MODULUS, np.random.default_rng(9))
        b = random_matrix(2, 5, TEST_MODULUS, np.random.default_rng(9))
        assert np.array_equal(a, b)

    def test_vector_matrix_multiply(self):
        m = as_field_matrix([[1, 2], [3, 4]], 7)
        assert [int(v) for v in vector_matrix_multiply([1, 1], m, 7)] == [4, 6]
        assert [int(v) for v in vector_matrix_multiply([2, 1], m, 7)] == [5, 1]

    def test_vector_matrix_length_mismatch(self):
        with pytest.raises(InvalidDimension):
            vector_matrix_multiply([1, 2, 3], zero_matrix(2, 2), 7)

    def test_as_field_matrix_reduces(self):
        m = as_field_matrix([[-1, 8]], 7)
        assert [int(v) for v in m.flat] == [6, 1]

    def test_matrix_size_bytes(self):
        assert matrix_size_bytes(512, 100) == 512 * 100 * 8
        assert matrix_size_bytes(2, 3, 3) == 18
