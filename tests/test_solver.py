"""
Tests for Gaussian elimination over Z_q.
"""

import numpy as np
import pytest

from mfupsi.encoding.solver import gaussian_elimination, solve
from mfupsi.errors import InvalidDimension, SingularSystem
from mfupsi.primitives.prf import sparse_vector

from helpers import TEST_MODULUS


def satisfies(row, values, target, q):
    return sum(a * b for a, b in zip(row, values)) % q == target % q


class TestSolve:
    """Test solve() on small hand-checked systems."""

    def test_unique_solution(self):
        sol = solve([[1, 1], [1, 2]], [3, 5], 7)
        assert sol.values == [1, 2]
        assert sol.rank == 2
        assert sol.consistent
        assert sol.free_columns == []

    def test_empty_system(self):
        sol = solve([], [], 7)
        assert sol.values == []
        assert sol.rank == 0

    def test_row_swap_tracks_original_rows(self):
        sol = solve([[0, 1], [1, 0]], [4, 5], 7)
        assert sol.values == [5, 4]
        assert sol.pivot_rows == [1, 0]
        assert sol.pivot_columns == [0, 1]

    def test_inconsistent_row_recorded(self):
        sol = solve([[1, 0], [1, 0]], [1, 2], 7)
        assert sol.values == [1, 0]
        assert sol.pivot_rows == [0]
        assert sol.free_columns == [1]
        assert sol.inconsistent_rows == [1]
        assert not sol.consistent

    def test_dependent_consistent_rows(self):
        sol = solve([[1, 0], [2, 0]], [3, 6], 7)
        assert sol.consistent
        assert sol.rank == 1
        assert sol.values == [3, 0]

    def test_zero_row_with_nonzero_target(self):
        sol = solve([[0, 0, 0]], [5], 7)
        assert sol.values == [0, 0, 0]
        assert sol.inconsistent_rows == [0]
        assert sol.free_columns == [0, 1, 2]

    def test_strict_raises(self):
        with pytest.raises(SingularSystem, match="Inconsistent equations at rows") as exc:
            solve([[1, 0], [1, 0]], [1, 2], 7, strict=True)
        assert exc.value.rows == [1]

    def test_strict_accepts_consistent(self):
        sol = solve([[1, 1], [1, 2]], [3, 5], 7, strict=True)
        assert sol.values == [1, 2]

    def test_coefficients_reduced_mod_q(self):
        sol = solve([[8, 15]], [10], 7)
        assert satisfies([8, 15], sol.values, 10, 7)

    def test_more_equations_than_unknowns(self):
        sol = solve([[1, 0], [0, 1], [1, 1]], [2, 3, 5], 7)
        assert sol.values == [2, 3]
        assert sol.consistent
        assert sol.rank == 2

    def test_gaussian_elimination_returns_values(self):
        assert gaussian_elimination([[1, 1], [1, 2]], [3, 5], 7) == [1, 2]


class TestShapes:
    """Test shape validation."""

    def test_target_length_mismatch(self):
        with pytest.raises(InvalidDimension, match="does not match"):
            solve([[1, 0]], [1, 2], 7)

    def test_ragged_rows(self):
        with pytest.raises(InvalidDimension, match="Row 1 has length 1"):
            solve([[1, 0], [1]], [1, 2], 7)

    def test_zero_width(self):
        with pytest.raises(InvalidDimension, match="d1 must be at least 1"):
            solve([[]], [0], 7)


class TestBandedSystems:
    """Pivot rows hold on random banded systems."""

    @pytest.mark.parametrize("m", [1, 5, 12, 20])
    def test_pivot_rows_satisfied(self, m):
        d1, w, q = 16, 6, TEST_MODULUS
        rng = np.random.default_rng(m)
        xs = [int(x) for x in rng.integers(0, 1 << 62, size=m)]
        M = [sparse_vector(0xABCDEF, x, d1, w) for x in xs]
        y = [x % q for x in xs]

        sol = solve(M, y, q)
        assert len(sol.values) == d1
        assert sol.rank <= min(m, d1)
        for i in sol.pivot_rows:
            assert satisfies(M[i], sol.values, y[i], q)
        for col in sol.free_columns:
            assert sol.values[col] == 0
        assert sorted(sol.pivot_columns + sol.free_columns) == list(range(d1))

    def test_non_pivot_rows_are_dependent_or_inconsistent(self):
        d1, w, q = 4, 4, TEST_MODULUS
        xs = list(range(1, 11))
        M = [sparse_vector(7, x, d1, w) for x in xs]
        y = [(x * 31) % q for x in xs]

        sol = solve(M, y, q)
        leftover = set(range(len(xs))) - set(sol.pivot_rows)
        for i in leftover:
            if i not in sol.inconsistent_rows:
                assert satisfies(M[i], sol.values, y[i], q)
