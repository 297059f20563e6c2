"""
Gaussian elimination over Z_q.

Solves M * e = y (mod q) for an m x d1 coefficient matrix. This is the
dominant cost of the setup phase: one forward pass is O(d1 * m) row
operations of width d1 with no band-width shortcut.

The solver never claims uniqueness. Columns without a pivot are free and
are set to 0, and only rows that received a pivot are guaranteed to hold.
"""

from dataclasses import dataclass, field
from typing import Sequence

from ..errors import InvalidDimension, SingularSystem
from ..primitives.field import mod_inverse, mul_mod, sub_mod


@dataclass
class Solution:
    """Result of solve()."""

    values: list[int]  # Length d1; free columns are 0
    pivot_rows: list[int] = field(default_factory=list)  # Original row index per pivot, in pivot order
    pivot_columns: list[int] = field(default_factory=list)  # Column of each pivot
    free_columns: list[int] = field(default_factory=list)
    inconsistent_rows: list[int] = field(default_factory=list)  # Original rows reduced to 0 = c, c != 0

    @property
    def rank(self) -> int:
        return len(self.pivot_rows)

    @property
    def consistent(self) -> bool:
        return not self.inconsistent_rows


def _check_shape(M: Sequence[Sequence[int]], y: Sequence[int]) -> int:
    """Validate M and y and return d1."""
    if len(y) != len(M):
        raise InvalidDimension(f"Target length {len(y)} does not match {len(M)} rows")
    d1 = len(M[0])
    if d1 == 0:
        raise InvalidDimension("d1 must be at least 1")
    for i, row in enumerate(M):
        if len(row) != d1:
            raise InvalidDimension(f"Row {i} has length {len(row)}, expected {d1}")
    return d1


def solve(
    M: Sequence[Sequence[int]],
    y: Sequence[int],
    q: int,
    strict: bool = False,
) -> Solution:
    """
    Solve M * e = y (mod q) by forward elimination and back substitution.

    Args:
        M: m x d1 coefficient rows
        y: Length-m targets
        q: Prime modulus
        strict: Raise SingularSystem when elimination leaves 0 = c with
            c != 0, instead of just recording the row

    Returns:
        Solution whose values satisfy every pivoted row
    """
    m = len(M)
    if m == 0:
        return Solution(values=[])
    d1 = _check_shape(M, y)

    # Augmented matrix [M | y]; rows[i] tracks the original index of row i
    aug = [[v % q for v in M[i]] + [y[i] % q] for i in range(m)]
    rows = list(range(m))

    pivot_row = 0
    pivot_columns = []
    free_columns = []

    for col in range(d1):
        if pivot_row >= m:
            free_columns.append(col)
            continue

        # First nonzero entry at or below the pivot row
        found = -1
        for r in range(pivot_row, m):
            if aug[r][col] != 0:
                found = r
                break

        if found == -1:
            free_columns.append(col)
            continue

        aug[pivot_row], aug[found] = aug[found], aug[pivot_row]
        rows[pivot_row], rows[found] = rows[found], rows[pivot_row]

        # Normalize so the pivot becomes 1
        pivot_inv = mod_inverse(aug[pivot_row][col], q)
        prow = aug[pivot_row]
        for j in range(col, d1 + 1):
            prow[j] = mul_mod(prow[j], pivot_inv, q)

        # Zero the column below the pivot
        for r in range(pivot_row + 1, m):
            factor = aug[r][col]
            if factor == 0:
                continue
            row = aug[r]
            for j in range(col, d1 + 1):
                row[j] = sub_mod(row[j], mul_mod(factor, prow[j], q), q)

        pivot_columns.append(col)
        pivot_row += 1

    # Rows below the last pivot have all-zero coefficients
    inconsistent = sorted(rows[r] for r in range(pivot_row, m) if aug[r][d1] != 0)
    if strict and inconsistent:
        raise SingularSystem(inconsistent)

    values = [0] * d1
    for i in range(pivot_row - 1, -1, -1):
        row = aug[i]
        lead = -1
        for j in range(d1):
            if row[j] != 0:
                lead = j
                break
        if lead == -1:
            continue

        residual = row[d1]
        for j in range(lead + 1, d1):
            if row[j]:
                residual = sub_mod(residual, mul_mod(row[j], values[j], q), q)

        # Leading coefficient is already 1 after normalization
        values[lead] = mul_mod(residual, mod_inverse(row[lead], q), q)

    return Solution(
        values=values,
        pivot_rows=rows[:pivot_row],
        pivot_columns=pivot_columns,
        free_columns=free_columns,
        inconsistent_rows=inconsistent,
    )


def gaussian_elimination(M: Sequence[Sequence[int]], y: Sequence[int], q: int) -> list[int]:
    """
    Lenient solve of M * e = y (mod q), returning only the solution vector.

    Inconsistent equations are not reported.
    """
    return solve(M, y, q).values
