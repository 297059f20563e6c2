"""
Hypercube addressing for the PIR fold.

The b partitions are laid out as the first b slots of a z-dimensional cube
with edge L. A partition index j maps to z mixed-radix digits, most
significant first, and each folding round consumes one digit.
"""

from dataclasses import dataclass

from ..errors import InvalidHypercube


def compute_pir_dimension_size(num_partitions: int, pir_dimension: int) -> int:
    """
    Smallest edge L with L^z >= b, i.e. ceil(b^(1/z)).

    The float root is only a starting point; integer correction removes
    rounding error in both directions (125^(1/3) evaluates to
    5.000000000000001).
    """
    if pir_dimension < 1:
        raise InvalidHypercube("pir_dimension must be at least 1")
    if num_partitions < 1:
        raise InvalidHypercube("num_partitions must be at least 1")

    edge = max(1, round(num_partitions ** (1.0 / pir_dimension)))
    while edge ** pir_dimension < num_partitions:
        edge += 1
    while edge > 1 and (edge - 1) ** pir_dimension >= num_partitions:
        edge -= 1
    return edge


@dataclass(frozen=True)
class Hypercube:
    """A z-dimensional cube of edge L holding b partitions."""

    num_partitions: int  # b
    dimension: int  # z
    edge: int  # L

    def __post_init__(self):
        if self.dimension < 1:
            raise InvalidHypercube("dimension must be at least 1")
        if self.edge < 1 or self.edge ** self.dimension < self.num_partitions:
            raise InvalidHypercube(
                f"edge {self.edge}^{self.dimension} cannot cover {self.num_partitions} partitions"
            )

    @classmethod
    def for_partitions(cls, num_partitions: int, dimension: int) -> "Hypercube":
        return cls(num_partitions, dimension, compute_pir_dimension_size(num_partitions, dimension))

    @property
    def num_slots(self) -> int:
        """Cube capacity L^z."""
        return self.edge ** self.dimension

    def decompose(self, index: int) -> tuple[int, ...]:
        """
        Digits of index in base L, most significant first.

        digit_d = floor(index / L^(z-d)) mod L for d = 1..z.
        """
        if not 0 <= index < self.num_slots:
            raise IndexError(f"Slot {index} outside cube of {self.num_slots} slots")
        digits = []
        for d in range(self.dimension - 1, -1, -1):
            digits.append((index // self.edge ** d) % self.edge)
        return tuple(digits)

    def recompose(self, digits: tuple[int, ...]) -> int:
        """Inverse of decompose()."""
        if len(digits) != self.dimension:
            raise ValueError(f"Expected {self.dimension} digits, got {len(digits)}")
        index = 0
        for digit in digits:
            if not 0 <= digit < self.edge:
                raise ValueError(f"Digit {digit} outside [0, {self.edge})")
            index = index * self.edge + digit
        return index

    def active_slots(self, round_idx: int) -> int:
        """Slots still live at the start of folding round round_idx (0-based)."""
        return self.edge ** (self.dimension - round_idx)
