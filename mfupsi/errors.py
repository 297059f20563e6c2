"""
Exception types raised by the MFUPSI protocol.

All failures are configuration or precondition violations. None of them are
transient, so callers should never retry a failed phase.
"""


class MFUPSIError(Exception):
    """Base class for protocol errors."""


class InvalidDimension(MFUPSIError, ValueError):
    """A vector or matrix does not have the shape the encoding requires."""


class SingularSystem(MFUPSIError, ArithmeticError):
    """
    Elimination left an equation 0 = c with c != 0.

    Only raised by the strict solver; the default solver records such rows
    and carries on.
    """

    def __init__(self, rows: list[int]):
        self.rows = rows
        super().__init__(f"Inconsistent equations at rows: {rows}")


class InvalidHypercube(MFUPSIError, ValueError):
    """Fold edge L and dimension z cannot address every partition (L^z < b)."""


class UnknownClient(MFUPSIError, LookupError):
    """An operation referenced more parties than exist."""
