__all__ = [
    "UXTabError",
    "ValidationError",
    "ConstructionOrderError",
    "NumericalIssue",
    "OutOfRangeError",
    "DegenerateTableError",
]


class UXTabError(Exception):
    """Base class for all uxtab-related errors."""

    pass


class ValidationError(UXTabError, ValueError):
    """Raised when input data fails validation checks."""

    pass


class ConstructionOrderError(ValidationError):
    """
    Raised when a sample coordinate is neither a new minimum nor a new maximum
    along its axis. Tables only grow from either end.
    """

    pass


class NumericalIssue(UXTabError, ArithmeticError):
    """Base class for errors raised while evaluating a table."""

    pass


class OutOfRangeError(NumericalIssue):
    """Raised when a point outside the tabulated domain is evaluated without extrapolation."""

    pass


class DegenerateTableError(UXTabError):
    """Raised when a table has too few sample points to be interpolated."""

    pass
