class EnrichNetError(Exception):
    """Base class for all errors raised by enrichnet."""


class ParseError(EnrichNetError, ValueError):
    """A gene-set, ranking, node-role or matrix file is malformed."""


class ShapeError(EnrichNetError, ValueError):
    """A matrix is not square/symmetric, or two arrays do not line up."""


class LabelError(EnrichNetError, ValueError):
    """Node names are missing, duplicated or inconsistent."""


class RangeError(EnrichNetError, ValueError):
    """A cutoff, cap or bound lies outside its valid range."""
