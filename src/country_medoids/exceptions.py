"""
Error kinds raised by the clustering core.
"""


class InvalidInputError(ValueError):
    """Malformed or undersized input, unknown metric, or out-of-range K."""


class DegenerateInputError(ValueError):
    """Input has no distinguishable structure (e.g. all dissimilarities zero)."""


class NotConverged(UserWarning):
    """SWAP phase hit its iteration cap; the best clustering found is still returned."""
