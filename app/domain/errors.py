"""
Domain errors.

Provider failures are not exceptions: they travel as FetchError values inside
a failed FetchResult and are recovered by the merge engine.
"""


class PortfolioError(Exception):
    """Base class for portfolio dashboard errors."""


class AggregationInputError(PortfolioError):
    """The position list is empty or malformed."""


class InvalidRequestError(PortfolioError):
    """A boundary request carries unusable parameters."""


class InvalidSymbolError(InvalidRequestError):
    """A requested ticker symbol is not well formed."""


class CacheUnavailable(PortfolioError):
    """The cache backend could not be constructed or reached."""
