"""Error taxonomy for the quote loop. None of these are fatal to the process."""

from __future__ import annotations


class QuoterError(Exception):
    """Base class for all quoter errors."""


class ConfigError(QuoterError):
    """Strategy configuration out of range."""


class TransportFailure(QuoterError):
    """The fetch could not complete, or returned an empty body."""


class InvalidResponse(QuoterError):
    """The body arrived but carries no usable price.

    ``raw`` keeps the full payload for diagnostics.
    """

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw


class ApiError(InvalidResponse):
    """The remote service reported an error or a rate-limit notice."""


class UnexpectedFormat(InvalidResponse):
    """The price field is missing and no error marker explains why."""


class PortfolioError(QuoterError):
    """A fill would leave cash or shares negative."""
