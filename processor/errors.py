"""Error taxonomy for range fetching and report synthesis."""
from enum import Enum


class ErrorKind(str, Enum):
    """Classification attached to every failure surfaced to a caller."""
    RANGE_INVALID = 'range_invalid'
    RANGE_TOO_LARGE = 'range_too_large'
    EMPTY_INPUT = 'empty_input'
    PER_DATE_FETCH = 'per_date_fetch'
    FETCH_ABORTED = 'fetch_aborted'
    RATE_LIMITED = 'rate_limited'
    HARD_ERROR = 'hard_error'
    CONFIGURATION = 'configuration'
    ALL_PROVIDERS_EXHAUSTED = 'all_providers_exhausted'


class EventExplorerError(Exception):
    """Base error carrying a kind and the HTTP status a handler should use."""

    kind = ErrorKind.HARD_ERROR
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RangeInvalid(EventExplorerError):
    """Start date missing or unparsable, or end date before start date."""
    kind = ErrorKind.RANGE_INVALID
    status_code = 400


class RangeTooLarge(EventExplorerError):
    """Date range expands to more days than a single run may fetch."""
    kind = ErrorKind.RANGE_TOO_LARGE
    status_code = 400


class EmptyInput(EventExplorerError):
    """Nothing to synthesize."""
    kind = ErrorKind.EMPTY_INPUT
    status_code = 400


class ConfigurationError(EventExplorerError):
    """No text-generation provider is configured."""
    kind = ErrorKind.CONFIGURATION
    status_code = 500


class PerDateFetchError(EventExplorerError):
    """A single day's fetch failed; recorded, never fatal to the run."""
    kind = ErrorKind.PER_DATE_FETCH
    status_code = 502


class FetchAborted(EventExplorerError):
    """The in-flight request was torn down because the run was cancelled."""
    kind = ErrorKind.FETCH_ABORTED
    status_code = 499
