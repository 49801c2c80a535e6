"""Domain-specific exceptions for ClearVue Core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from ClearVueError for easy catching.
"""


class ClearVueError(Exception):
    """Base exception for all ClearVue Core errors.

    This is the base class for all domain-specific exceptions in the package.
    Users can catch this exception to handle any ClearVue Core error.
    """

    pass


class ConfigError(ClearVueError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided
    - Required configuration is missing
    """

    pass


class DataQualityError(ClearVueError):
    """Raised when input facts cannot be used.

    This exception is raised when:
    - Required columns are missing from input data
    - No alias of a required field is present in the source frame
    """

    pass


class InvalidDateError(ClearVueError, ValueError):
    """Raised when a transaction date is missing or cannot be parsed.

    During reconciliation this is caught per record and reported as a
    RecordError; the batch keeps going.
    """

    pass


class InvalidPeriodError(ClearVueError, ValueError):
    """Raised when a fiscal period label or month number is not valid."""

    pass


class InconsistentBoundaryError(ClearVueError):
    """Raised when fiscal windows are not contiguous.

    Correct boundary arithmetic never produces this; seeing it means the
    resolver itself is broken.
    """

    pass


class EmptyAggregationWarning(UserWarning):
    """Emitted when a rollup runs over zero facts.

    The rollup still returns a well-formed zero-valued result; the warning
    lets callers tell "no data" apart from "all zeros".
    """

    pass
