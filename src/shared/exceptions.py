"""
Custom exceptions for LSSView.

This module provides domain-specific exceptions for better error handling
and clearer error messages throughout the application.

Two failure tiers:
- Hard failures (FormatError, TransportError) abort a snapshot load and are
  surfaced to the user as a status message.
- AnnotationParseError never leaves the decoder; it is caught there and the
  annotation list degrades to empty.

Clean Architecture Note:
- This file belongs to the Shared layer (cross-cutting concerns)
- Can be imported by any layer (domain, infrastructure, viewer)
"""


class LSSViewError(Exception):
    """Base exception for all viewer-related errors."""

    pass


class FormatError(LSSViewError):
    """Raised when a snapshot buffer does not follow the .lssnap layout."""

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        expected: str | None = None,
        actual: str | None = None,
    ):
        """
        Initialize FormatError.

        Parameters
        ----------
        message : str
            Error message
        offset : int | None
            Byte offset at which the violation was detected
        expected : str | None
            Expected value (e.g. magic or version)
        actual : str | None
            Value actually found in the buffer
        """
        self.offset = offset
        self.expected = expected
        self.actual = actual

        full_message = message
        if expected is not None and actual is not None:
            full_message = f"{full_message} (expected: {expected}, got: {actual})"
        elif expected is not None:
            full_message = f"{full_message} (expected: {expected})"
        if offset is not None:
            full_message = f"{full_message} (offset: {offset})"

        super().__init__(full_message)


class TransportError(LSSViewError):
    """Raised when the snapshot bytes cannot be fetched.

    Transport failures are never retried automatically.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        """
        Initialize TransportError.

        Parameters
        ----------
        message : str
            Error message
        url : str | None
            Location that was being fetched
        status_code : int | None
            HTTP status code for non-success responses
        """
        self.url = url
        self.status_code = status_code

        full_message = message
        if status_code is not None:
            full_message = f"{full_message} (status: {status_code})"
        if url:
            full_message = f"{full_message} (url: {url})"

        super().__init__(full_message)


class AnnotationParseError(LSSViewError):
    """Raised when the annotation block cannot be parsed.

    Only used inside the decoder, which recovers by returning an empty
    annotation list.
    """

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause

        full_message = message
        if cause is not None:
            full_message = f"{full_message} (caused by: {cause})"

        super().__init__(full_message)


class ConfigError(LSSViewError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_path: str | None = None,
        field_name: str | None = None,
    ):
        """
        Initialize ConfigError.

        Parameters
        ----------
        message : str
            Error message
        config_path : str | None
            Path to the config file
        field_name : str | None
            Name of the invalid/missing config field
        """
        self.config_path = config_path
        self.field_name = field_name

        full_message = message
        if field_name:
            full_message = f"{full_message} (field: {field_name})"
        if config_path:
            full_message = f"{full_message} (config: {config_path})"

        super().__init__(full_message)
