"""Exception hierarchy for azrest.

All exceptions inherit from :class:`AzrestError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`azrest.exit_codes`.
The top-level error handler in :func:`azrest.app.main` catches
``AzrestError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

The engine never prints. It raises one of these and leaves presentation to
the CLI layer.

Subclass hierarchy::

    AzrestError (exit 1)
    +-- InvalidUsageError              (exit 2)
    |   +-- UnknownSegmentError
    |   +-- IncompleteCommandError
    |   +-- VersionNotFoundError
    |   +-- MissingRequiredParameterError
    |   +-- ResourceIdMismatchError
    |   +-- OperationNotFoundError
    |   +-- UnsupportedInputError
    +-- AuthError                      (exit 3)
    +-- NotFoundError                  (exit 4)
    |   +-- MetadataNotFoundError
    +-- ResponseError                  (exit 5, or 3/4 by status)
    +-- ConnectionError_               (exit 6)
    +-- MetadataIntegrityError         (exit 7)
    +-- ConfigError                    (exit 1)
"""

from __future__ import annotations

from azrest.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_METADATA_ERROR,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class AzrestError(Exception):
    """Base exception for all azrest errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`azrest.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


# --- User input faults ---


class InvalidUsageError(AzrestError):
    """Raised when user input cannot be turned into a request."""

    exit_code = EXIT_INVALID_USAGE


class UnknownSegmentError(InvalidUsageError):
    """A command path segment matches neither a group nor a command."""


class IncompleteCommandError(InvalidUsageError):
    """The command path ended on a group rather than a command."""


class VersionNotFoundError(InvalidUsageError):
    """The requested API version is not available for the command."""


class MissingRequiredParameterError(InvalidUsageError):
    """A required path parameter has no bound value."""


class ResourceIdMismatchError(InvalidUsageError):
    """A resource ID does not fit the operation's path template."""


class OperationNotFoundError(InvalidUsageError):
    """No single operation could be derived from the supplied input."""

    def __init__(self, message: str = "no single operation could be determined from the input"):
        super().__init__(message)


class UnsupportedInputError(InvalidUsageError):
    """The input takes a path the engine deliberately does not support.

    Raised for a missing *optional* path parameter: dropping the segment
    would silently address a different resource.
    """


# --- Transport and service faults ---


class AuthError(AzrestError):
    """Raised when a bearer credential cannot be resolved or is rejected."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(AzrestError):
    """Raised when a resource or metadata document does not exist."""

    exit_code = EXIT_NOT_FOUND


class MetadataNotFoundError(NotFoundError):
    """Raised when the metadata store has no index or command document."""


class ResponseError(AzrestError):
    """Raised when the status code matches none of the declared responses.

    Carries the raw status code and body text so the user can diagnose the
    REST-level failure. The exit code follows the status class: 401/403 map
    to :data:`EXIT_AUTH_FAILURE`, 404 to :data:`EXIT_NOT_FOUND`, anything
    else to :data:`EXIT_SERVER_ERROR`.

    Args:
        status_code: HTTP status code returned by the service.
        body: Response body decoded as text.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(self, status_code: int, body: str):
        if status_code in (401, 403):
            code = EXIT_AUTH_FAILURE
        elif status_code == 404:
            code = EXIT_NOT_FOUND
        else:
            code = EXIT_SERVER_ERROR
        super().__init__(f"error response: {status_code}\n\n{body}", exit_code=code)
        self.status_code = status_code
        self.body = body


class ConnectionError_(AzrestError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


# --- Fatal and configuration faults ---


class MetadataIntegrityError(AzrestError):
    """Raised when a metadata document is malformed.

    This is never the user's fault and is never coerced away: it aborts the
    invocation with a diagnostic naming the broken document or node.
    """

    exit_code = EXIT_METADATA_ERROR


class ConfigError(AzrestError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
