"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~azrest.exceptions.AzrestError` subclass.
Shell wrappers can inspect the exit code to tell a bad command line apart
from a REST-level failure without parsing stderr.

Example::

    $ azrest api resources group show --id /subscriptions/x
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the id does not fit the path template
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command line or input record could not be turned into a request."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed."""

EXIT_NOT_FOUND = 4
"""The requested resource or metadata document was not found."""

EXIT_SERVER_ERROR = 5
"""The service answered with a status code the operation does not declare."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_METADATA_ERROR = 7
"""A command metadata document is malformed."""
