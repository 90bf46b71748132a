"""Abstract base class for authentication plugins.

- :class:`AuthResult` -- the HTTP headers and query parameters an auth
  plugin produces for outgoing requests.
- :class:`AuthPlugin` -- the abstract base class every authentication
  strategy extends.

Interactive login and token refresh are outside this package; a plugin
turns an already-issued credential into request headers.

See Also:
    :mod:`azrest.auth.manager` for plugin registration and dispatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from azrest.models import AuthConfig


class AuthResult:
    """Authentication artifacts to inject into HTTP requests.

    Args:
        headers: HTTP headers to add (e.g. ``{"Authorization": "Bearer ..."}``).
        params: Query-string parameters to add.

    Example::

        result = AuthResult(headers={"Authorization": "Bearer tok123"})
    """

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ):
        self.headers = headers or {}
        self.params = params or {}


class AuthPlugin(ABC):
    """Base class for authentication plugins.

    Subclasses provide an :attr:`auth_type` identifier and an
    :meth:`authenticate` implementation. Plugins are registered with
    :class:`~azrest.auth.manager.AuthManager` and looked up by
    ``auth_type`` at runtime.
    """

    @property
    @abstractmethod
    def auth_type(self) -> str:
        """Return the unique auth type identifier this plugin handles."""
        ...

    @abstractmethod
    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        """Resolve credentials and return auth artifacts for HTTP requests.

        Raises:
            AuthError: If credentials cannot be resolved.
        """
        ...

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        """Return human-readable problems with *auth_config* (empty when valid)."""
        return []
