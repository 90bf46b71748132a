"""Auth manager -- registry and dispatcher for auth plugins.

:class:`AuthManager` maps auth-type strings to
:class:`~azrest.auth.base.AuthPlugin` instances and exposes a single
:meth:`~AuthManager.authenticate` method that the HTTP client calls once
per session. :func:`create_default_manager` returns a manager with the
built-in plugins registered.
"""

from __future__ import annotations

from azrest.auth.base import AuthPlugin, AuthResult
from azrest.exceptions import AuthError, ConfigError
from azrest.models import Profile


class AuthManager:
    """Registry and dispatcher for authentication plugins.

    Example::

        manager = AuthManager()
        manager.register(BearerAuthPlugin())
        result = manager.authenticate(profile)
    """

    def __init__(self) -> None:
        self._plugins: dict[str, AuthPlugin] = {}

    def register(self, plugin: AuthPlugin) -> None:
        """Register *plugin* under its ``auth_type``, replacing any previous one."""
        self._plugins[plugin.auth_type] = plugin

    def get_plugin(self, auth_type: str) -> AuthPlugin:
        """Return the plugin registered for *auth_type*.

        Raises:
            AuthError: If no plugin is registered for *auth_type*.
        """
        plugin = self._plugins.get(auth_type)
        if plugin is None:
            available = ", ".join(sorted(self._plugins)) or "(none)"
            raise AuthError(
                f"No auth plugin registered for type '{auth_type}'. "
                f"Available types: {available}"
            )
        return plugin

    def authenticate(self, profile: Profile) -> AuthResult:
        """Authenticate using the profile's auth configuration.

        Credential-source failures (unset variable, missing file) are
        reported as :class:`~azrest.exceptions.AuthError` so they exit with
        the auth failure code.

        Returns:
            The plugin's :class:`AuthResult`, or an empty one when the
            profile has no auth section.
        """
        if profile.auth is None:
            return AuthResult()
        plugin = self.get_plugin(profile.auth.type)
        problems = plugin.validate_config(profile.auth)
        if problems:
            raise AuthError("; ".join(problems))
        try:
            return plugin.authenticate(profile.auth)
        except ConfigError as exc:
            raise AuthError(str(exc)) from exc

    def list_types(self) -> list[str]:
        return sorted(self._plugins.keys())


def create_default_manager() -> AuthManager:
    """Create an :class:`AuthManager` with the built-in ``bearer`` plugin."""
    from azrest.plugins.bearer import BearerAuthPlugin

    manager = AuthManager()
    manager.register(BearerAuthPlugin())
    return manager
