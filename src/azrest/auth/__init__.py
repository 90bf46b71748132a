"""Plugin-based authentication for azrest.

- :class:`AuthPlugin` -- base class for auth strategies.
- :class:`AuthManager` -- maps auth type strings to plugins and
  authenticates a :class:`~azrest.models.Profile`.
- :func:`create_default_manager` -- a manager with the built-in plugins.

Typical usage::

    from azrest.auth import create_default_manager

    auth_result = create_default_manager().authenticate(profile)
"""

from azrest.auth.base import AuthPlugin, AuthResult
from azrest.auth.manager import AuthManager, create_default_manager

__all__ = [
    "AuthPlugin",
    "AuthResult",
    "AuthManager",
    "create_default_manager",
]
