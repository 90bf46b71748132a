"""Bearer token authentication plugin.

:class:`BearerAuthPlugin` implements the ``bearer`` auth type. An access
token already issued for the service (for example by
``az account get-access-token``) is resolved from the configured
``source`` and sent as ``Authorization: Bearer <token>``.
"""

from __future__ import annotations

from azrest.auth.base import AuthPlugin, AuthResult
from azrest.config import resolve_credential
from azrest.exceptions import AuthError
from azrest.models import AuthConfig


class BearerAuthPlugin(AuthPlugin):
    """Authenticate via a bearer token in the Authorization header."""

    @property
    def auth_type(self) -> str:
        return "bearer"

    def authenticate(self, auth_config: AuthConfig) -> AuthResult:
        token = resolve_credential(auth_config.source).strip()
        if not token:
            raise AuthError(f"Empty access token (source: {auth_config.source})")
        return AuthResult(headers={"Authorization": f"Bearer {token}"})

    def validate_config(self, auth_config: AuthConfig) -> list[str]:
        errors: list[str] = []
        if not auth_config.source:
            errors.append("Bearer auth requires a 'source' for the token")
        return errors
