"""Pydantic configuration models for azrest.

These models are serialised as JSON in the user's config directory and
read back by :mod:`azrest.config`:

* :class:`AuthConfig` -- where the bearer credential comes from.
* :class:`RequestConfig` -- timeout, TLS verification, retries.
* :class:`OutputConfig` -- default output format.
* :class:`Profile` -- one service endpoint plus its auth and metadata.
* :class:`GlobalConfig` -- user-wide defaults.

Command metadata models live in :mod:`azrest.metadata`, not here.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_ENDPOINT = "https://management.azure.com"
DEFAULT_TOKEN_SOURCE = "env:AZURE_ACCESS_TOKEN"


class AuthConfig(BaseModel):
    """Authentication configuration embedded in a :class:`Profile`.

    ``type`` selects the auth plugin (only ``bearer`` ships built in) and
    ``source`` is a credential descriptor resolved by
    :func:`~azrest.config.resolve_credential`.

    Example::

        AuthConfig(type="bearer", source="file:~/.azure/token")
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="bearer", description="Auth type: bearer")
    source: str = Field(
        default=DEFAULT_TOKEN_SOURCE,
        description="Credential source: env:VAR, file:/path, prompt",
    )


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every call in a profile."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/azrest/config.json``.

    Fields here have the lowest precedence and can be overridden by project
    config, environment variables, or CLI flags. See
    :func:`~azrest.config.resolve_config` for the full precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    metadata_path: Optional[str] = Field(
        default=None, description="Default metadata bundle directory"
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """A service endpoint with its credential and metadata bundle.

    Profiles are stored one per file under the ``profiles/`` config
    directory and managed with ``azrest config``. When no profile exists a
    built-in ``default`` profile targeting the public management endpoint
    is used.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    endpoint: str = Field(default=DEFAULT_ENDPOINT, description="Service base URL")
    metadata_path: Optional[str] = Field(
        default=None, description="Metadata bundle directory for this profile"
    )
    auth: Optional[AuthConfig] = Field(default_factory=AuthConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
