"""Synchronous HTTP transport with bearer auth, dry-run preview, and retry.

:class:`SyncClient` is the production implementation of
:class:`~azrest.engine.invoke.Transport`. It wraps :class:`httpx.Client`
and layers on:

- **Auth injection** -- headers from
  :class:`~azrest.auth.base.AuthResult` are merged into every request.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Dry-run preview** -- :meth:`SyncClient.preview` prints a request to
  stderr without sending it.

Status codes are not interpreted here. The engine's response router
decides which codes are successful for each operation.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx

from azrest.auth.base import AuthResult
from azrest.auth.manager import AuthManager
from azrest.engine.invoke import TransportResponse
from azrest.engine.request import API_VERSION
from azrest.exceptions import ConnectionError_
from azrest.models import Profile
from azrest.output import get_output


class SyncClient:
    """Synchronous transport for one service endpoint.

    Must be used as a context manager so that the underlying connection
    pool is opened and closed.

    Args:
        profile: Supplies ``endpoint``, auth config, and request settings
            (timeout, retries, SSL verify).
        auth_manager: Resolves credentials on entry. When ``None``, no auth
            is injected.
        transport: Optional :class:`httpx.BaseTransport` (tests pass an
            :class:`httpx.MockTransport`).

    Example::

        with SyncClient(profile, auth_manager=create_default_manager()) as client:
            response = client.execute("GET", "/subscriptions", "2022-12-01")
    """

    def __init__(
        self,
        profile: Profile,
        auth_manager: Optional[AuthManager] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._profile = profile
        self._auth_manager = auth_manager
        self._transport = transport
        self._auth_result: Optional[AuthResult] = None
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> SyncClient:
        config = self._profile.request
        self._client = httpx.Client(
            base_url=self._profile.endpoint,
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        if self._auth_manager and self._profile.auth:
            self._auth_result = self._auth_manager.authenticate(self._profile)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Transport interface
    # ------------------------------------------------------------------ #

    def execute(
        self,
        method: str,
        path: str,
        api_version: Optional[str],
        body: Any = None,
        query: Optional[dict[str, Any]] = None,
    ) -> TransportResponse:
        """Send one request and return its status code and raw body.

        Args:
            method: HTTP method.
            path: Absolute path, appended to the profile endpoint.
            api_version: Sent as the ``api-version`` query parameter.
            body: JSON-serialisable body, or ``None``.
            query: Additional query parameters.

        Raises:
            ConnectionError_: On network / timeout errors after all retries.
        """
        headers, params = self._prepare(api_version, query)
        output = get_output()
        output.debug(f"{method} {self._profile.endpoint}{path}")

        response = self._execute_with_retry(method, path, headers, params, body)
        output.debug(f"Response status: {response.status_code}")
        return TransportResponse(status_code=response.status_code, content=response.content)

    def preview(
        self,
        method: str,
        path: str,
        api_version: Optional[str],
        body: Any = None,
        query: Optional[dict[str, Any]] = None,
    ) -> None:
        """Print the request that :meth:`execute` would send, to stderr.

        The ``Authorization`` header value is masked.
        """
        headers, params = self._prepare(api_version, query)
        output = get_output()
        output.info(f"[dry-run] {method} {self._profile.endpoint}{path}")
        for key, value in headers.items():
            shown = "Bearer ***" if key.lower() == "authorization" else value
            output.info(f"  Header: {key}: {shown}")
        for key, value in params.items():
            output.info(f"  Param: {key}={value}")
        if body is not None:
            output.info(f"  Body (JSON): {json.dumps(body, indent=2)}")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _prepare(
        self,
        api_version: Optional[str],
        query: Optional[dict[str, Any]],
    ) -> tuple[dict[str, str], dict[str, Any]]:
        headers: dict[str, str] = {"Accept": "application/json"}
        params: dict[str, Any] = {}
        if self._auth_result is not None:
            headers = {**self._auth_result.headers, **headers}
            params.update(self._auth_result.params)
        params.update(query or {})
        if api_version is not None:
            params[API_VERSION] = api_version
        return headers, params

    def _execute_with_retry(
        self,
        method: str,
        path: str,
        headers: dict[str, str],
        params: dict[str, Any],
        body: Any,
    ) -> httpx.Response:
        """Execute the request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. The last 5xx response is returned as-is.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        max_retries = self._profile.request.max_retries
        output = get_output()

        for attempt in range(max_retries + 1):
            kwargs: dict[str, Any] = {
                "method": method,
                "url": path,
                "headers": headers,
                "params": params,
            }
            if body is not None:
                kwargs["json"] = body
            try:
                response = self._client.request(**kwargs)
            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue
            return response

        raise ConnectionError_("Request failed after all retries")  # pragma: no cover
