"""Shared test fixtures for azrest.

Provides reusable fixtures for loading the metadata bundle under
``tests/fixtures/metadata``, creating isolated config environments,
managing output state, recording HTTP traffic through
:class:`httpx.MockTransport`, and running CLI commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from azrest.metadata import Command, FileMetadataStore
from azrest.models import AuthConfig, Profile, RequestConfig
from azrest.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"
METADATA_DIR = FIXTURES_DIR / "metadata"

SUBSCRIPTION = "00000000-0000-0000-0000-000000000000"
TOKEN_ENV = "AZREST_TEST_TOKEN"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Metadata fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def metadata_store() -> FileMetadataStore:
    """File store over the fixture bundle."""
    return FileMetadataStore(METADATA_DIR)


@pytest.fixture
def raw_command() -> Callable[[str], dict[str, Any]]:
    """Return a loader for raw command documents by document id."""

    def _load(document_id: str) -> dict[str, Any]:
        with open(METADATA_DIR / "commands" / f"{document_id}.json") as f:
            return json.load(f)

    return _load


@pytest.fixture
def group_create(metadata_store: FileMetadataStore) -> Command:
    """``resources group create`` -- a single PUT with a body schema."""
    return metadata_store.get_command("resources_group_create_2024-11-01")


@pytest.fixture
def vnet_list(metadata_store: FileMetadataStore) -> Command:
    """``network vnet list`` -- two GET operations chosen by conditions."""
    return metadata_store.get_command("network_vnet_list_2024-05-01")


@pytest.fixture
def vm_restart(metadata_store: FileMetadataStore) -> Command:
    """``compute vm restart`` -- a POST action without a body schema."""
    return metadata_store.get_command("compute_vm_restart_2024-07-01")


# ---------------------------------------------------------------------------
# Profile fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_profile() -> Profile:
    """A profile pointing at a fake endpoint with bearer auth from the env."""
    return Profile(
        name="test",
        endpoint="https://management.example.test",
        metadata_path=str(METADATA_DIR),
        auth=AuthConfig(type="bearer", source=f"env:{TOKEN_ENV}"),
        request=RequestConfig(timeout=5, verify_ssl=False, max_retries=0),
    )


@pytest.fixture
def access_token(monkeypatch: pytest.MonkeyPatch) -> str:
    """Expose a fake bearer token through the environment."""
    monkeypatch.setenv(TOKEN_ENV, "test-token")
    return "test-token"


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """Mock transport that records requests and replies with a fixed response.

    Set :attr:`status_code` and :attr:`body` before the request is sent.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: Any = {"id": "ok"}
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, json=self.body)
        return httpx.Response(self.status_code, content=self.body or b"")

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, clears all AZREST_*
    environment variables, and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "AZREST_PROFILE",
        "AZREST_ENDPOINT",
        "AZREST_METADATA_PATH",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
