"""Metadata stores -- where the index and command documents come from.

:class:`MetadataStore` is the interface the CLI and the invoker depend on.
:class:`FileMetadataStore` reads a bundle laid out on disk::

    <root>/index.json
    <root>/commands/<document_id>.json

:class:`MemoryMetadataStore` serves already-parsed JSON from dicts and is
used by tests and embedders.

Every document is validated once and cached for the life of the store.
Parsed models are frozen, so cached instances are shared freely.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from azrest.exceptions import MetadataIntegrityError, MetadataNotFoundError
from azrest.metadata.command import Command
from azrest.metadata.index import Index

INDEX_FILENAME = "index.json"
COMMANDS_DIRNAME = "commands"


def parse_index(data: Any) -> Index:
    """Validate raw index JSON, raising :class:`MetadataIntegrityError` on failure."""
    try:
        return Index.model_validate(data)
    except ValidationError as exc:
        raise MetadataIntegrityError(f"malformed command index: {exc}") from exc


def parse_command(data: Any, document_id: str = "<inline>") -> Command:
    """Validate a raw command document, raising :class:`MetadataIntegrityError` on failure."""
    try:
        return Command.model_validate(data)
    except ValidationError as exc:
        raise MetadataIntegrityError(
            f"malformed command document {document_id}: {exc}"
        ) from exc


class MetadataStore(ABC):
    """Source of the command index and per-command documents."""

    def __init__(self) -> None:
        self._index: Optional[Index] = None
        self._commands: dict[str, Command] = {}

    def get_index(self) -> Index:
        """Return the command index, loading it on first use."""
        if self._index is None:
            self._index = parse_index(self._read_index())
        return self._index

    def get_command(self, document_id: str) -> Command:
        """Return the command document *document_id*, loading it on first use.

        Raises:
            MetadataNotFoundError: No such document.
            MetadataIntegrityError: The document is not valid JSON or does
                not satisfy the command model.
        """
        command = self._commands.get(document_id)
        if command is None:
            command = parse_command(self._read_command(document_id), document_id)
            self._commands[document_id] = command
        return command

    @abstractmethod
    def _read_index(self) -> Any:
        """Return the raw index JSON."""
        ...

    @abstractmethod
    def _read_command(self, document_id: str) -> Any:
        """Return the raw JSON of one command document."""
        ...


class FileMetadataStore(MetadataStore):
    """Read a metadata bundle from a directory.

    Args:
        root: Directory containing ``index.json`` and ``commands/``.
    """

    def __init__(self, root: Path | str) -> None:
        super().__init__()
        self.root = Path(root).expanduser()

    def _read_index(self) -> Any:
        return self._load_json(self.root / INDEX_FILENAME, "command index")

    def _read_command(self, document_id: str) -> Any:
        path = self.root / COMMANDS_DIRNAME / f"{document_id}.json"
        return self._load_json(path, f"command document {document_id}")

    @staticmethod
    def _load_json(path: Path, what: str) -> Any:
        if not path.is_file():
            raise MetadataNotFoundError(f"{what} not found at {path}")
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise MetadataIntegrityError(f"invalid JSON in {path}: {exc}") from exc


class MemoryMetadataStore(MetadataStore):
    """Serve metadata from in-memory JSON values.

    Args:
        index: Raw index JSON.
        commands: Mapping of document id to raw command JSON.
    """

    def __init__(self, index: Any, commands: Optional[dict[str, Any]] = None) -> None:
        super().__init__()
        self._raw_index = index
        self._raw_commands = dict(commands or {})

    def _read_index(self) -> Any:
        return self._raw_index

    def _read_command(self, document_id: str) -> Any:
        if document_id not in self._raw_commands:
            raise MetadataNotFoundError(f"command document {document_id} not found")
        return self._raw_commands[document_id]
