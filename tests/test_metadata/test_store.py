"""Tests for the file and memory metadata stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from azrest.exceptions import MetadataIntegrityError, MetadataNotFoundError
from azrest.exit_codes import EXIT_METADATA_ERROR
from azrest.metadata import FileMetadataStore, MemoryMetadataStore


class TestFileMetadataStore:
    def test_loads_index_and_command(self, metadata_store: FileMetadataStore) -> None:
        index = metadata_store.get_index()
        assert sorted(index.command_groups) == ["compute", "network", "resources"]
        command = metadata_store.get_command("compute_vm_restart_2024-07-01")
        assert command.operations[0].method == "POST"

    def test_caches_documents(self, metadata_store: FileMetadataStore) -> None:
        first = metadata_store.get_command("network_vnet_list_2024-05-01")
        assert metadata_store.get_command("network_vnet_list_2024-05-01") is first
        assert metadata_store.get_index() is metadata_store.get_index()

    def test_missing_document(self, metadata_store: FileMetadataStore) -> None:
        with pytest.raises(MetadataNotFoundError, match="not found at"):
            metadata_store.get_command("resources_group_delete_2024-11-01")

    def test_missing_index(self, tmp_path: Path) -> None:
        with pytest.raises(MetadataNotFoundError, match="command index not found"):
            FileMetadataStore(tmp_path).get_index()

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "commands").mkdir()
        (tmp_path / "commands" / "broken_1.json").write_text("{not json")
        with pytest.raises(MetadataIntegrityError, match="invalid JSON") as exc_info:
            FileMetadataStore(tmp_path).get_command("broken_1")
        assert exc_info.value.exit_code == EXIT_METADATA_ERROR

    def test_malformed_document(self, tmp_path: Path) -> None:
        (tmp_path / "commands").mkdir()
        (tmp_path / "commands" / "bad_1.json").write_text('{"operations": [{"http": 1}]}')
        with pytest.raises(MetadataIntegrityError, match="malformed command document bad_1"):
            FileMetadataStore(tmp_path).get_command("bad_1")

    def test_expands_user(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        assert FileMetadataStore("~/bundle").root == tmp_path / "bundle"


class TestMemoryMetadataStore:
    def test_serves_raw_json(self) -> None:
        store = MemoryMetadataStore(
            {"commandGroups": {"svc": {"commands": {"get": {"versions": ["1"]}}}}},
            {"svc_get_1": {"operations": []}},
        )
        assert "svc" in store.get_index().command_groups
        assert store.get_command("svc_get_1").operations == []

    def test_missing_document(self) -> None:
        store = MemoryMetadataStore({})
        with pytest.raises(MetadataNotFoundError):
            store.get_command("svc_get_1")
