"""Tests for facsched.utils.file_utils module."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from facsched.utils.file_utils import atomic_json_write, read_json


class TestAtomicJsonWrite:
    """Test atomic JSON persistence."""

    def test_writes_list(self, tmp_path: Path) -> None:
        target = tmp_path / "rooms_data.json"
        atomic_json_write(target, [{"room_number": "A1"}])
        assert json.loads(target.read_text()) == [{"room_number": "A1"}]

    def test_writes_scalar(self, tmp_path: Path) -> None:
        target = tmp_path / "cache_last_updated.json"
        atomic_json_write(target, 1700000000000)
        assert target.read_text() == "1700000000000"

    def test_preserves_unicode(self, tmp_path: Path) -> None:
        target = tmp_path / "faculty.json"
        atomic_json_write(target, [{"name": "Zoë Müller"}])
        assert "Zoë Müller" in target.read_text(encoding="utf-8")

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "entry.json"
        atomic_json_write(target, [])
        assert target.exists()

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "entry.json"
        target.write_text("[1]")
        atomic_json_write(target, [2])
        assert json.loads(target.read_text()) == [2]

    def test_no_tmp_files_left_on_success(self, tmp_path: Path) -> None:
        atomic_json_write(tmp_path / "entry.json", {"ok": True})
        assert list(tmp_path.glob("*.tmp")) == []

    def test_unserializable_data_leaves_old_file(self, tmp_path: Path) -> None:
        target = tmp_path / "entry.json"
        target.write_text("[1]")

        with pytest.raises(TypeError):
            atomic_json_write(target, [object()])

        assert target.read_text() == "[1]"
        assert list(tmp_path.glob("*.tmp")) == []

    def test_failed_rename_cleans_up_tmp(self, tmp_path: Path) -> None:
        target = tmp_path / "entry.json"
        with patch("facsched.utils.file_utils.os.replace", side_effect=OSError("disk")):
            with pytest.raises(OSError):
                atomic_json_write(target, [1])

        assert not target.exists()
        assert list(tmp_path.glob("*.tmp")) == []


class TestReadJson:
    """Test JSON loading."""

    def test_reads_document(self, tmp_path: Path) -> None:
        target = tmp_path / "entry.json"
        target.write_text('{"a": [1, 2]}')
        assert read_json(target) == {"a": [1, 2]}

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_json(tmp_path / "nope.json")

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        target = tmp_path / "entry.json"
        target.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            read_json(target)
