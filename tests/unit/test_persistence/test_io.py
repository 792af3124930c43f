"""Unit tests for atomic JSON persistence."""

import json
from pathlib import Path

import pytest

from market_digest.persistence import AtomicJsonWriter, read_json


class TestAtomicJsonWriter:
    """Tests for AtomicJsonWriter."""

    def test_writes_and_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "doc.json"

        written = AtomicJsonWriter(component="test").write(path, {"a": 1})

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": 1}
        assert written == len(path.read_bytes())

    def test_replaces_whole_file(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.json"
        writer = AtomicJsonWriter(component="test", run_id="run-1")

        writer.write(path, {"items": list(range(100))})
        writer.write(path, {"items": []})

        assert read_json(path) == {"items": []}

    def test_no_temp_file_left(self, tmp_path: Path) -> None:
        AtomicJsonWriter(component="test").write(tmp_path / "doc.json", [])
        assert [p.name for p in tmp_path.iterdir()] == ["doc.json"]

    def test_keeps_non_ascii(self, tmp_path: Path) -> None:
        path = tmp_path / "doc.json"

        AtomicJsonWriter(component="test").write(path, {"title": "台積電"})

        assert "台積電" in path.read_text(encoding="utf-8")


class TestReadJson:
    """Tests for read_json."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_json(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValueError):
            read_json(path)
