"""Unit tests for phase artifact stores."""

import json
from pathlib import Path

import pytest

from market_digest.news import NewsItem
from market_digest.pipeline import (
    CollectResult,
    FileArtifactStore,
    InMemoryArtifactStore,
    PhaseInputError,
)
from tests.helpers.time import FIXED_NOW


def _make_result() -> CollectResult:
    return CollectResult(
        collected_at=FIXED_NOW,
        news=[NewsItem(id="n1", title="Headline", published_at=FIXED_NOW)],
        sources_succeeded=1,
    )


class TestFileArtifactStore:
    """Tests for FileArtifactStore."""

    def test_round_trip(self, tmp_path: Path) -> None:
        store = FileArtifactStore(tmp_path / "state")

        store.save("collect", _make_result())

        assert store.path_for("collect") == tmp_path / "state" / "collect-result.json"
        assert store.load("collect", CollectResult) == _make_result()

    def test_file_is_plain_json(self, tmp_path: Path) -> None:
        store = FileArtifactStore(tmp_path)
        store.save("collect", _make_result())

        data = json.loads(store.path_for("collect").read_text(encoding="utf-8"))

        assert data["collected_at"] == "2026-03-10T01:00:00Z"
        assert data["news"][0]["id"] == "n1"

    def test_save_replaces(self, tmp_path: Path) -> None:
        store = FileArtifactStore(tmp_path)
        store.save("collect", _make_result())
        store.save("collect", CollectResult(collected_at=FIXED_NOW))

        assert store.load("collect", CollectResult).news == []

    def test_missing_artifact(self, tmp_path: Path) -> None:
        with pytest.raises(PhaseInputError, match="artifact not found"):
            FileArtifactStore(tmp_path).load("collect", CollectResult)

    def test_corrupt_artifact(self, tmp_path: Path) -> None:
        (tmp_path / "collect-result.json").write_text("{oops", encoding="utf-8")

        with pytest.raises(PhaseInputError, match="artifact invalid"):
            FileArtifactStore(tmp_path).load("collect", CollectResult)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        (tmp_path / "collect-result.json").write_text('{"news": []}', encoding="utf-8")

        with pytest.raises(PhaseInputError) as exc_info:
            FileArtifactStore(tmp_path).load("collect", CollectResult)

        assert exc_info.value.phase == "collect"


class TestInMemoryArtifactStore:
    """Tests for InMemoryArtifactStore."""

    def test_round_trip(self) -> None:
        store = InMemoryArtifactStore()
        store.save("collect", _make_result())

        assert "collect" in store
        assert store.load("collect", CollectResult) == _make_result()

    def test_missing(self) -> None:
        with pytest.raises(PhaseInputError):
            InMemoryArtifactStore().load("process", CollectResult)
