"""Local archive of published daily digests.

Each digest is kept as ``YYYY-MM-DD.json`` (the processed data) and
``YYYY-MM-DD.txt`` (the rendered text). ``index.json`` maps dates to
their files, newest first. After every archive, files whose date stem
falls outside the retention window are deleted.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any

import structlog

from market_digest.config.schemas import ArchiveConfig
from market_digest.persistence import AtomicJsonWriter, read_json


logger = structlog.get_logger()

INDEX_FILE = "index.json"


@dataclass(frozen=True)
class ArchiveRecord:
    """Files written by one archive call."""

    json_path: Path
    txt_path: Path
    pruned: int = 0


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


class ArchivePublisher:
    """Writes daily digests to disk and enforces retention."""

    def __init__(
        self,
        config: ArchiveConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        run_id: str = "",
    ) -> None:
        """Initialize the archive.

        Args:
            config: Archive settings, defaults when omitted.
            clock: UTC clock, injectable for tests.
            run_id: Run identifier for logging.
        """
        self._config = config or ArchiveConfig()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._dir = Path(self._config.archive_dir)
        self._writer = AtomicJsonWriter(component="publishers", run_id=run_id)
        self._log = logger.bind(component="publishers", subcomponent="archive", run_id=run_id)

    @property
    def archive_dir(self) -> Path:
        """Directory holding the archived files."""
        return self._dir

    def archive_daily(self, day: str, text: str, data: Mapping[str, Any]) -> ArchiveRecord:
        """Archive one daily digest, replacing an earlier archive of the same day.

        Args:
            day: ISO date of the digest.
            text: Rendered digest text.
            data: JSON-ready digest data.

        Returns:
            The written paths and the number of files pruned.
        """
        now = self._clock()
        json_path = self._dir / f"{day}.json"
        txt_path = self._dir / f"{day}.txt"

        self._writer.write(json_path, {"date": day, "generatedAt": now.isoformat(), **data})
        self._writer.write_text(txt_path, text)
        self._update_index(day, txt_path.name, now)
        pruned = self._prune(now.date())

        self._log.info("daily_brief_archived", path=str(json_path), chars=len(text))
        return ArchiveRecord(json_path=json_path, txt_path=txt_path, pruned=pruned)

    def load_index(self) -> dict[str, dict[str, str]]:
        """Read the archive index; empty when missing or unreadable."""
        path = self._dir / INDEX_FILE
        if not path.exists():
            return {}
        try:
            data = read_json(path)
        except ValueError as e:
            self._log.warning("archive_index_rebuilt", path=str(path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _update_index(self, day: str, txt_name: str, now: datetime) -> None:
        index = self.load_index()
        index[day] = {
            "type": "daily",
            "date": day,
            "txtPath": txt_name,
            "updatedAt": now.isoformat(),
        }
        keys = sorted(index, reverse=True)[: self._config.index_max_entries]
        self._writer.write(self._dir / INDEX_FILE, {key: index[key] for key in keys})

    def _prune(self, today: date) -> int:
        cutoff = today - timedelta(days=self._config.retention_days)
        pruned = 0

        for path in sorted(self._dir.glob("*.*")):
            if path.name == INDEX_FILE or path.suffix not in {".json", ".txt"}:
                continue
            day = _parse_date(path.stem)
            if day is not None and day < cutoff:
                path.unlink()
                pruned += 1
                self._log.debug("archive_file_pruned", file=str(path))

        if pruned > 0:
            self._log.info(
                "archive_pruned",
                count=pruned,
                retention_days=self._config.retention_days,
            )
        return pruned
