"""Atomic JSON file I/O.

Files are always replaced as a whole: content goes to a temporary file
first and is then renamed over the target, so readers see either the
complete old file or the complete new one.
"""

import hashlib
import json
from pathlib import Path
from typing import Any

import structlog


logger = structlog.get_logger()


class AtomicJsonWriter:
    """Writes JSON documents with atomic replace semantics."""

    def __init__(self, component: str, run_id: str | None = None) -> None:
        """Initialize the writer.

        Args:
            component: Owning component name for logging.
            run_id: Optional run ID for logging context.
        """
        self._log = logger.bind(component=component, subcomponent="atomic_writer")
        if run_id:
            self._log = self._log.bind(run_id=run_id)

    def write(self, path: Path, payload: Any) -> int:
        """Serialize ``payload`` and atomically replace ``path``.

        Args:
            path: Target file path.
            payload: JSON-serializable document.

        Returns:
            Number of bytes written.
        """
        return self.write_text(path, json.dumps(payload, ensure_ascii=False, indent=2))

    def write_text(self, path: Path, content: str) -> int:
        """Atomically replace ``path`` with UTF-8 text.

        Args:
            path: Target file path.
            content: Text to write.

        Returns:
            Number of bytes written.
        """
        content_bytes = content.encode("utf-8")

        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        temp_path.write_bytes(content_bytes)
        temp_path.replace(path)

        self._log.debug(
            "file_written",
            path=str(path),
            bytes=len(content_bytes),
            sha256=hashlib.sha256(content_bytes).hexdigest()[:12],
        )
        return len(content_bytes)


def read_json(path: Path) -> Any:
    """Read a JSON document.

    Args:
        path: File to read.

    Returns:
        Decoded document.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON.
    """
    return json.loads(path.read_text(encoding="utf-8"))
