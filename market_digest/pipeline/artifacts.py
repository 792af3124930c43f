"""Persistence of phase result artifacts."""

from pathlib import Path
from typing import Protocol, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from market_digest.persistence import AtomicJsonWriter, read_json
from market_digest.pipeline.errors import PhaseInputError


logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


class ArtifactStore(Protocol):
    """Stores one JSON artifact per phase."""

    def save(self, name: str, artifact: BaseModel) -> None:
        """Persist an artifact under ``name``, replacing any previous one."""
        ...

    def load(self, name: str, model: type[ModelT]) -> ModelT:
        """Load and validate an artifact.

        Raises:
            PhaseInputError: If the artifact is missing or invalid.
        """
        ...


class FileArtifactStore:
    """Artifacts as ``<state_dir>/<name>-result.json`` files."""

    def __init__(self, state_dir: Path, run_id: str = "") -> None:
        self._state_dir = state_dir
        self._writer = AtomicJsonWriter(component="pipeline", run_id=run_id)
        self._log = logger.bind(component="pipeline", subcomponent="artifacts", run_id=run_id)

    def path_for(self, name: str) -> Path:
        """File path of an artifact."""
        return self._state_dir / f"{name}-result.json"

    def save(self, name: str, artifact: BaseModel) -> None:
        size = self._writer.write(self.path_for(name), artifact.model_dump(mode="json"))
        self._log.info("artifact_saved", artifact=name, bytes=size)

    def load(self, name: str, model: type[ModelT]) -> ModelT:
        path = self.path_for(name)
        if not path.exists():
            raise PhaseInputError(name, f"artifact not found at {path}")
        try:
            return model.model_validate(read_json(path))
        except (ValueError, ValidationError) as e:
            raise PhaseInputError(name, f"artifact invalid: {e}") from e


class InMemoryArtifactStore:
    """Artifacts kept as JSON-compatible dicts, for tests and dry runs."""

    def __init__(self) -> None:
        self._artifacts: dict[str, dict[str, object]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._artifacts

    def save(self, name: str, artifact: BaseModel) -> None:
        self._artifacts[name] = artifact.model_dump(mode="json")

    def load(self, name: str, model: type[ModelT]) -> ModelT:
        if name not in self._artifacts:
            raise PhaseInputError(name, "artifact not found")
        try:
            return model.model_validate(self._artifacts[name])
        except ValidationError as e:
            raise PhaseInputError(name, f"artifact invalid: {e}") from e
