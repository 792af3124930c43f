"""Collect, process and publish phases and their orchestration."""

from market_digest.pipeline.artifacts import (
    ArtifactStore,
    FileArtifactStore,
    InMemoryArtifactStore,
)
from market_digest.pipeline.context import PipelineContext
from market_digest.pipeline.errors import PhaseError, PhaseInputError, StaleInputError
from market_digest.pipeline.models import (
    CollectResult,
    ProcessResult,
    PublishResult,
    SourceError,
)
from market_digest.pipeline.orchestrator import (
    Orchestrator,
    PhaseName,
    PhaseOutcome,
    RunMode,
    RunReport,
)
from market_digest.pipeline.phases import run_collect, run_process, run_publish
from market_digest.pipeline.renderer import DigestRenderer, PlainDigestRenderer
from market_digest.pipeline.sources import DataSource, FileSource, SourcePayload
from market_digest.pipeline.state_machine import (
    PhaseState,
    PhaseStateMachine,
    PhaseStateTransitionError,
)


__all__ = [
    "ArtifactStore",
    "CollectResult",
    "DataSource",
    "DigestRenderer",
    "FileArtifactStore",
    "FileSource",
    "InMemoryArtifactStore",
    "Orchestrator",
    "PhaseError",
    "PhaseInputError",
    "PhaseName",
    "PhaseOutcome",
    "PhaseState",
    "PhaseStateMachine",
    "PhaseStateTransitionError",
    "PipelineContext",
    "PlainDigestRenderer",
    "ProcessResult",
    "PublishResult",
    "RunMode",
    "RunReport",
    "SourceError",
    "SourcePayload",
    "StaleInputError",
    "run_collect",
    "run_process",
    "run_publish",
]
