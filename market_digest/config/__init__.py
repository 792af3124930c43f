"""Pipeline configuration."""

from market_digest.config.loader import ConfigLoader, ConfigValidationError
from market_digest.config.schemas import (
    AlertsConfig,
    AnalyzerConfig,
    ArchiveConfig,
    BudgetConfig,
    DedupConfig,
    DigestConfig,
    PipelineSettings,
    PublisherConfig,
    RateLimitConfig,
)


__all__ = [
    "AlertsConfig",
    "AnalyzerConfig",
    "ArchiveConfig",
    "BudgetConfig",
    "ConfigLoader",
    "ConfigValidationError",
    "DedupConfig",
    "DigestConfig",
    "PipelineSettings",
    "PublisherConfig",
    "RateLimitConfig",
]
