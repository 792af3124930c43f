"""Unit tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from market_digest.config import (
    ConfigLoader,
    ConfigValidationError,
    DigestConfig,
    RateLimitConfig,
)


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestConfigLoader:
    """Tests for ConfigLoader.load."""

    def test_none_path_gives_defaults(self) -> None:
        assert ConfigLoader().load(None) == DigestConfig()

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = ConfigLoader().load(tmp_path / "absent.yaml")
        assert config.budget.daily_budget_usd == 2.0

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        assert ConfigLoader().load(_write(tmp_path, "")) == DigestConfig()

    def test_loads_values(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
budget:
  daily_budget_usd: 1.5
  per_provider_daily_call_cap:
    fmp: 10
rate_limits:
  fmp:
    req_per_min: 30
  twse:
    interval_ms: 2000
    max_tokens: 2
pipeline:
  key_symbols: [SP500]
""",
        )

        config = ConfigLoader().load(path)

        assert config.budget.daily_budget_usd == 1.5
        assert config.budget.per_provider_daily_call_cap == {"fmp": 10}
        assert config.rate_limits["twse"].interval_ms == 2000
        assert config.pipeline.key_symbols == ["SP500"]

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "budget: [unclosed")

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)

        assert exc_info.value.errors[0]["type"] == "yaml_error"
        assert exc_info.value.file_path == str(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(_write(tmp_path, "- a\n- b\n"))

        assert "mapping" in exc_info.value.errors[0]["msg"]

    def test_validation_error_location(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "budget:\n  daily_budget_usd: -1\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(path)

        assert exc_info.value.errors[0]["loc"] == "budget.daily_budget_usd"

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(_write(tmp_path, "budgets: {}\n"))

        assert exc_info.value.errors[0]["type"] == "extra_forbidden"


class TestRateLimitConfig:
    """Tests for the rate shape validator."""

    def test_requests_per_minute(self) -> None:
        assert RateLimitConfig(req_per_min=60).interval_ms is None

    def test_interval(self) -> None:
        assert RateLimitConfig(interval_ms=500).req_per_min is None

    def test_both_rejected(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            RateLimitConfig(req_per_min=60, interval_ms=500)

    def test_neither_rejected(self) -> None:
        with pytest.raises(ValidationError, match="exactly one"):
            RateLimitConfig()
