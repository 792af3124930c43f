"""Configuration loader with validation."""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from market_digest.config.schemas import DigestConfig


logger = structlog.get_logger()


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details.
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ConfigLoader:
    """Loads and validates the pipeline configuration file."""

    def __init__(self, run_id: str = "") -> None:
        """Initialize the loader.

        Args:
            run_id: Run identifier for logging.
        """
        self._log = logger.bind(component="config", run_id=run_id)

    def load(self, path: Path | None) -> DigestConfig:
        """Load configuration from a YAML file.

        A missing path yields the default configuration.

        Args:
            path: Path to the YAML file, or None.

        Returns:
            Validated configuration.

        Raises:
            ConfigValidationError: If the file is malformed or invalid.
        """
        if path is None or not path.exists():
            self._log.info("config_defaults_used", path=str(path) if path else None)
            return DigestConfig()

        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            errors = [{"loc": "", "msg": str(exc), "type": "yaml_error"}]
            raise ConfigValidationError(errors, str(path)) from exc

        if not isinstance(raw, dict):
            errors = [{"loc": "", "msg": "Top level must be a mapping", "type": "type"}]
            raise ConfigValidationError(errors, str(path))

        try:
            config = DigestConfig.model_validate(raw)
        except ValidationError as exc:
            errors = [
                {
                    "loc": ".".join(str(part) for part in err["loc"]),
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in exc.errors()
            ]
            self._log.warning("config_validation_failed", errors=len(errors))
            raise ConfigValidationError(errors, str(path)) from exc

        self._log.info(
            "config_loaded",
            path=str(path),
            rate_limits=len(config.rate_limits),
            daily_budget_usd=config.budget.daily_budget_usd,
        )
        return config
