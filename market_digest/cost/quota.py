"""Daily call counters for providers with free-tier caps."""

import threading
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from market_digest.config.schemas import BudgetConfig
from market_digest.cost.models import ProviderQuota, QuotaStatus
from market_digest.persistence import AtomicJsonWriter, read_json


logger = structlog.get_logger()

QUOTA_FILE_NAME = "provider-quota.json"


class ProviderQuotaTracker:
    """Counts calls per provider for the current UTC date.

    The counter file is reset when the stored date differs from today.
    """

    def __init__(
        self,
        config: BudgetConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._caps = config.per_provider_daily_call_cap
        self._path = Path(config.ledger_dir) / QUOTA_FILE_NAME
        self._clock = clock or (lambda: datetime.now(UTC))
        self._lock = threading.Lock()
        self._writer = AtomicJsonWriter(component="cost")
        self._log = logger.bind(component="cost", subcomponent="quota")

    def check(self, provider: str) -> QuotaStatus:
        """Report usage and remaining calls for a provider.

        Providers without a configured cap are unlimited.
        """
        with self._lock:
            calls = self._load().calls.get(provider, 0)

        cap = self._caps.get(provider)
        if cap is None:
            return QuotaStatus(provider=provider, calls=calls, remaining=None, can_call=True)

        remaining = max(0, cap - calls)
        return QuotaStatus(
            provider=provider,
            calls=calls,
            remaining=remaining,
            can_call=remaining > 0,
        )

    def increment(self, provider: str, count: int = 1) -> int:
        """Add calls to a provider's counter and persist it.

        Returns:
            The provider's call count after the increment.
        """
        with self._lock:
            quota = self._load()
            quota.calls[provider] = quota.calls.get(provider, 0) + count
            self._writer.write(self._path, quota.model_dump(by_alias=True))
            total = quota.calls[provider]

        cap = self._caps.get(provider)
        if cap is not None and total >= cap:
            self._log.warning("provider_quota_exhausted", provider=provider, calls=total, cap=cap)
        return total

    def usage(self) -> dict[str, int]:
        """Today's counters for every provider."""
        with self._lock:
            return dict(self._load().calls)

    def _load(self) -> ProviderQuota:
        today = self._clock().date().isoformat()
        if not self._path.exists():
            return ProviderQuota(date=today)
        try:
            quota = ProviderQuota.model_validate(read_json(self._path))
        except (ValueError, ValidationError) as e:
            self._log.warning("quota_file_corrupt", path=str(self._path), error=str(e))
            return ProviderQuota(date=today)
        if quota.date != today:
            self._log.info("quota_rollover", previous_date=quota.date, date=today)
            return ProviderQuota(date=today)
        return quota
