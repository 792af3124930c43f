"""Cost accounting and provider quotas."""

from market_digest.cost.ledger import CostLedger
from market_digest.cost.models import (
    BudgetStatus,
    CostRun,
    DailyLedger,
    ModelUsage,
    ProviderQuota,
    QuotaStatus,
)
from market_digest.cost.quota import ProviderQuotaTracker


__all__ = [
    "BudgetStatus",
    "CostLedger",
    "CostRun",
    "DailyLedger",
    "ModelUsage",
    "ProviderQuota",
    "ProviderQuotaTracker",
    "QuotaStatus",
]
