"""Cost ledger file models.

Ledger files are shared with other tools, so they are serialized with
camelCase keys (``model_dump(by_alias=True)``).
"""

from pydantic import Field

from market_digest.data_model import CamelFileModel, StrictBaseModel


class ModelUsage(CamelFileModel):
    """Accumulated token usage for one model within a run."""

    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0


class CostRun(CamelFileModel):
    """Cost record of a single pipeline run."""

    run_id: str
    phase: str
    started_at: str
    api_calls: dict[str, int] = Field(default_factory=dict)
    model_usage: dict[str, ModelUsage] = Field(default_factory=dict)
    total_cost_usd: float = 0.0
    total_cost_local: float = 0.0
    finished_at: str | None = None


class DailyTotal(CamelFileModel):
    """Day-level cost aggregate."""

    cost_usd: float = 0.0
    cost_local: float = 0.0


class DailyLedger(CamelFileModel):
    """All runs recorded on one UTC date."""

    date: str
    runs: list[CostRun] = Field(default_factory=list)
    daily_total: DailyTotal = Field(default_factory=DailyTotal)


class ProviderQuota(CamelFileModel):
    """Per-provider call counters for one UTC date."""

    date: str
    calls: dict[str, int] = Field(default_factory=dict)


class BudgetStatus(StrictBaseModel):
    """Result of a budget check."""

    over_budget: bool
    spent: float
    budget: float

    @property
    def ratio(self) -> float:
        """Fraction of the budget already spent."""
        if self.budget <= 0:
            return 1.0
        return self.spent / self.budget


class QuotaStatus(StrictBaseModel):
    """Result of a provider quota check."""

    provider: str
    calls: int
    remaining: int | None
    can_call: bool
