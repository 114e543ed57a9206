from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class FinanceConfig(BaseModel):
    """Rates, tax slabs and limits shared by the savings engine."""

    model_config = ConfigDict(frozen=True)

    nps_rate: Decimal = Decimal("0.0711")
    index_rate: Decimal = Decimal("0.1449")
    # (lower bound, marginal rate) pairs, ascending.
    tax_slabs: tuple[tuple[Decimal, Decimal], ...] = (
        (Decimal("0"), Decimal("0")),
        (Decimal("700000"), Decimal("0.10")),
        (Decimal("1000000"), Decimal("0.15")),
        (Decimal("1200000"), Decimal("0.20")),
        (Decimal("1500000"), Decimal("0.30")),
    )
    nps_deduction_rate: Decimal = Decimal("0.10")
    nps_deduction_cap: Decimal = Decimal("200000")
    max_transaction_amount: float = 500000.0
    retirement_age: int = 60
    minimum_horizon_years: int = 5
    rounding_tolerance: float = 0.01

    def rate_for(self, instrument: str) -> Decimal:
        if instrument == "nps":
            return self.nps_rate
        if instrument == "index":
            return self.index_rate
        raise ValueError(f"Unknown investment instrument: {instrument!r}.")


DEFAULT_FINANCE_CONFIG = FinanceConfig()


class Settings(BaseSettings):
    """Service settings, read from ``AUTOSAVE_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="AUTOSAVE_")

    app_title: str = "Self Saving for Retirement API"
    app_version: str = "1.0.0"
    api_prefix: str = "/blackrock/challenge/v1"
    log_level: str = "INFO"
    nps_rate: Decimal = DEFAULT_FINANCE_CONFIG.nps_rate
    index_rate: Decimal = DEFAULT_FINANCE_CONFIG.index_rate

    def finance_config(self) -> FinanceConfig:
        return FinanceConfig(nps_rate=self.nps_rate, index_rate=self.index_rate)
