from __future__ import annotations

import math
from bisect import bisect_left, bisect_right

from autosave.core.config import DEFAULT_FINANCE_CONFIG, FinanceConfig
from autosave.core.finance import (
    compute_real_return,
    money,
    nps_tax_benefit,
    years_to_investment_horizon,
)


def aggregate_savings_by_k(
    transactions: list[dict], k_periods: list[dict], *, is_sorted: bool = False
) -> list[dict]:
    ordered_transactions = (
        transactions if is_sorted else sorted(transactions, key=lambda tx: tx["epoch"])
    )
    times = [tx["epoch"] for tx in ordered_transactions]

    savings: list[dict] = []
    for period in k_periods:
        # sum per window, not as a running-total difference
        window = ordered_transactions[
            bisect_left(times, period["start_epoch"]) : bisect_right(times, period["end_epoch"])
        ]
        savings.append(
            {
                "start": period["start"],
                "end": period["end"],
                "amount": math.fsum(
                    tx.get("adjusted_remanent", tx["remanent"]) for tx in window
                ),
            }
        )
    return savings


def project_savings(
    savings: list[dict],
    *,
    instrument: str,
    age: int,
    wage: float,
    inflation: float,
    config: FinanceConfig = DEFAULT_FINANCE_CONFIG,
) -> list[dict]:
    rate = config.rate_for(instrument)
    years = years_to_investment_horizon(age, config)

    savings_by_dates: list[dict] = []
    for period_saving in savings:
        invested = period_saving["amount"]
        _nominal, _real, profit = compute_real_return(
            invested_amount=invested,
            annual_rate=rate,
            inflation_percent=inflation,
            years=years,
        )
        benefit = nps_tax_benefit(invested, wage, config) if instrument == "nps" else 0.0
        savings_by_dates.append(
            {
                "start": period_saving["start"],
                "end": period_saving["end"],
                "amount": money(invested),
                "profits": money(profit),
                "taxBenefit": money(benefit),
            }
        )
    return savings_by_dates
