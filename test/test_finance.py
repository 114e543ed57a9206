# Test type: Unit
# Validation: ceiling/remanent rounding, slab tax, NPS tax benefit, compounding, inflation and horizon rules
# Command: pytest -q test/test_finance.py

from decimal import Decimal

import pytest

from autosave.core.config import DEFAULT_FINANCE_CONFIG, FinanceConfig
from autosave.core.finance import (
    compound_interest,
    compute_real_return,
    compute_tax,
    inflation_adjust,
    money,
    next_multiple_of_100,
    nps_tax_benefit,
    remanent_from_amount,
    tax_benefit,
    years_to_investment_horizon,
)


@pytest.mark.parametrize(
    "amount, ceiling, remanent",
    [
        (250, 300, 50),
        (375, 400, 25),
        (620, 700, 80),
        (480, 500, 20),
        (1519, 1600, 81),
        (500, 500, 0),
        (100, 100, 0),
        (101, 200, 99),
        (0, 0, 0),
        (250.75, 300, 49.25),
    ],
)
def test_ceiling_and_remanent(amount, ceiling, remanent):
    assert next_multiple_of_100(amount) == ceiling
    assert remanent_from_amount(amount) == remanent


def test_ceiling_properties_hold_across_amounts():
    for cents in range(0, 5_000_000, 9_973):
        amount = cents / 100
        ceiling = next_multiple_of_100(amount)
        assert ceiling >= amount
        assert ceiling - amount < 100
        assert ceiling % 100 == 0


def test_exact_hundreds_have_no_remanent():
    for amount in range(0, 100_000, 100):
        assert remanent_from_amount(amount) == 0


@pytest.mark.parametrize(
    "income, expected",
    [
        (0, 0),
        (600_000, 0),
        (700_000, 0),
        (850_000, 15_000),
        (1_000_000, 30_000),
        (1_100_000, 45_000),
        (1_200_000, 60_000),
        (1_300_000, 80_000),
        (1_500_000, 120_000),
        (1_600_000, 150_000),
    ],
)
def test_compute_tax_slabs(income, expected):
    assert compute_tax(income) == expected


def test_compute_tax_is_monotonic_and_continuous():
    previous = compute_tax(0)
    for income in range(0, 2_000_001, 2_500):
        current = compute_tax(income)
        assert current >= previous
        previous = current

    for boundary in (700_000, 1_000_000, 1_200_000, 1_500_000):
        assert compute_tax(boundary + 1) - compute_tax(boundary) < 1


def test_tax_benefit_is_zero_below_first_slab():
    assert tax_benefit(145, 600_000) == 0


def test_tax_benefit_uses_invested_amount_when_smallest():
    # tax(1.2M) = 60000, tax(1.15M) = 52500
    assert tax_benefit(50_000, 1_200_000) == 7_500


def test_tax_benefit_deduction_is_capped():
    # deduction = min(500000, min(300000, 200000)) = 200000
    assert tax_benefit(500_000, 3_000_000) == 60_000


def test_nps_tax_benefit_annualises_monthly_wage():
    assert nps_tax_benefit(145, 100_000) == pytest.approx(21.75)
    assert nps_tax_benefit(145, 50_000) == 0


@pytest.mark.parametrize("age, years", [(29, 31), (59, 1), (60, 5), (65, 5), (0, 60)])
def test_years_to_investment_horizon(age, years):
    assert years_to_investment_horizon(age) == years


def test_horizon_follows_config():
    config = FinanceConfig(retirement_age=65, minimum_horizon_years=3)
    assert years_to_investment_horizon(60, config) == 5
    assert years_to_investment_horizon(70, config) == 3


def test_compound_interest_nps_and_index():
    assert 1210 <= compound_interest(145, DEFAULT_FINANCE_CONFIG.nps_rate, 31) <= 1230
    assert 9600 <= compound_interest(145, DEFAULT_FINANCE_CONFIG.index_rate, 31) <= 9650


def test_inflation_adjust_takes_percent():
    assert inflation_adjust(105.5, 5.5, 1) == pytest.approx(100.0)
    gross = compound_interest(145, Decimal("0.1449"), 31)
    assert 1820 <= inflation_adjust(gross, 5.5, 31) <= 1840


def test_compute_real_return_profit_is_real_minus_principal():
    nominal, real, profit = compute_real_return(145, Decimal("0.1449"), 5.5, 31)
    assert nominal > real > 145
    assert money(profit) == 1684.51


def test_compute_real_return_rejects_bad_inputs():
    with pytest.raises(ValueError, match="Inflation rate cannot be negative"):
        compute_real_return(100, Decimal("0.0711"), -1, 10)
    with pytest.raises(ValueError, match="Years must be greater than zero"):
        compute_real_return(100, Decimal("0.0711"), 5.5, 0)


def test_unknown_instrument_rate_is_rejected():
    with pytest.raises(ValueError, match="Unknown investment instrument"):
        DEFAULT_FINANCE_CONFIG.rate_for("bonds")
