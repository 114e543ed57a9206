from __future__ import annotations

from decimal import Decimal, ROUND_CEILING

from autosave.core.config import DEFAULT_FINANCE_CONFIG, FinanceConfig

HUNDRED = Decimal("100")
ONE = Decimal("1")
TWELVE = Decimal("12")
ZERO = Decimal("0")


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_float(value: object, field_name: str) -> float:
    if value is None:
        raise ValueError(f"Missing field: {field_name}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{field_name}' must be numeric.") from exc


def money(value: float | Decimal, digits: int = 2) -> float:
    return round(float(value), digits)


def next_multiple_of_100(amount: float) -> float:
    value = to_decimal(amount)
    if value % HUNDRED == 0:
        return float(value)
    multiplier = (value / HUNDRED).to_integral_value(rounding=ROUND_CEILING)
    return float(multiplier * HUNDRED)


def remanent_from_amount(amount: float) -> float:
    ceiling = next_multiple_of_100(amount)
    return float(to_decimal(ceiling) - to_decimal(amount))


def compute_tax(income: float, config: FinanceConfig = DEFAULT_FINANCE_CONFIG) -> float:
    """Progressive slab tax: each rate applies only to its slice of income."""
    annual_income = max(ZERO, to_decimal(income))
    slabs = config.tax_slabs
    tax = ZERO
    for position, (lower, rate) in enumerate(slabs):
        if annual_income <= lower:
            break
        upper = slabs[position + 1][0] if position + 1 < len(slabs) else None
        top = annual_income if upper is None else min(annual_income, upper)
        tax += (top - lower) * rate
    return float(tax)


def tax_benefit(
    invested_amount: float,
    annual_income: float,
    config: FinanceConfig = DEFAULT_FINANCE_CONFIG,
) -> float:
    income = to_decimal(annual_income)
    deduction = min(
        to_decimal(invested_amount),
        min(income * config.nps_deduction_rate, config.nps_deduction_cap),
    )
    tax_before = to_decimal(compute_tax(income, config))
    tax_after = to_decimal(compute_tax(income - deduction, config))
    return float(max(ZERO, tax_before - tax_after))


def nps_tax_benefit(
    invested_amount: float,
    monthly_wage: float,
    config: FinanceConfig = DEFAULT_FINANCE_CONFIG,
) -> float:
    return tax_benefit(invested_amount, to_decimal(monthly_wage) * TWELVE, config)


def years_to_investment_horizon(
    age: int, config: FinanceConfig = DEFAULT_FINANCE_CONFIG
) -> int:
    years = config.retirement_age - age
    return years if years > 0 else config.minimum_horizon_years


def compound_interest(principal: float, annual_rate: Decimal | float, years: int) -> float:
    return float(to_decimal(principal) * ((ONE + to_decimal(annual_rate)) ** years))


def inflation_adjust(amount: float, inflation_percent: float, years: int) -> float:
    inflation = to_decimal(inflation_percent) / HUNDRED
    return float(to_decimal(amount) / ((ONE + inflation) ** years))


def compute_real_return(
    invested_amount: float, annual_rate: Decimal, inflation_percent: float, years: int
) -> tuple[float, float, float]:
    """Return ``(nominal, real, profit)``; profit is the real value minus the principal."""
    if inflation_percent < 0:
        raise ValueError("Inflation rate cannot be negative.")
    if years <= 0:
        raise ValueError("Years must be greater than zero.")

    nominal_return = compound_interest(invested_amount, annual_rate, years)
    real_return = inflation_adjust(nominal_return, inflation_percent, years)
    profit = float(to_decimal(real_return) - to_decimal(invested_amount))
    return nominal_return, real_return, profit
