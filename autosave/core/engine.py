from __future__ import annotations

import logging
from typing import Callable, NamedTuple

from autosave.core.config import DEFAULT_FINANCE_CONFIG, FinanceConfig
from autosave.core.finance import money, next_multiple_of_100, remanent_from_amount, to_float
from autosave.core.periods import apply_period_rules, membership_in_k, time_ordered_indices
from autosave.core.projection import aggregate_savings_by_k, project_savings
from autosave.core.time_utils import ParseError, parse_timestamp_to_epoch

logger = logging.getLogger(__name__)

INVALID_DATE_MESSAGE = "Invalid date format"
NEGATIVE_AMOUNT_MESSAGE = "Negative amounts are not allowed"
AMOUNT_LIMIT_MESSAGE = "Amount exceeds maximum allowed transaction value"
DUPLICATE_MESSAGE = "Duplicate transaction"

Check = Callable[[dict, FinanceConfig], list[str]]


def _check_negative(tx: dict, config: FinanceConfig) -> list[str]:
    return [NEGATIVE_AMOUNT_MESSAGE] if tx["amount"] < 0 else []


def _check_amount_limit(tx: dict, config: FinanceConfig) -> list[str]:
    return [AMOUNT_LIMIT_MESSAGE] if tx["amount"] >= config.max_transaction_amount else []


def _format_number(value: float) -> str:
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _check_supplied_rounding(tx: dict, config: FinanceConfig) -> list[str]:
    if tx["amount"] < 0:
        return []
    reasons: list[str] = []
    expected_ceiling = next_multiple_of_100(tx["amount"])
    if abs(tx["ceiling"] - expected_ceiling) > config.rounding_tolerance:
        reasons.append(
            f"Ceiling mismatch: expected {_format_number(expected_ceiling)}, "
            f"got {_format_number(tx['ceiling'])}"
        )
    expected_remanent = remanent_from_amount(tx["amount"])
    if abs(tx["remanent"] - expected_remanent) > config.rounding_tolerance:
        reasons.append(
            f"Remanent mismatch: expected {_format_number(expected_remanent)}, "
            f"got {_format_number(tx['remanent'])}"
        )
    return reasons


class IntakePolicy(NamedTuple):
    # Only rows without reasons are deduplicated; a rejected row never claims its timestamp.
    name: str
    checks: tuple[Check, ...] = ()
    raise_parse_errors: bool = False
    deduplicate: bool = True
    supplied_values: bool = False


PARSE_POLICY = IntakePolicy("parse", raise_parse_errors=True, deduplicate=False)
VALIDATE_POLICY = IntakePolicy(
    "validate",
    checks=(_check_negative, _check_amount_limit, _check_supplied_rounding),
    supplied_values=True,
)
FILTER_POLICY = IntakePolicy("filter", checks=(_check_negative,))
RETURNS_POLICY = IntakePolicy("returns", checks=(_check_negative,))


def _raw_timestamp(transaction: dict) -> object:
    return transaction.get("date") or transaction.get("timestamp")


def _canonical_transaction(transaction: dict, *, supplied_values: bool) -> dict:
    timestamp_raw = _raw_timestamp(transaction)
    if timestamp_raw is None:
        raise ParseError("Transaction must include 'date' or 'timestamp'.")

    normalized_timestamp, epoch = parse_timestamp_to_epoch(str(timestamp_raw))
    amount = to_float(transaction.get("amount"), "amount")
    if supplied_values:
        ceiling = to_float(transaction.get("ceiling"), "ceiling")
        remanent = to_float(transaction.get("remanent"), "remanent")
    else:
        ceiling = next_multiple_of_100(amount)
        remanent = remanent_from_amount(amount)

    return {
        "date": normalized_timestamp,
        "epoch": epoch,
        "amount": amount,
        "ceiling": ceiling,
        "remanent": remanent,
    }


def _rejection(transaction: dict, message: str, *, date: str | None = None) -> dict:
    if date is None:
        raw_date = _raw_timestamp(transaction)
        date = "" if raw_date is None else str(raw_date)
    return {
        "date": date,
        "amount": transaction.get("amount"),
        "ceiling": transaction.get("ceiling"),
        "remanent": transaction.get("remanent"),
        "message": message,
    }


def _intake(
    transactions: list[dict], policy: IntakePolicy, config: FinanceConfig
) -> tuple[list[dict], list[dict]]:
    accepted: list[dict] = []
    rejected: list[dict] = []
    seen_timestamps: set[str] = set()

    for raw in transactions:
        try:
            tx = _canonical_transaction(raw, supplied_values=policy.supplied_values)
        except ParseError:
            if policy.raise_parse_errors:
                raise
            rejected.append(_rejection(raw, INVALID_DATE_MESSAGE))
            continue

        reasons = [reason for check in policy.checks for reason in check(tx, config)]
        if reasons:
            rejected.append(_rejection(tx, "; ".join(reasons), date=tx["date"]))
            continue

        if policy.deduplicate:
            if tx["date"] in seen_timestamps:
                rejected.append(_rejection(tx, DUPLICATE_MESSAGE, date=tx["date"]))
                continue
            seen_timestamps.add(tx["date"])
        accepted.append(tx)

    logger.debug(
        "%s intake: accepted=%s rejected=%s", policy.name, len(accepted), len(rejected)
    )
    return accepted, rejected


def _transaction_output(transaction: dict) -> dict:
    return {
        "date": transaction["date"],
        "amount": money(transaction["amount"]),
        "ceiling": money(transaction["ceiling"]),
        "remanent": money(transaction["remanent"]),
    }


def _invalid_output(rejection: dict, *, include_rounding: bool = True) -> dict:
    payload = {
        "date": rejection["date"],
        "amount": money(to_float(rejection["amount"], "amount")),
        "message": rejection["message"],
    }
    if include_rounding:
        payload["ceiling"] = money(to_float(rejection["ceiling"], "ceiling"))
        payload["remanent"] = money(to_float(rejection["remanent"], "remanent"))
    return payload


def build_transactions(
    expenses: list[dict], config: FinanceConfig = DEFAULT_FINANCE_CONFIG
) -> dict:
    # A single unparseable timestamp fails the whole batch.
    transactions, _rejected = _intake(expenses, PARSE_POLICY, config)
    return {
        "transactions": [_transaction_output(tx) for tx in transactions],
        "transactionsTotalAmount": money(sum(tx["amount"] for tx in transactions)),
        "transactionsTotalCeiling": money(sum(tx["ceiling"] for tx in transactions)),
        "transactionsTotalRemanent": money(sum(tx["remanent"] for tx in transactions)),
    }


def validate_transactions(
    wage: float,
    transactions: list[dict],
    config: FinanceConfig = DEFAULT_FINANCE_CONFIG,
) -> dict:
    if wage < 0:
        raise ValueError("Wage cannot be negative.")

    valid, invalid = _intake(transactions, VALIDATE_POLICY, config)
    return {
        "valid": [_transaction_output(tx) for tx in valid],
        "invalid": [_invalid_output(rejection) for rejection in invalid],
    }


def filter_transactions(
    transactions: list[dict],
    q_periods: list[dict],
    p_periods: list[dict],
    k_periods: list[dict],
    config: FinanceConfig = DEFAULT_FINANCE_CONFIG,
) -> dict:
    accepted, rejected = _intake(transactions, FILTER_POLICY, config)

    ordered_indices = time_ordered_indices(accepted)
    adjusted = apply_period_rules(
        accepted,
        q_periods,
        p_periods,
        ordered_indices=ordered_indices,
    )
    membership = membership_in_k(adjusted, k_periods)

    valid = [
        {
            "date": tx["date"],
            "amount": money(tx["amount"]),
            "ceiling": money(tx["ceiling"]),
            "remanent": money(tx["adjusted_remanent"]),
            "inKPeriod": in_k,
        }
        for tx, in_k in zip(adjusted, membership)
    ]
    invalid = [
        _invalid_output(rejection, include_rounding=False) for rejection in rejected
    ]
    return {"valid": valid, "invalid": invalid}


def calculate_returns(
    *,
    instrument: str,
    age: int,
    wage: float,
    inflation: float,
    transactions: list[dict],
    q_periods: list[dict],
    p_periods: list[dict],
    k_periods: list[dict],
    config: FinanceConfig = DEFAULT_FINANCE_CONFIG,
) -> dict:
    """Rows that fail intake are dropped silently. ``inflation`` is a percent."""
    if age < 0:
        raise ValueError("Age cannot be negative.")
    if wage < 0:
        raise ValueError("Wage cannot be negative.")
    if inflation < 0:
        raise ValueError("Inflation cannot be negative.")
    config.rate_for(instrument)

    accepted, rejected = _intake(transactions, RETURNS_POLICY, config)
    if rejected:
        logger.warning(
            "returns input filtered: dropped=%s valid=%s",
            len(rejected),
            len(accepted),
        )

    ordered_indices = time_ordered_indices(accepted)
    adjusted = apply_period_rules(
        accepted,
        q_periods,
        p_periods,
        ordered_indices=ordered_indices,
    )
    savings = aggregate_savings_by_k(
        [adjusted[index] for index in ordered_indices],
        k_periods,
        is_sorted=True,
    )
    savings_by_dates = project_savings(
        savings,
        instrument=instrument,
        age=age,
        wage=wage,
        inflation=inflation,
        config=config,
    )

    return {
        "transactionsTotalAmount": money(sum(tx["amount"] for tx in accepted)),
        "transactionsTotalCeiling": money(sum(tx["ceiling"] for tx in accepted)),
        "savingsByDates": savings_by_dates,
    }
