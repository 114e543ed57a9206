from __future__ import annotations

import heapq
from bisect import bisect_right
from decimal import Decimal

from autosave.core.finance import to_float
from autosave.core.time_utils import parse_timestamp_to_epoch

PERIOD_VALUE_FIELDS = {"q": "fixed", "p": "extra"}


def build_periods(periods: list[dict], kind: str) -> list[dict]:
    built: list[dict] = []
    for index, period in enumerate(periods):
        start_raw = period.get("start")
        end_raw = period.get("end")
        if start_raw is None or end_raw is None:
            raise ValueError(f"{kind}[{index}] must include start and end.")

        start_timestamp, start_epoch = parse_timestamp_to_epoch(str(start_raw))
        end_timestamp, end_epoch = parse_timestamp_to_epoch(str(end_raw))

        built_period = {
            "start": start_timestamp,
            "end": end_timestamp,
            "start_epoch": start_epoch,
            "end_epoch": end_epoch,
            "index": index,
        }
        value_field = PERIOD_VALUE_FIELDS.get(kind)
        if value_field is not None:
            built_period["value"] = to_float(period.get(value_field), f"{kind}.{value_field}")

        built.append(built_period)
    return built


def build_period_payload(
    q: list[dict], p: list[dict], k: list[dict]
) -> tuple[list[dict], list[dict], list[dict]]:
    return build_periods(q, "q"), build_periods(p, "p"), build_periods(k, "k")


def _contains(period: dict, epoch: int) -> bool:
    return period["start_epoch"] <= epoch <= period["end_epoch"]


# Per-transaction resolution. apply_period_rules computes the same values in one
# time-ordered sweep and is what the engine uses.
def resolve_q(epoch: int, base_remanent: float, q_periods: list[dict]) -> float:
    winner = None
    for period in q_periods:
        if not _contains(period, epoch):
            continue
        # Strictly later start replaces; ties keep the earlier-listed period.
        if winner is None or period["start_epoch"] > winner["start_epoch"]:
            winner = period
    return base_remanent if winner is None else winner["value"]


def resolve_p(epoch: int, current_remanent: float, p_periods: list[dict]) -> float:
    extra = sum(
        (Decimal(str(period["value"])) for period in p_periods if _contains(period, epoch)),
        Decimal("0"),
    )
    if not extra:
        return current_remanent
    return current_remanent + float(extra)


def resolve_remanent(
    epoch: int, base_remanent: float, q_periods: list[dict], p_periods: list[dict]
) -> float:
    return resolve_p(epoch, resolve_q(epoch, base_remanent, q_periods), p_periods)


def _q_overrides(ordered_times: list[int], q_periods: list[dict]) -> list[float | None]:
    # Popped from the tail, so the earliest start comes off first.
    pending = sorted(
        ((q["start_epoch"], q["index"], q["end_epoch"], q["value"]) for q in q_periods),
        reverse=True,
    )
    # Heap top is the latest start, ties going to the lowest input index.
    active: list[tuple[int, int, int, float]] = []
    overrides: list[float | None] = []

    for ts in ordered_times:
        while pending and pending[-1][0] <= ts:
            start, index, end, value = pending.pop()
            heapq.heappush(active, (-start, index, end, value))
        while active and active[0][2] < ts:
            heapq.heappop(active)
        overrides.append(active[0][3] if active else None)
    return overrides


def _p_extras_sweep(ordered_times: list[int], p_periods: list[dict]) -> list[Decimal]:
    usable = [p for p in p_periods if p["start_epoch"] <= p["end_epoch"]]
    start_events = sorted((p["start_epoch"], Decimal(str(p["value"]))) for p in usable)
    end_events = sorted((p["end_epoch"] + 1, Decimal(str(p["value"]))) for p in usable)

    start_pointer = 0
    end_pointer = 0
    running_extra = Decimal("0")
    extras: list[Decimal] = []

    for ts in ordered_times:
        while start_pointer < len(start_events) and start_events[start_pointer][0] <= ts:
            running_extra += start_events[start_pointer][1]
            start_pointer += 1
        while end_pointer < len(end_events) and end_events[end_pointer][0] <= ts:
            running_extra -= end_events[end_pointer][1]
            end_pointer += 1
        extras.append(running_extra)
    return extras


def time_ordered_indices(transactions: list[dict]) -> list[int]:
    return sorted(range(len(transactions)), key=lambda i: (transactions[i]["epoch"], i))


def apply_period_rules(
    transactions: list[dict],
    q_periods: list[dict],
    p_periods: list[dict],
    *,
    ordered_indices: list[int] | None = None,
) -> list[dict]:
    if not transactions:
        return []

    if ordered_indices is None:
        ordered_indices = time_ordered_indices(transactions)
    ordered_times = [transactions[index]["epoch"] for index in ordered_indices]

    q_overrides = _q_overrides(ordered_times, q_periods)
    p_extras = _p_extras_sweep(ordered_times, p_periods)

    for position, tx_index in enumerate(ordered_indices):
        override = q_overrides[position]
        base_remanent = override if override is not None else transactions[tx_index]["remanent"]
        extra = p_extras[position]
        transactions[tx_index]["adjusted_remanent"] = (
            base_remanent + float(extra) if extra else base_remanent
        )
    return transactions


def _merged_k_windows(k_periods: list[dict]) -> list[tuple[int, int]]:
    merged: list[list[int]] = []
    for start, end in sorted((k["start_epoch"], k["end_epoch"]) for k in k_periods):
        if start > end:
            continue
        if merged and start <= merged[-1][1] + 1:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [(start, end) for start, end in merged]


def membership_in_k(transactions: list[dict], k_periods: list[dict]) -> list[bool]:
    windows = _merged_k_windows(k_periods)
    starts = [start for start, _end in windows]
    memberships: list[bool] = []
    for tx in transactions:
        position = bisect_right(starts, tx["epoch"]) - 1
        memberships.append(position >= 0 and tx["epoch"] <= windows[position][1])
    return memberships
