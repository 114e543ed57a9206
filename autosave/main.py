from __future__ import annotations

import logging
import os
import time

import psutil
from fastapi import FastAPI, HTTPException

from autosave.core.config import Settings
from autosave.core.engine import (
    build_transactions,
    calculate_returns,
    filter_transactions,
    validate_transactions,
)
from autosave.core.periods import build_period_payload
from autosave.models.schemas import (
    ExpenseInput,
    FilterRequest,
    FilterResponse,
    ParseRequest,
    ParseResponse,
    PerformanceResponse,
    ReturnsRequest,
    ReturnsResponse,
    ValidatorRequest,
    ValidatorResponse,
)

settings = Settings()
finance_config = settings.finance_config()
API_PREFIX = settings.api_prefix
START_TIME = time.monotonic()

logging.getLogger("autosave").setLevel(settings.log_level.upper())

app = FastAPI(
    title=settings.app_title,
    version=settings.app_version,
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post(f"{API_PREFIX}/transactions:parse", response_model=ParseResponse)
def parse_transactions(payload: ParseRequest | list[ExpenseInput]) -> ParseResponse:
    if isinstance(payload, list):
        expenses = [expense.model_dump(exclude_none=True) for expense in payload]
    else:
        expenses = [expense.model_dump(exclude_none=True) for expense in payload.expenses]

    try:
        result = build_transactions(expenses, config=finance_config)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ParseResponse(**result)


@app.post(f"{API_PREFIX}/transactions:validator", response_model=ValidatorResponse)
def validate_transactions_endpoint(payload: ValidatorRequest) -> ValidatorResponse:
    try:
        result = validate_transactions(
            wage=payload.wage,
            transactions=[tx.model_dump() for tx in payload.transactions],
            config=finance_config,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ValidatorResponse(**result)


@app.post(f"{API_PREFIX}/transactions:filter", response_model=FilterResponse)
def filter_transactions_endpoint(payload: FilterRequest) -> FilterResponse:
    try:
        q_periods, p_periods, k_periods = build_period_payload(
            [period.model_dump() for period in payload.q],
            [period.model_dump() for period in payload.p],
            [period.model_dump() for period in payload.k],
        )
        result = filter_transactions(
            transactions=[tx.model_dump() for tx in payload.transactions],
            q_periods=q_periods,
            p_periods=p_periods,
            k_periods=k_periods,
            config=finance_config,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return FilterResponse(**result)


def _returns_response(payload: ReturnsRequest, instrument: str) -> ReturnsResponse:
    try:
        q_periods, p_periods, k_periods = build_period_payload(
            [period.model_dump() for period in payload.q],
            [period.model_dump() for period in payload.p],
            [period.model_dump() for period in payload.k],
        )
        result = calculate_returns(
            instrument=instrument,
            age=payload.age,
            wage=payload.wage,
            inflation=payload.inflation,
            transactions=[tx.model_dump() for tx in payload.transactions],
            q_periods=q_periods,
            p_periods=p_periods,
            k_periods=k_periods,
            config=finance_config,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ReturnsResponse(**result)


@app.post(f"{API_PREFIX}/returns:nps", response_model=ReturnsResponse)
def returns_nps(payload: ReturnsRequest) -> ReturnsResponse:
    return _returns_response(payload, instrument="nps")


@app.post(f"{API_PREFIX}/returns:index", response_model=ReturnsResponse)
def returns_index(payload: ReturnsRequest) -> ReturnsResponse:
    return _returns_response(payload, instrument="index")


def _format_uptime(seconds: float) -> str:
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    milliseconds = int((seconds - int(seconds)) * 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{milliseconds:03d}"


@app.get(f"{API_PREFIX}/performance", response_model=PerformanceResponse)
def performance_report() -> PerformanceResponse:
    process = psutil.Process(os.getpid())
    memory_mb = process.memory_info().rss / (1024 * 1024)
    return PerformanceResponse(
        time=_format_uptime(time.monotonic() - START_TIME),
        memory=f"{memory_mb:.2f} MB",
        threads=process.num_threads(),
    )
