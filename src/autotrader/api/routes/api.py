"""JSON read endpoints: status, account, positions, trades, activity."""

from __future__ import annotations

from dataclasses import asdict
from decimal import Decimal
from enum import Enum
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from autotrader.activity.log import ActivityKind
from autotrader.scheduler import SchedulerLoop

log = structlog.get_logger(__name__)

router = APIRouter()


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values (and enums) for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _scheduler(request: Request) -> SchedulerLoop:
    scheduler = request.app.state.scheduler
    if scheduler is None:
        raise HTTPException(status_code=503, detail="Scheduler not initialized")
    return scheduler


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Scheduler state, mode, strategy, account summary and trade stats."""
    return JSONResponse(content=_decimal_to_str(_scheduler(request).get_status()))


@router.get("/account")
async def get_account(request: Request) -> JSONResponse:
    """Current ledger balances, equity and drawdown."""
    snapshot = _scheduler(request).ledger.snapshot()
    return JSONResponse(content=_decimal_to_str({
        "balance": snapshot.balance,
        "initial_balance": snapshot.initial_balance,
        "equity": snapshot.equity,
        "realized_profit": snapshot.realized_profit,
        "realized_loss": snapshot.realized_loss,
        "drawdown_pct": snapshot.drawdown_pct,
        "open_positions": len(snapshot.positions),
    }))


@router.get("/positions")
async def get_positions(request: Request) -> JSONResponse:
    """Open positions with mark-to-market P&L."""
    positions = _scheduler(request).ledger.get_open_positions()
    result = []
    for pos in positions:
        result.append({
            **asdict(pos),
            "cost": pos.cost,
            "unrealized_pnl_pct": pos.unrealized_pnl_pct,
        })
    return JSONResponse(content=_decimal_to_str(result))


@router.get("/trades")
async def get_trades(request: Request, limit: int = Query(50, ge=1, le=1000)) -> JSONResponse:
    """Most recent trades, newest last."""
    trades = _scheduler(request).ledger.get_trades(limit=limit)
    return JSONResponse(content=_decimal_to_str([asdict(t) for t in trades]))


@router.get("/activity")
async def get_activity(
    request: Request,
    limit: int = Query(100, ge=1, le=1000),
    kind: ActivityKind | None = None,
) -> JSONResponse:
    """Recent activity entries, optionally filtered by kind."""
    entries = _scheduler(request).activity_log.entries(limit=limit, kind=kind)
    return JSONResponse(content=_decimal_to_str([asdict(e) for e in entries]))
