"""POST endpoints for scheduler control."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from autotrader.api.routes.api import _decimal_to_str, _scheduler

log = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/start")
async def start_scheduler(request: Request) -> JSONResponse:
    """Start the scheduler and return its status."""
    scheduler = _scheduler(request)

    try:
        await scheduler.start()
        log.info("scheduler_started_via_api")
    except Exception as e:
        log.error("scheduler_start_failed", error=str(e))

    return JSONResponse(content=_decimal_to_str(scheduler.get_status()))


@router.post("/stop")
async def stop_scheduler(request: Request) -> JSONResponse:
    """Stop the scheduler (waits for the in-flight cycle) and return its status."""
    scheduler = _scheduler(request)

    try:
        await scheduler.stop()
        log.info("scheduler_stopped_via_api")
    except Exception as e:
        log.error("scheduler_stop_failed", error=str(e))

    return JSONResponse(content=_decimal_to_str(scheduler.get_status()))
