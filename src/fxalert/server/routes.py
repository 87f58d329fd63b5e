"""JSON API endpoints: capability listing, status, config, threshold, forced check."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fxalert.exceptions import CheckError

log = structlog.get_logger(__name__)

router = APIRouter()

INVALID_THRESHOLD = "Invalid threshold: must be a positive number"


def _decimal_to_float(obj: Any) -> Any:
    """Recursively convert Decimal values to floats for JSON number output."""
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_float(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_float(item) for item in obj]
    return obj


def _is_positive_number(value: Any) -> bool:
    """True for a JSON number that is finite and > 0 as a float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        as_float = float(value)
    except OverflowError:
        return False
    return math.isfinite(as_float) and as_float > 0


@router.get("/")
async def index() -> JSONResponse:
    """Capability listing."""
    return JSONResponse(content={
        "message": "💰 Currency Monitor API",
        "endpoints": {
            "/status": "Get current status",
            "/check": "Force currency check",
            "/config": "Get current configuration",
            "/threshold": "Set alert threshold (POST {\"threshold\": number})",
        },
    })


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Live rate against the configured threshold, plus check bookkeeping."""
    store = request.app.state.store
    check_cycle = request.app.state.check_cycle

    if store.get_config() is None:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Unable to get status: No configuration found. "
                "Please set a threshold first."
            },
        )

    try:
        status = await check_cycle.get_status()
    except CheckError as e:
        log.warning("status_unavailable", error=str(e))
        return JSONResponse(status_code=502, content={"error": str(e)})

    return JSONResponse(content=_decimal_to_float({
        "currentRate": status.current_rate,
        "threshold": status.threshold,
        "aboveTarget": status.above_target,
        "lastCheck": status.last_check,
        "nextCheck": status.next_check,
    }))


@router.get("/config")
async def get_config(request: Request) -> JSONResponse:
    """Raw persisted configuration, or null when unconfigured."""
    config = request.app.state.store.get_config()
    return JSONResponse(content=config.to_dict() if config is not None else None)


@router.post("/threshold")
async def set_threshold(request: Request) -> JSONResponse:
    """Set the alert threshold from a JSON body ``{"threshold": number}``."""
    store = request.app.state.store

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": INVALID_THRESHOLD})

    value = body.get("threshold") if isinstance(body, dict) else None
    if not _is_positive_number(value):
        log.info("threshold_rejected", value=repr(value)[:64])
        return JSONResponse(status_code=400, content={"error": INVALID_THRESHOLD})

    store.set_threshold(Decimal(str(value)))
    log.info("threshold_updated_via_api", threshold=value)
    return JSONResponse(content={"success": True, "threshold": value})


@router.get("/check")
async def force_check(request: Request) -> JSONResponse:
    """Run one check cycle now."""
    check_cycle = request.app.state.check_cycle

    try:
        result = await check_cycle.run_check()
    except CheckError as e:
        return JSONResponse(content={"success": False, "error": str(e)})

    return JSONResponse(content=_decimal_to_float({
        "success": True,
        "rate": result.rate,
        "threshold": result.threshold,
        "triggered": result.triggered,
        "message": result.message,
    }))
