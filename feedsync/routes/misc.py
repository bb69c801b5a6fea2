"""
Miscellaneous routes: health check, settings, scheduler status.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from .. import __version__
from ..config import state, get_settings
from ..schemas import (
    FeedUpdateResultResponse,
    IntervalResponse,
    IntervalUpdateRequest,
    SchedulerStatusResponse,
    SettingResponse,
)
from ..scheduler import SchedulerState
from ..settings import MAX_FEED_UPDATE_INTERVAL, MIN_FEED_UPDATE_INTERVAL, SettingsService

router = APIRouter(tags=["misc"])


# ─────────────────────────────────────────────────────────────
# Health Check
# ─────────────────────────────────────────────────────────────

@router.get("/status")
async def health_check() -> dict:
    """API health check."""
    return {
        "status": "ok",
        "version": __version__,
        "scheduler_running": bool(state.scheduler and state.scheduler.is_running),
        "refresh_in_progress": state.refresh_in_progress,
    }


# ─────────────────────────────────────────────────────────────
# Settings
# ─────────────────────────────────────────────────────────────

@router.get("/settings")
async def list_settings(
    settings: Annotated[SettingsService, Depends(get_settings)]
) -> list[SettingResponse]:
    """List all stored settings."""
    return [SettingResponse.from_db(s) for s in settings.get_all()]


@router.get("/settings/interval")
async def get_interval(
    settings: Annotated[SettingsService, Depends(get_settings)]
) -> IntervalResponse:
    """Get the feed update interval in minutes."""
    return IntervalResponse(minutes=settings.get_interval())


@router.put("/settings/interval")
async def set_interval(
    request: IntervalUpdateRequest,
    settings: Annotated[SettingsService, Depends(get_settings)]
) -> IntervalResponse:
    """Change the feed update interval; applies after the next scheduled run."""
    if not settings.set_interval(request.minutes):
        raise HTTPException(
            status_code=400,
            detail=(
                f"Interval must be between {MIN_FEED_UPDATE_INTERVAL} "
                f"and {MAX_FEED_UPDATE_INTERVAL} minutes"
            ),
        )
    return IntervalResponse(minutes=settings.get_interval())


# ─────────────────────────────────────────────────────────────
# Scheduler
# ─────────────────────────────────────────────────────────────

@router.get("/scheduler")
async def scheduler_status() -> SchedulerStatusResponse:
    """Report scheduler state and the outcome of its last batch."""
    scheduler = state.scheduler
    if not scheduler:
        return SchedulerStatusResponse(
            state=SchedulerState.STOPPED.value,
            interval_minutes=state.settings.get_interval() if state.settings else 0,
        )

    last_result = None
    if scheduler.last_result:
        last_result = FeedUpdateResultResponse.from_result(scheduler.last_result)

    return SchedulerStatusResponse(
        state=scheduler.state.value,
        interval_minutes=scheduler.interval_minutes,
        last_result=last_result,
    )
