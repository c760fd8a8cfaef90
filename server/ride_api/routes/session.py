"""Ride session control API routes."""
from fastapi import APIRouter, Depends

from ride_session import INTENSITY_PRESETS, RideSessionEngine, RideType
from ride_session.fueling_scheduler import round_half_up
from ride_session.summary import format_duration

from ..models.session import (
    ConfirmFuelingResponse,
    FuelingAlertModel,
    IntensityPresetModel,
    RideSummaryResponse,
    SessionStateResponse,
    StartSessionRequest,
)
from ..services.session import get_engine

router = APIRouter(prefix="/api/ride", tags=["Session"])


def _snapshot_to_state(snapshot: dict) -> SessionStateResponse:
    """Convert an engine snapshot to the riding-screen response model."""
    next_fueling_in = snapshot["next_fueling_in"]
    pending = snapshot["pending_alert"]

    return SessionStateResponse(
        status=snapshot["status"],
        ride_type=snapshot["config"]["ride_type"],
        preset_name=snapshot["preset"]["name"],
        elapsed_seconds=snapshot["elapsed_seconds"],
        elapsed=format_duration(snapshot["elapsed_seconds"]),
        heart_rate=snapshot["heart_rate"],
        avg_heart_rate=snapshot["avg_heart_rate"],
        calories_burned=round_half_up(snapshot["calories_burned"]),
        calories_consumed=round_half_up(snapshot["calories_consumed"]),
        calorie_deficit=round_half_up(snapshot["calorie_deficit"]),
        next_fueling_in=(
            round_half_up(next_fueling_in) if next_fueling_in is not None else None
        ),
        countdown_phase=snapshot["countdown_phase"],
        pending_alert=FuelingAlertModel(**pending) if pending else None,
        alerts_fired=snapshot["alerts_fired"],
        fuelings_confirmed=snapshot["fuelings_confirmed"],
        listening=snapshot["listening"],
    )


@router.get("/presets", response_model=list[IntensityPresetModel])
async def get_presets():
    """List the intensity presets, easiest first."""
    return [
        IntensityPresetModel(
            ride_type=ride_type, name=preset.name, met=preset.met, hr_percent=preset.hr_percent
        )
        for ride_type, preset in INTENSITY_PRESETS.items()
    ]


@router.get("/session", response_model=SessionStateResponse)
async def get_session(engine: RideSessionEngine = Depends(get_engine)):
    """Get the live session state."""
    return _snapshot_to_state(engine.snapshot())


@router.post("/session/start", response_model=SessionStateResponse)
async def start_session(
    request: StartSessionRequest,
    engine: RideSessionEngine = Depends(get_engine),
):
    """Start a ride with the given setup."""
    engine.start_session(request.to_config())
    return _snapshot_to_state(engine.snapshot())


@router.post("/session/pause", response_model=SessionStateResponse)
async def pause_session(engine: RideSessionEngine = Depends(get_engine)):
    engine.pause_session()
    return _snapshot_to_state(engine.snapshot())


@router.post("/session/resume", response_model=SessionStateResponse)
async def resume_session(engine: RideSessionEngine = Depends(get_engine)):
    engine.resume_session()
    return _snapshot_to_state(engine.snapshot())


@router.post("/session/end", response_model=RideSummaryResponse)
async def end_session(engine: RideSessionEngine = Depends(get_engine)):
    """End the ride and return the summary."""
    summary = engine.end_session()
    return RideSummaryResponse(**summary.to_dict())


@router.post("/session/reset", response_model=SessionStateResponse)
async def reset_session(engine: RideSessionEngine = Depends(get_engine)):
    """Discard the ride and go back to setup."""
    engine.reset_session()
    return _snapshot_to_state(engine.snapshot())


@router.post("/session/confirm-fueling", response_model=ConfirmFuelingResponse)
async def confirm_fueling(engine: RideSessionEngine = Depends(get_engine)):
    """
    Mark the pending fueling alert as consumed.

    Returns confirmed=false when no alert is pending.
    """
    alert = engine.confirm_fueling()
    return ConfirmFuelingResponse(
        confirmed=alert is not None,
        alert=FuelingAlertModel(**alert.to_dict()) if alert else None,
        calories_consumed=round_half_up(engine.state.calories_consumed),
    )


@router.get("/session/summary", response_model=RideSummaryResponse)
async def get_summary(engine: RideSessionEngine = Depends(get_engine)):
    """Get the ride totals so far."""
    return RideSummaryResponse(**engine.summary().to_dict())


@router.get("/capabilities")
async def get_capabilities(engine: RideSessionEngine = Depends(get_engine)):
    """Which collaborators (heart rate, audio, speech) are available."""
    return engine.capabilities
