"""Heart-rate and voice input API routes."""
from fastapi import APIRouter, Depends, HTTPException

from heart_rate_listener import get_heart_rate_listener_status
from ride_session import RideSessionEngine, UtteranceQueue
from ride_session.heart_rate import parse_heart_rate_measurement
from ride_session.voice_confirmation import is_confirmation_phrase

from ..models.sensors import HeartRateAccepted, HeartRateSample, UtteranceAccepted, UtteranceRequest
from ..services.session import get_engine, get_utterances

router = APIRouter(prefix="/api/ride", tags=["Sensors"])


@router.post("/heart-rate", response_model=HeartRateAccepted)
async def post_heart_rate(
    sample: HeartRateSample,
    engine: RideSessionEngine = Depends(get_engine),
):
    """Push a heart-rate sample; accepted in any session status."""
    if sample.measurement:
        try:
            bpm = parse_heart_rate_measurement(sample.measurement)
        except ValueError:
            raise HTTPException(status_code=422, detail="measurement must be a hex string")
    else:
        bpm = sample.bpm

    engine.ingest_heart_rate(bpm)
    return HeartRateAccepted(bpm=bpm)


@router.get("/heart-rate/status")
async def heart_rate_listener_status():
    """Status of the Solace heart-rate listener."""
    return get_heart_rate_listener_status()


@router.post("/voice/utterance", response_model=UtteranceAccepted)
async def post_utterance(
    request: UtteranceRequest,
    engine: RideSessionEngine = Depends(get_engine),
    utterances: UtteranceQueue = Depends(get_utterances),
):
    """
    Queue a recognized transcript for the voice confirmation loop.

    Transcripts that arrive while the loop is not active (paused ride, voice
    commands off) are dropped rather than replayed later.
    """
    if engine.voice_loop is None or not engine.voice_loop.is_active:
        return UtteranceAccepted(queued=False)

    if request.error:
        queued = utterances.push_error(request.error, request.detail)
        return UtteranceAccepted(queued=queued)

    queued = utterances.push(request.transcript)
    return UtteranceAccepted(queued=queued, is_confirmation=is_confirmation_phrase(request.transcript))


@router.post("/voice/end")
async def end_listening(
    engine: RideSessionEngine = Depends(get_engine),
    utterances: UtteranceQueue = Depends(get_utterances),
):
    """Signal that the rider's recognizer stopped; the loop restarts it."""
    if engine.voice_loop is None or not engine.voice_loop.is_active:
        return {"status": "not_listening"}
    utterances.close()
    return {"status": "closed"}


@router.post("/voice/test")
async def test_voice(engine: RideSessionEngine = Depends(get_engine)):
    """Speak a sample fueling alert."""
    engine.test_voice_alert()
    return {"status": "spoken"}
