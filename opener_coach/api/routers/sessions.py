"""Call session routes. SessionError is mapped to HTTP by the app."""

from typing import Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from opener_coach.api.services import get_services
from opener_coach.db import models

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


class TranscriptEvent(BaseModel):
    text: str
    speaker: Literal["agent", "other", "client", "prospect"]


class OpenerSelection(BaseModel):
    opener_id: str


class OutcomeRequest(BaseModel):
    outcome: Optional[Literal["stayed", "left"]] = None
    call_duration_seconds: Optional[float] = Field(default=None, ge=0)
    has_other_party_response: Optional[bool] = None


class OfflineModeRequest(BaseModel):
    enabled: bool


@router.post("")
def start_session():
    return get_services().sessions.start_session().to_dict()


@router.get("")
def list_sessions(limit: int = 100, offset: int = 0, opener_id: str = None, outcome: str = None):
    return models.list_call_sessions(limit=limit, offset=offset,
                                     opener_id=opener_id, outcome=outcome)


@router.get("/current")
def current_session():
    manager = get_services().sessions
    session = manager.get_current_session()
    if not session:
        raise HTTPException(status_code=404, detail="No active session")
    recovery = manager.get_recovery_options()
    return {
        "session": session.to_dict(),
        "offline_mode": manager.is_offline_mode(),
        "recovery": {
            "needs_opener": recovery.needs_opener,
            "needs_outcome": recovery.needs_outcome,
            "can_recover": recovery.can_recover,
        },
    }


@router.post("/current/transcript")
def transcript_event(event: TranscriptEvent):
    manager = get_services().sessions
    result = manager.handle_transcription(event.text, event.speaker)
    return {
        "session": manager.get_current_session().to_dict(),
        "match": result.to_dict() if result else None,
    }


@router.post("/current/opener")
def select_opener(selection: OpenerSelection):
    manager = get_services().sessions
    manager.record_opener_by_id(selection.opener_id)
    return manager.get_current_session().to_dict()


@router.post("/current/outcome")
def record_outcome(req: OutcomeRequest):
    """Record the outcome directly, or classify it from call duration."""
    manager = get_services().sessions
    if req.outcome:
        manager.record_outcome(req.outcome)
        outcome = req.outcome
    elif req.call_duration_seconds is not None:
        outcome = manager.classify_and_record(req.call_duration_seconds,
                                              req.has_other_party_response)
    else:
        raise HTTPException(status_code=400,
                            detail="Provide an outcome or call_duration_seconds")
    return {"outcome": outcome, "session": manager.get_current_session().to_dict()}


@router.post("/current/end")
def end_session():
    return get_services().sessions.end_session().to_dict()


@router.delete("/current")
def cancel_session():
    get_services().sessions.cancel_session()
    return {"cancelled": True}


@router.put("/offline-mode")
def offline_mode(req: OfflineModeRequest):
    manager = get_services().sessions
    manager.set_offline_mode(req.enabled)
    return {"offline_mode": manager.is_offline_mode()}


@router.get("/{session_id}")
def get_session(session_id: str):
    session = models.get_call_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session
