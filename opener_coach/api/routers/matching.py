"""Transcript matching and outcome classification routes."""

from typing import Literal, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from opener_coach.agents.matcher import OpenerMatcher
from opener_coach.agents.outcome_classifier import detect_outcome
from opener_coach.api.services import get_services

router = APIRouter(prefix="/api", tags=["matching"])


class MatchRequest(BaseModel):
    text: str
    mode: Literal["best", "confidence", "ambiguity"] = "confidence"
    similarity_threshold: Optional[float] = None
    ambiguity_threshold: Optional[float] = None


class ClassifyRequest(BaseModel):
    call_duration_seconds: float = Field(ge=0)
    has_other_party_response: bool


class DetectRequest(BaseModel):
    transcript: str = ""
    call_duration_seconds: float = Field(ge=0)


@router.post("/match")
def match_transcript(req: MatchRequest):
    matcher = get_services().matcher
    if req.similarity_threshold is not None or req.ambiguity_threshold is not None:
        # ConfigurationError from bad thresholds is mapped to 422 by the app
        matcher = OpenerMatcher(
            similarity_threshold=req.similarity_threshold
            if req.similarity_threshold is not None else matcher.similarity_threshold,
            ambiguity_threshold=req.ambiguity_threshold
            if req.ambiguity_threshold is not None else matcher.ambiguity_threshold,
        )

    if req.mode == "best":
        opener = matcher.match(req.text)
        return {"opener": opener.to_dict() if opener else None}
    if req.mode == "ambiguity":
        return matcher.match_with_ambiguity_detection(req.text).to_dict()
    result = matcher.match_with_confidence(req.text)
    return {"match": result.to_dict() if result else None}


@router.post("/outcome/classify")
def classify(req: ClassifyRequest):
    outcome = get_services().classifier.classify_outcome(
        req.call_duration_seconds, req.has_other_party_response)
    return {"outcome": outcome}


@router.post("/outcome/detect")
def detect(req: DetectRequest):
    return detect_outcome(req.transcript, req.call_duration_seconds).to_dict()
