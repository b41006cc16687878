"""Recommendation and statistics routes."""

from typing import Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from opener_coach.agents.openers import get_opener
from opener_coach.api.services import get_services

router = APIRouter(prefix="/api", tags=["analytics"])


class OutcomeUpdate(BaseModel):
    outcome: Literal["stayed", "left"]


@router.get("/recommendations")
def recommendation():
    services = get_services()
    result = services.analyzer.get_recommendation()
    data = result.to_dict()
    data["explanation"] = services.analyzer.engine.get_recommendation_explanation(result)
    return data


@router.get("/recommendations/alternatives")
def alternatives():
    """Openers worth suggesting after a failed call."""
    return [o.to_dict() for o in get_services().analyzer.get_recommended_openers()]


@router.get("/statistics")
def statistics():
    analyzer = get_services().analyzer
    snapshot = analyzer.get_snapshot()
    return {
        "generation": snapshot.generation,
        "statistics": [s.to_dict() for s in analyzer.get_all_statistics()],
    }


@router.post("/statistics/{opener_id}")
def record_statistics(opener_id: str, update: OutcomeUpdate):
    """Count one completed call for an opener outside a tracked session."""
    if not get_opener(opener_id):
        raise HTTPException(status_code=404, detail="Opener not found")
    return get_services().analyzer.update_statistics(opener_id, update.outcome).to_dict()


@router.delete("/statistics")
def clear_statistics():
    """Reset all statistics and stored sessions."""
    analyzer = get_services().analyzer
    analyzer.clear_all_data()
    return {"cleared": True, "generation": analyzer.get_snapshot().generation}
