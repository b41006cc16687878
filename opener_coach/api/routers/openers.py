"""Opener catalog routes."""

from fastapi import APIRouter, HTTPException

from opener_coach.agents.openers import get_opener
from opener_coach.api.services import get_services

router = APIRouter(prefix="/api/openers", tags=["openers"])


@router.get("")
def list_openers():
    return [o.to_dict() for o in get_services().matcher.get_all_openers()]


@router.get("/sorted")
def sorted_openers():
    """Catalog with the recommended opener first, then by success rate."""
    return [o.to_dict() for o in get_services().analyzer.get_sorted_openers()]


@router.get("/{opener_id}")
def get_opener_route(opener_id: str):
    opener = get_opener(opener_id)
    if not opener:
        raise HTTPException(status_code=404, detail="Opener not found")
    return opener.to_dict()
