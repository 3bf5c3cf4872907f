"""Matching routers - FastAPI endpoints for mentor browsing and match management"""

import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_role
from ...database import get_db
from ...models import User
from ...rate_limiter import matching_rate_limit
from .reasoning import LLMReasoningGenerator
from .repository import MatchRepository
from .schemas import (
    FavoriteResponse,
    MatchExplanation,
    MatchFilters,
    MenteeMatchesResponse,
    MentorAvailabilityResponse,
    MentorListItem,
    MentorListResponse,
    MentorMatch,
    MessageResponse,
    Pagination,
    RefreshResponse,
)
from .service import MatchingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matching", tags=["Matching"])
mentors_router = APIRouter(prefix="/mentors", tags=["Mentors"])

SORT_FIELDS = ("matchScore", "rating", "availability", "name")


def get_matching_service(db: Session = Depends(get_db)) -> MatchingService:
    """Dependency injection for MatchingService"""
    return MatchingService(db, reasoning_generator=LLMReasoningGenerator())


def _split_csv(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _matches_search(match: MentorMatch, term: str) -> bool:
    mentor = match.mentor
    return (
        term in (mentor.name or "").lower()
        or term in (mentor.bio or "").lower()
        or any(term in area.lower() for area in mentor.expertise_areas)
        or term in (match.reasoning or "").lower()
    )


def _sort_value(match: MentorMatch, sort_by: str):
    if sort_by == "rating":
        return match.average_rating or 0
    if sort_by == "availability":
        return len(match.available_slots or [])
    if sort_by == "name":
        return match.mentor.name or ""
    return match.match_score


# ============================================================================
# MENTOR BROWSING
# ============================================================================


@mentors_router.get("", response_model=MentorListResponse)
async def list_mentors(
    expertise: Optional[str] = Query(None, description="Comma-separated expertise areas"),
    industry: Optional[str] = Query(None, description="Comma-separated industries"),
    available: bool = Query(False),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    search: Optional[str] = Query(None),
    sort_by: str = Query("matchScore", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    favorites_only: bool = Query(False, alias="favoritesOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    service: MatchingService = Depends(get_matching_service),
    _: None = Depends(matching_rate_limit),
):
    """Ranked mentors for the current user with filters, search, sorting and pagination"""
    if sort_by not in SORT_FIELDS:
        raise HTTPException(status_code=422, detail=f"sortBy must be one of {', '.join(SORT_FIELDS)}")

    filters = MatchFilters(
        expertise=_split_csv(expertise),
        industry=_split_csv(industry),
        available=available,
        min_rating=min_rating,
    )
    matches = await service.get_matches_for_mentee(current_user.id, filters)

    if search:
        term = search.lower()
        matches = [m for m in matches if _matches_search(m, term)]

    favorite_ids = MatchRepository.get_favorite_mentor_ids(service.db, current_user.id)
    if favorites_only:
        matches = [m for m in matches if m.mentor_id in favorite_ids]

    matches = sorted(
        matches, key=lambda m: _sort_value(m, sort_by), reverse=(sort_order == "desc")
    )

    total = len(matches)
    start = (page - 1) * limit
    end = start + limit
    items = [
        MentorListItem(**m.model_dump(), is_favorite=m.mentor_id in favorite_ids)
        for m in matches[start:end]
    ]

    return MentorListResponse(
        items=items,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
            has_next=end < total,
            has_prev=page > 1,
        ),
    )


@mentors_router.get("/{mentor_id}/matches", response_model=MenteeMatchesResponse)
async def get_mentor_matches(
    mentor_id: int,
    current_user: User = Depends(require_role("mentor")),
    service: MatchingService = Depends(get_matching_service),
):
    """Mentees ranked for a mentor (the mentor themself only)"""
    if mentor_id != current_user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return MenteeMatchesResponse(matches=service.get_matches_for_mentor(mentor_id))


@mentors_router.get("/{mentor_id}/availability", response_model=MentorAvailabilityResponse)
async def get_mentor_availability(
    mentor_id: int,
    _current_user: User = Depends(get_current_user),
    service: MatchingService = Depends(get_matching_service),
):
    """Bookable slots for a mentor over the next two weeks"""
    return MentorAvailabilityResponse(availability=service.get_mentor_availability(mentor_id))


# ============================================================================
# FAVORITES
# ============================================================================


@mentors_router.post("/{mentor_id}/favorite", response_model=FavoriteResponse)
async def favorite_mentor(
    mentor_id: int,
    current_user: User = Depends(require_role("mentee")),
    service: MatchingService = Depends(get_matching_service),
):
    """Add a mentor to the current mentee's favorites"""
    return service.add_favorite(current_user.id, mentor_id)


@mentors_router.delete("/{mentor_id}/favorite", response_model=MessageResponse)
async def unfavorite_mentor(
    mentor_id: int,
    current_user: User = Depends(require_role("mentee")),
    service: MatchingService = Depends(get_matching_service),
):
    """Remove a mentor from the current mentee's favorites"""
    service.remove_favorite(current_user.id, mentor_id)
    return MessageResponse(message="Mentor removed from favorites")


# ============================================================================
# MATCH MANAGEMENT
# ============================================================================


@router.get("/explain/{mentor_id}", response_model=MatchExplanation)
async def explain_match(
    mentor_id: int,
    current_user: User = Depends(require_role("mentee", "admin")),
    service: MatchingService = Depends(get_matching_service),
    _: None = Depends(matching_rate_limit),
):
    """Score breakdown and reasoning for the current mentee and one mentor"""
    return await service.get_match_explanation(current_user.id, mentor_id)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_matches(
    current_user: User = Depends(get_current_user),
    service: MatchingService = Depends(get_matching_service),
    _: None = Depends(matching_rate_limit),
):
    """Regenerate all matches for the current mentee"""
    if current_user.role != "mentee":
        raise HTTPException(status_code=403, detail="Only mentees can refresh matches")

    results = await service.generate_matches(current_user.id)
    logger.info(f"✅ Refreshed {len(results)} matches for mentee {current_user.id}")
    return RefreshResponse(count=len(results), message="Matches refreshed successfully")
