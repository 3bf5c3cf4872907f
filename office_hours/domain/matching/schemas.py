"""Matching domain schemas - Pydantic models for profiles, results and responses"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_label_list(v) -> list[str]:
    """Treat missing label lists as empty and drop blank entries"""
    if not v:
        return []
    if isinstance(v, str):
        v = [v]
    return [str(item) for item in v if item is not None and str(item) != ""]


class MenteeProfile(BaseModel):
    """Scoring input for a mentee"""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    industry_focus: list[str] = Field(default_factory=list)
    startup_stage: Optional[str] = None

    @field_validator("industry_focus", mode="before")
    @classmethod
    def normalize_industry_focus(cls, v):
        return _as_label_list(v)

    @field_validator("startup_stage", mode="before")
    @classmethod
    def normalize_startup_stage(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class MentorProfile(BaseModel):
    """Scoring input for a mentor; name, email and bio only feed the reasoning prompt"""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    expertise_areas: list[str] = Field(default_factory=list)
    industry_focus: list[str] = Field(default_factory=list)
    name: Optional[str] = None
    email: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("expertise_areas", "industry_focus", mode="before")
    @classmethod
    def normalize_labels(cls, v):
        return _as_label_list(v)


class MatchResult(BaseModel):
    mentee_id: int
    mentor_id: int
    score: int
    reasoning: str


class MatchFilters(BaseModel):
    expertise: list[str] = Field(default_factory=list)
    industry: list[str] = Field(default_factory=list)
    available: bool = False
    min_rating: Optional[float] = None
    limit: Optional[int] = None


class TimeSlot(BaseModel):
    start_time: str
    end_time: str


class MentorSummary(BaseModel):
    id: int
    name: str
    profile_picture_url: Optional[str] = None
    expertise_areas: list[str] = Field(default_factory=list)
    industry_focus: list[str] = Field(default_factory=list)
    bio: Optional[str] = None


class MentorMatch(BaseModel):
    """One ranked mentor for a mentee"""

    mentor_id: int
    mentor: MentorSummary
    match_score: int
    reasoning: str
    available_slots: Optional[list[TimeSlot]] = None
    average_rating: Optional[float] = None
    total_sessions: int = 0


class MentorListItem(MentorMatch):
    is_favorite: bool = False


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class MentorListResponse(BaseModel):
    items: list[MentorListItem]
    pagination: Pagination


class MenteeSummary(BaseModel):
    id: int
    name: str
    profile_picture_url: Optional[str] = None
    industry_focus: list[str] = Field(default_factory=list)
    startup_stage: Optional[str] = None


class MenteeMatch(BaseModel):
    mentee_id: int
    mentee: MenteeSummary
    match_score: int


class MenteeMatchesResponse(BaseModel):
    matches: list[MenteeMatch]


class ScoreBreakdown(BaseModel):
    industry_match: int
    expertise_match: int
    stage_relevance: int
    availability: int


class MatchExplanation(BaseModel):
    mentee_id: int
    mentor_id: int
    match_score: int
    reasoning: str
    breakdown: ScoreBreakdown


class RefreshResponse(BaseModel):
    count: int
    message: str


class MentorAvailabilityResponse(BaseModel):
    availability: list[TimeSlot]


class FavoriteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mentee_id: int
    mentor_id: int
    created_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str
