"""Matching service - Ranking, match persistence and match explanations"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import MatchScoreCache, match_score_cache
from ...config import REASONING_MIN_SCORE, REASONING_TIMEOUT_SECONDS
from ...models import FavoriteMentor, User
from .availability import compute_available_slots
from .reasoning import ReasoningGenerator, fallback_reasoning, generate_reasoning_with_fallback
from .repository import MatchRepository
from .schemas import (
    MatchExplanation,
    MatchFilters,
    MatchResult,
    MenteeMatch,
    MenteeProfile,
    MenteeSummary,
    MentorMatch,
    MentorProfile,
    MentorSummary,
    TimeSlot,
)
from .scoring import calculate_match_score, score_breakdown

logger = logging.getLogger(__name__)


async def rank_mentors(
    mentee: MenteeProfile,
    mentors: Sequence[MentorProfile],
    generator: Optional[ReasoningGenerator],
    timeout: float = REASONING_TIMEOUT_SECONDS,
    reasoning_min_score: int = REASONING_MIN_SCORE,
) -> list[MatchResult]:
    """
    Score every mentor for one mentee and attach reasoning.

    Reasoning is generated concurrently for mentors scoring above
    ``reasoning_min_score``; the rest get the templated fallback. The result
    is sorted by descending score, ties keeping the order of ``mentors``.
    """
    scores = [calculate_match_score(mentee, mentor) for mentor in mentors]

    async def reasoning_for(mentor: MentorProfile, score: int) -> str:
        if score > reasoning_min_score:
            return await generate_reasoning_with_fallback(generator, mentee, mentor, score, timeout)
        return fallback_reasoning(mentee, mentor)

    reasonings = await asyncio.gather(
        *(reasoning_for(mentor, score) for mentor, score in zip(mentors, scores))
    )

    results = [
        MatchResult(mentee_id=mentee.id, mentor_id=mentor.id, score=score, reasoning=reasoning)
        for mentor, score, reasoning in zip(mentors, scores, reasonings)
    ]
    # sorted() is stable, so equal scores keep input order
    return sorted(results, key=lambda r: r.score, reverse=True)


def _mentor_summary(mentor: User) -> MentorSummary:
    return MentorSummary(
        id=mentor.id,
        name=mentor.name or mentor.email,
        profile_picture_url=mentor.profile_picture_url,
        expertise_areas=mentor.expertise_areas or [],
        industry_focus=mentor.industry_focus or [],
        bio=mentor.bio,
    )


class MatchingService:
    """Service layer for matching business logic"""

    def __init__(
        self,
        db: Session,
        reasoning_generator: Optional[ReasoningGenerator] = None,
        score_cache: Optional[MatchScoreCache] = None,
        reasoning_timeout: float = REASONING_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.repo = MatchRepository()
        self.reasoning_generator = reasoning_generator
        self.score_cache = score_cache if score_cache is not None else match_score_cache
        self.reasoning_timeout = reasoning_timeout

    def _get_user_or_404(self, user_id: int, label: str) -> User:
        user = self.repo.get_user(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return user

    async def generate_matches(self, mentee_id: int) -> list[MatchResult]:
        """Recompute and store every match for a mentee"""
        mentee_user = self._get_user_or_404(mentee_id, "Mentee")
        mentee = MenteeProfile.model_validate(mentee_user)
        mentors = [MentorProfile.model_validate(m) for m in self.repo.get_active_mentors(self.db)]

        logger.info(f"🔄 Generating matches for mentee {mentee_id} against {len(mentors)} mentors")
        results = await rank_mentors(
            mentee, mentors, self.reasoning_generator, timeout=self.reasoning_timeout
        )

        self.repo.replace_matches_for_mentee(
            self.db,
            mentee_id,
            [
                {
                    "mentee_id": r.mentee_id,
                    "mentor_id": r.mentor_id,
                    "match_score": r.score,
                    "reasoning": r.reasoning,
                }
                for r in results
            ],
        )
        self.score_cache.invalidate_mentee(mentee_id)

        logger.info(f"✅ Stored {len(results)} matches for mentee {mentee_id}")
        return results

    def get_available_slots(self, mentor_id: int, now: Optional[datetime] = None) -> list[TimeSlot]:
        now = now or datetime.utcnow()
        availability = self.repo.get_recurring_availability(self.db, mentor_id, now)
        sessions = self.repo.get_upcoming_sessions(self.db, mentor_id, now)
        return compute_available_slots(availability, sessions, now)

    def get_mentor_or_404(self, mentor_id: int) -> User:
        mentor = self.repo.get_user(self.db, mentor_id)
        if not mentor or mentor.role != "mentor":
            raise HTTPException(status_code=404, detail="Mentor not found")
        return mentor

    def get_mentor_availability(self, mentor_id: int, now: Optional[datetime] = None) -> list[TimeSlot]:
        self.get_mentor_or_404(mentor_id)
        return self.get_available_slots(mentor_id, now)

    def add_favorite(self, mentee_id: int, mentor_id: int) -> FavoriteMentor:
        self.get_mentor_or_404(mentor_id)
        if self.repo.get_favorite(self.db, mentee_id, mentor_id):
            raise HTTPException(status_code=400, detail="Mentor is already in favorites")

        favorite = self.repo.add_favorite(self.db, mentee_id, mentor_id)
        logger.info(f"⭐ Mentee {mentee_id} favorited mentor {mentor_id}")
        return favorite

    def remove_favorite(self, mentee_id: int, mentor_id: int) -> None:
        favorite = self.repo.get_favorite(self.db, mentee_id, mentor_id)
        if not favorite:
            raise HTTPException(status_code=404, detail="Favorite not found")

        self.repo.delete_favorite(self.db, favorite)
        logger.info(f"🗑️ Mentee {mentee_id} unfavorited mentor {mentor_id}")

    async def get_matches_for_mentee(
        self, mentee_id: int, filters: Optional[MatchFilters] = None
    ) -> list[MentorMatch]:
        """Stored matches for a mentee (generated on first use), filtered and ranked"""
        filters = filters or MatchFilters()

        matches = self.repo.get_matches_for_mentee(self.db, mentee_id)
        if not matches:
            await self.generate_matches(mentee_id)
            matches = self.repo.get_matches_for_mentee(self.db, mentee_id)

        mentor_ids = [m.mentor_id for m in matches]
        ratings = self.repo.get_mentor_ratings(self.db, mentor_ids)
        session_counts = self.repo.get_completed_session_counts(self.db, mentor_ids)

        results: list[MentorMatch] = []
        for match in matches:
            mentor = match.mentor
            expertise = mentor.expertise_areas or []
            industries = mentor.industry_focus or []

            if filters.expertise and not any(exp in expertise for exp in filters.expertise):
                continue

            if filters.industry and not any(
                ind in industries or ind in expertise for ind in filters.industry
            ):
                continue

            average_rating = ratings.get(mentor.id)
            if (
                filters.min_rating is not None
                and average_rating is not None
                and average_rating < filters.min_rating
            ):
                continue

            available_slots = None
            if filters.available:
                available_slots = self.get_available_slots(mentor.id)
                if not available_slots:
                    continue

            results.append(
                MentorMatch(
                    mentor_id=mentor.id,
                    mentor=_mentor_summary(mentor),
                    match_score=match.match_score,
                    reasoning=match.reasoning or "",
                    available_slots=available_slots,
                    average_rating=average_rating,
                    total_sessions=session_counts.get(mentor.id, 0),
                )
            )

            if filters.limit and len(results) >= filters.limit:
                break

        return sorted(results, key=lambda r: r.match_score, reverse=True)

    def get_matches_for_mentor(self, mentor_id: int) -> list[MenteeMatch]:
        """Every active mentee scored against one mentor, best first"""
        mentor = MentorProfile.model_validate(self._get_user_or_404(mentor_id, "Mentor"))

        matches = []
        for mentee_user in self.repo.get_active_mentees(self.db):
            mentee = MenteeProfile.model_validate(mentee_user)
            matches.append(
                MenteeMatch(
                    mentee_id=mentee.id,
                    mentee=MenteeSummary(
                        id=mentee.id,
                        name=mentee_user.name or mentee_user.email,
                        profile_picture_url=mentee_user.profile_picture_url,
                        industry_focus=mentee.industry_focus,
                        startup_stage=mentee.startup_stage,
                    ),
                    match_score=calculate_match_score(mentee, mentor),
                )
            )

        return sorted(matches, key=lambda m: m.match_score, reverse=True)

    async def get_match_explanation(self, mentee_id: int, mentor_id: int) -> MatchExplanation:
        """Score, reasoning and component breakdown for one pair"""
        mentee = MenteeProfile.model_validate(self._get_user_or_404(mentee_id, "Mentee"))
        mentor = MentorProfile.model_validate(self._get_user_or_404(mentor_id, "Mentor"))

        score = self.score_cache.get_score(mentee_id, mentor_id)
        if score is None:
            score = calculate_match_score(mentee, mentor)
            self.score_cache.set_score(mentee_id, mentor_id, score)

        stored = self.repo.get_match(self.db, mentee_id, mentor_id)
        if stored and stored.reasoning:
            reasoning = stored.reasoning
        else:
            reasoning = await generate_reasoning_with_fallback(
                self.reasoning_generator, mentee, mentor, score, self.reasoning_timeout
            )

        return MatchExplanation(
            mentee_id=mentee_id,
            mentor_id=mentor_id,
            match_score=score,
            reasoning=reasoning,
            breakdown=score_breakdown(mentee, mentor),
        )
