"""Matching repository - Database operations for profiles and matches"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import Availability, FavoriteMentor, Feedback, Match, MentorshipSession, User

logger = logging.getLogger(__name__)

REPLACE_MATCHES_ATTEMPTS = 2


class MatchRepository:
    """Repository for matching database operations"""

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_active_mentors(db: Session) -> list[User]:
        """Active mentors in id order, which is the ranking tie-break order"""
        return (
            db.query(User)
            .filter(User.role == "mentor", User.is_active.is_(True))
            .order_by(User.id)
            .all()
        )

    @staticmethod
    def get_active_mentees(db: Session) -> list[User]:
        return (
            db.query(User)
            .filter(User.role == "mentee", User.is_active.is_(True))
            .order_by(User.id)
            .all()
        )

    @staticmethod
    def get_matches_for_mentee(db: Session, mentee_id: int) -> list[Match]:
        return (
            db.query(Match)
            .options(joinedload(Match.mentor))
            .filter(Match.mentee_id == mentee_id)
            .order_by(Match.match_score.desc(), Match.mentor_id)
            .all()
        )

    @staticmethod
    def get_match(db: Session, mentee_id: int, mentor_id: int) -> Optional[Match]:
        return (
            db.query(Match)
            .filter(Match.mentee_id == mentee_id, Match.mentor_id == mentor_id)
            .first()
        )

    @staticmethod
    def replace_matches_for_mentee(db: Session, mentee_id: int, rows: list[dict]) -> None:
        """
        Delete a mentee's matches and insert the new set in one transaction.

        A concurrent regeneration for the same mentee can commit its rows
        between our delete and insert, tripping the pair constraint. The
        transaction is then rolled back and replayed once against the
        committed rows.
        """
        for attempt in range(1, REPLACE_MATCHES_ATTEMPTS + 1):
            try:
                db.query(Match).filter(Match.mentee_id == mentee_id).delete(synchronize_session="fetch")
                db.add_all([Match(**row) for row in rows])
                db.commit()
                return
            except IntegrityError:
                db.rollback()
                if attempt == REPLACE_MATCHES_ATTEMPTS:
                    raise
                logger.warning(f"⚠️ Concurrent match regeneration for mentee {mentee_id}, retrying")
            except Exception:
                db.rollback()
                raise

    @staticmethod
    def get_mentor_ratings(db: Session, mentor_ids: list[int]) -> dict[int, float]:
        """Average feedback rating per mentor; mentors without feedback are absent"""
        if not mentor_ids:
            return {}
        rows = (
            db.query(Feedback.mentor_id, func.avg(Feedback.rating))
            .filter(Feedback.mentor_id.in_(mentor_ids))
            .group_by(Feedback.mentor_id)
            .all()
        )
        return {mentor_id: float(avg) for mentor_id, avg in rows}

    @staticmethod
    def get_completed_session_counts(db: Session, mentor_ids: list[int]) -> dict[int, int]:
        if not mentor_ids:
            return {}
        rows = (
            db.query(MentorshipSession.mentor_id, func.count(MentorshipSession.id))
            .filter(
                MentorshipSession.mentor_id.in_(mentor_ids),
                MentorshipSession.status == "completed",
            )
            .group_by(MentorshipSession.mentor_id)
            .all()
        )
        return {mentor_id: count for mentor_id, count in rows}

    @staticmethod
    def get_recurring_availability(db: Session, mentor_id: int, now: datetime) -> list[Availability]:
        return (
            db.query(Availability)
            .filter(
                Availability.mentor_id == mentor_id,
                Availability.is_recurring.is_(True),
                or_(Availability.valid_until.is_(None), Availability.valid_until >= now),
            )
            .all()
        )

    @staticmethod
    def get_upcoming_sessions(db: Session, mentor_id: int, now: datetime) -> list[MentorshipSession]:
        return (
            db.query(MentorshipSession)
            .filter(
                MentorshipSession.mentor_id == mentor_id,
                MentorshipSession.status.in_(["pending", "confirmed"]),
                MentorshipSession.scheduled_at >= now,
            )
            .all()
        )

    @staticmethod
    def get_favorite_mentor_ids(db: Session, mentee_id: int) -> set[int]:
        rows = db.query(FavoriteMentor.mentor_id).filter(FavoriteMentor.mentee_id == mentee_id).all()
        return {mentor_id for (mentor_id,) in rows}

    @staticmethod
    def get_favorite(db: Session, mentee_id: int, mentor_id: int) -> Optional[FavoriteMentor]:
        return (
            db.query(FavoriteMentor)
            .filter(FavoriteMentor.mentee_id == mentee_id, FavoriteMentor.mentor_id == mentor_id)
            .first()
        )

    @staticmethod
    def add_favorite(db: Session, mentee_id: int, mentor_id: int) -> FavoriteMentor:
        favorite = FavoriteMentor(mentee_id=mentee_id, mentor_id=mentor_id)
        try:
            db.add(favorite)
            db.commit()
            db.refresh(favorite)
            return favorite
        except Exception:
            db.rollback()
            raise

    @staticmethod
    def delete_favorite(db: Session, favorite: FavoriteMentor) -> None:
        try:
            db.delete(favorite)
            db.commit()
        except Exception:
            db.rollback()
            raise
