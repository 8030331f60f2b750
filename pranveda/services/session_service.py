# pranveda/services/session_service.py
import logging
import uuid
from collections import Counter
from datetime import date
from typing import Any

from sqlmodel import Session

from pranveda.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from pranveda.core.storage_utils import AudioStorage
from pranveda.core.timeutils import as_utc, day_end, day_start, period_start, utcnow
from pranveda.models.profile import Profile
from pranveda.models.session import MeditationSession, WorkoutSession
from pranveda.repositories.session_repo import ActivitySessionRepository
from pranveda.schemas.session import (
    MeditationComplete,
    MeditationContent,
    ProgressSave,
    SessionRating,
    WorkoutComplete,
    WorkoutRoutine,
)
from pranveda.services.catalog import MEDITATIONS, WORKOUTS
from pranveda.services.gamification_service import GamificationService
from pranveda.services.streaks import activity_dates, calculate_streak

logger = logging.getLogger(__name__)

DIFFICULTY_ORDER = {"beginner": 0, "intermediate": 1, "advanced": 2}


def filter_catalog(items, category: str | None, difficulty: str | None, duration: int | None) -> list:
    """Catalog entries matching category/difficulty and lasting at most `duration` minutes."""
    result = []
    for item in items:
        if category and item.category != category:
            continue
        if difficulty and item.difficulty != difficulty:
            continue
        if duration is not None and item.duration > duration:
            continue
        result.append(item)
    return result


class ActivitySessionService:
    """
    Start/complete lifecycle shared by meditation and workout sessions.

    Rules:
      - start(content_id) creates an `in_progress` row for a catalog entry
      - complete/progress/rate require the row to belong to the caller
        (ForbiddenError otherwise, without touching the row)
      - unknown or malformed session ids are NotFoundError
      - a completed session cannot be completed or resumed again
      - completed_at is never earlier than started_at
    """

    kind: str = ""
    model: type[MeditationSession] | type[WorkoutSession]
    complete_schema: type[MeditationComplete] | type[WorkoutComplete]
    catalog: dict[str, Any] = {}

    def __init__(self, repo: ActivitySessionRepository, gamification: GamificationService):
        self.repo = repo
        self.gamification = gamification

    # ----- Catalog -----

    def get_content(self, content_id: str):
        content = self.catalog.get(content_id)
        if content is None:
            raise NotFoundError(f"{self.kind.capitalize()} content not found: {content_id}")
        return content

    # ----- Lifecycle -----

    def _get_owned(self, session: Session, user_id: str, session_id: str):
        try:
            record_id = uuid.UUID(session_id)
        except ValueError:
            raise NotFoundError(f"{self.kind.capitalize()} session not found")

        record = self.repo.get_by_id(session, record_id)
        if record is None:
            raise NotFoundError(f"{self.kind.capitalize()} session not found")
        if record.user_id != user_id:
            raise ForbiddenError("Session belongs to another user")
        return record

    def start(self, session: Session, profile: Profile, content_id: str, expected_duration: int | None):
        content = self.get_content(content_id)
        record = self.model(
            user_id=profile.user_id,
            content_id=content.id,
            status="in_progress",
            expected_duration=expected_duration or content.duration,
        )
        record = self.repo.create(session, record)
        logger.info("%s session %s started by %s", self.kind, record.id, profile.user_id)
        return record

    def _apply_metrics(self, record, payload) -> None:
        raise NotImplementedError

    def complete(self, session: Session, user_id: str, session_id: str, payload=None):
        """
        Finalize a session and emit its completion celebration.

        Returns:
            (session record, celebration)
        """
        if payload is None:
            payload = self.complete_schema()
        record = self._get_owned(session, user_id, session_id)
        if record.status == "completed":
            raise ConflictError("Session is already completed")

        now = utcnow()
        started_at = as_utc(record.started_at)
        completed_at = max(now, started_at)

        self._apply_metrics(record, payload)
        if record.duration_minutes is None:
            elapsed = (completed_at - started_at).total_seconds() / 60
            record.duration_minutes = record.expected_duration or max(1, round(elapsed))
        record.status = "completed"
        record.completed_at = completed_at
        record = self.repo.update(session, record)

        streak = calculate_streak(activity_dates(self.repo.completion_times(session, user_id)))
        celebration = self.gamification.record_completion(
            session,
            user_id,
            self.kind,
            completed_count=self.repo.count_completed(session, user_id),
            current_streak=streak["current"],
            data={"session_id": str(record.id), "content_id": record.content_id},
        )
        record.celebration_triggered = True
        record = self.repo.update(session, record)
        logger.info("%s session %s completed by %s", self.kind, record.id, user_id)
        return record, celebration

    def save_progress(self, session: Session, user_id: str, session_id: str, payload: ProgressSave):
        record = self._get_owned(session, user_id, session_id)
        if record.status == "completed":
            raise ConflictError("Session is already completed")
        record.progress_seconds = payload.current_time
        if payload.notes is not None:
            record.notes = payload.notes
        return self.repo.update(session, record)

    def rate(self, session: Session, user_id: str, session_id: str, payload: SessionRating):
        """Ratings may be amended at any time, including after completion."""
        record = self._get_owned(session, user_id, session_id)
        record.rating = payload.rating
        if payload.feedback is not None:
            record.feedback = payload.feedback
        return self.repo.update(session, record)

    # ----- Reads -----

    def history(
        self,
        session: Session,
        user_id: str,
        page: int,
        limit: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> tuple[list, int]:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")
        since = day_start(start_date) if start_date else None
        until = day_end(end_date) if end_date else None
        items = self.repo.list_completed(
            session, user_id, since=since, until=until, skip=(page - 1) * limit, limit=limit
        )
        total = self.repo.count_completed(session, user_id, since=since, until=until)
        return items, total

    def _extra_stats(self, records: list) -> dict[str, Any]:
        return {}

    def stats(self, session: Session, user_id: str, period: str) -> dict[str, Any]:
        records = self.repo.list_completed(session, user_id, since=period_start(period))
        total = len(records)
        minutes = sum(r.duration_minutes or 0 for r in records)
        ratings = [r.rating for r in records if r.rating is not None]
        favorite = Counter(r.content_id for r in records).most_common(1)
        streak = calculate_streak(activity_dates(self.repo.completion_times(session, user_id)))

        return {
            "period": period,
            "total_sessions": total,
            "total_minutes": minutes,
            "average_duration": round(minutes / total, 1) if total else 0.0,
            "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else None,
            "current_streak": streak["current"],
            "longest_streak": streak["longest"],
            "favorite_content": favorite[0][0] if favorite else None,
            **self._extra_stats(records),
        }


class MeditationService(ActivitySessionService):
    kind = "meditation"
    model = MeditationSession
    complete_schema = MeditationComplete
    catalog = MEDITATIONS

    def _with_url(self, content: MeditationContent, storage: AudioStorage) -> MeditationContent:
        return content.model_copy(update={"audio_url": storage.public_url(content.audio_path)})

    def list_content(
        self,
        storage: AudioStorage,
        category: str | None = None,
        difficulty: str | None = None,
        duration: int | None = None,
    ) -> list[MeditationContent]:
        items = filter_catalog(self.catalog.values(), category, difficulty, duration)
        return [self._with_url(c, storage) for c in items]

    def content_detail(self, storage: AudioStorage, content_id: str) -> MeditationContent:
        return self._with_url(self.get_content(content_id), storage)

    def _apply_metrics(self, record: MeditationSession, payload: MeditationComplete) -> None:
        if payload.duration_minutes is not None:
            record.duration_minutes = payload.duration_minutes
        if payload.notes is not None:
            record.notes = payload.notes
        if payload.mood_before is not None:
            record.mood_before = payload.mood_before
        if payload.mood_after is not None:
            record.mood_after = payload.mood_after

    def _extra_stats(self, records: list[MeditationSession]) -> dict[str, Any]:
        deltas = [
            r.mood_after - r.mood_before
            for r in records
            if r.mood_before is not None and r.mood_after is not None
        ]
        return {"average_mood_improvement": round(sum(deltas) / len(deltas), 2) if deltas else None}

    def recommendations(
        self,
        storage: AudioStorage,
        profile: Profile,
        mood: int | None = None,
        energy_level: int | None = None,
        stress_level: int | None = None,
    ) -> list[MeditationContent]:
        """
        Rule-based picks:
          - high stress -> breathing
          - low mood -> mindfulness
          - low energy -> body scan / sleep
        Sessions above the user's experience level are skipped.
        """
        wanted: list[str] = []
        if stress_level is not None and stress_level >= 4:
            wanted.append("breathing")
        if mood is not None and mood <= 2:
            wanted.append("mindfulness")
        if energy_level is not None and energy_level <= 2:
            wanted.extend(["body-scan", "sleep"])

        max_level = DIFFICULTY_ORDER.get(profile.experience_level, 0)
        candidates = [
            c for c in self.catalog.values() if DIFFICULTY_ORDER[c.difficulty] <= max_level
        ]
        if wanted:
            candidates.sort(key=lambda c: (wanted.index(c.category) if c.category in wanted else len(wanted), c.duration))
        else:
            candidates.sort(key=lambda c: c.duration)
        return [self._with_url(c, storage) for c in candidates[:3]]


class WorkoutService(ActivitySessionService):
    kind = "workout"
    model = WorkoutSession
    complete_schema = WorkoutComplete
    catalog = WORKOUTS

    def list_content(
        self,
        category: str | None = None,
        difficulty: str | None = None,
        duration: int | None = None,
    ) -> list[WorkoutRoutine]:
        return filter_catalog(self.catalog.values(), category, difficulty, duration)

    def _apply_metrics(self, record: WorkoutSession, payload: WorkoutComplete) -> None:
        if payload.duration_minutes is not None:
            record.duration_minutes = payload.duration_minutes
        if payload.notes is not None:
            record.notes = payload.notes
        if payload.reps_completed is not None:
            record.reps_completed = payload.reps_completed
        if payload.calories_burned is not None:
            record.calories_burned = payload.calories_burned
        if payload.difficulty_rating is not None:
            record.difficulty_rating = payload.difficulty_rating

    def _extra_stats(self, records: list[WorkoutSession]) -> dict[str, Any]:
        return {"total_calories": sum(r.calories_burned or 0 for r in records)}

    def recommendations(
        self,
        profile: Profile,
        energy_level: int | None = None,
        fitness_level: str | None = None,
        goals: list[str] | None = None,
    ) -> list[WorkoutRoutine]:
        """
        Match the fitness level (or profile experience level), then prefer
        routines whose category appears in the goals; low energy favours
        flexibility, high energy favours cardio.
        """
        level = fitness_level or profile.experience_level
        max_level = DIFFICULTY_ORDER.get(level, 0)
        preferred = set(goals or [])
        if energy_level is not None and energy_level <= 2:
            preferred.add("flexibility")
        elif energy_level is not None and energy_level >= 4:
            preferred.add("cardio")

        candidates = [w for w in self.catalog.values() if DIFFICULTY_ORDER[w.difficulty] <= max_level]
        candidates.sort(key=lambda w: (w.category not in preferred, -DIFFICULTY_ORDER[w.difficulty], w.duration))
        return candidates[:3]
