# pranveda/services/progress_service.py
import uuid
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Any

from sqlmodel import Session

from pranveda.core.errors import ForbiddenError, NotFoundError, ValidationError
from pranveda.core.timeutils import as_utc, day_end, day_start, period_start, utcnow
from pranveda.models.profile import Profile
from pranveda.models.progress import MoodCheckin, UserGoal
from pranveda.models.session import MeditationSession, WorkoutSession
from pranveda.repositories.progress_repo import ProgressRepository
from pranveda.repositories.session_repo import ActivitySessionRepository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.progress import GoalCreate, GoalUpdate, MoodCheckinCreate
from pranveda.services.gamification_service import level_for_points
from pranveda.services.streaks import activity_dates, calculate_streak

# A change in average mood smaller than this is "stable"
MOOD_TREND_THRESHOLD = 0.3


def mood_direction(values: list[float]) -> str | None:
    """Compare the first and second half of a chronological series."""
    if len(values) < 2:
        return None
    half = len(values) // 2
    first = sum(values[:half]) / half
    second = sum(values[half:]) / (len(values) - half)
    if second - first > MOOD_TREND_THRESHOLD:
        return "improving"
    if first - second > MOOD_TREND_THRESHOLD:
        return "declining"
    return "stable"


class ProgressService:
    """
    Progress analytics across meditation, workout and mood data, plus
    goal tracking.

    Check-ins are append-only; goals only change `current_value` and
    `status` after creation.
    """

    def __init__(
        self,
        repo: ProgressRepository,
        meditation_repo: ActivitySessionRepository[MeditationSession],
        workout_repo: ActivitySessionRepository[WorkoutSession],
        stats_repo: StatsRepository,
    ):
        self.repo = repo
        self.meditation_repo = meditation_repo
        self.workout_repo = workout_repo
        self.stats_repo = stats_repo

    # ----- Streaks -----

    def streaks(self, session: Session, user_id: str) -> dict[str, Any]:
        meditation_days = activity_dates(self.meditation_repo.completion_times(session, user_id))
        workout_days = activity_dates(self.workout_repo.completion_times(session, user_id))
        mood_days = activity_dates(c.created_at for c in self.repo.list_checkins(session, user_id))
        return {
            "meditation": calculate_streak(meditation_days),
            "workout": calculate_streak(workout_days),
            "mood_checkin": calculate_streak(mood_days),
            "overall": calculate_streak(meditation_days | workout_days),
        }

    # ----- Stats -----

    def stats(self, session: Session, user_id: str, period: str) -> dict[str, Any]:
        since = period_start(period)
        meditations = self.meditation_repo.count_completed(session, user_id, since=since)
        workouts = self.workout_repo.count_completed(session, user_id, since=since)
        meditation_minutes = self.stats_repo.total_minutes(session, MeditationSession, user_id, since)
        workout_minutes = self.stats_repo.total_minutes(session, WorkoutSession, user_id, since)
        checkins = self.repo.list_checkins(session, user_id, since=since)
        goals = self.repo.list_goals(session, user_id)

        return {
            "period": period,
            "meditation_sessions": meditations,
            "workout_sessions": workouts,
            "total_sessions": meditations + workouts,
            "meditation_minutes": meditation_minutes,
            "workout_minutes": workout_minutes,
            "total_minutes": meditation_minutes + workout_minutes,
            "mood_checkins": len(checkins),
            "average_mood": (
                round(sum(c.mood_rating for c in checkins) / len(checkins), 2) if checkins else None
            ),
            "active_goals": sum(1 for g in goals if g.status == "active"),
            "completed_goals": sum(1 for g in goals if g.status == "completed"),
            "streaks": self.streaks(session, user_id),
        }

    def user_summary(self, session: Session, profile: Profile) -> dict[str, Any]:
        """Account-level totals for GET /auth/stats."""
        user_id = profile.user_id
        streaks = self.streaks(session, user_id)
        points = self.stats_repo.achievement_points(session, user_id) + self.stats_repo.celebration_points(
            session, user_id
        )
        return {
            "meditation_sessions": self.meditation_repo.count_completed(session, user_id),
            "workout_sessions": self.workout_repo.count_completed(session, user_id),
            "total_minutes": self.stats_repo.total_minutes(session, MeditationSession, user_id)
            + self.stats_repo.total_minutes(session, WorkoutSession, user_id),
            "meditation_streak": streaks["meditation"]["current"],
            "workout_streak": streaks["workout"]["current"],
            "achievements": self.stats_repo.count_achievements(session, user_id),
            "points": points,
            "level": level_for_points(points)["level"],
            "member_since": profile.created_at,
        }

    def analytics(self, session: Session, user_id: str, period: str, metric: str) -> dict[str, Any]:
        """
        Day-by-day series for the period: activity minutes/sessions and
        mood averages, with an overall mood direction.
        """
        since = period_start(period)
        result: dict[str, Any] = {"period": period, "metric": metric, "activity": [], "mood_trend": []}

        if metric in ("all", "minutes", "sessions"):
            days: dict[date, dict[str, int]] = defaultdict(
                lambda: {"meditation_minutes": 0, "workout_minutes": 0, "sessions": 0}
            )
            for record in self.meditation_repo.list_completed(session, user_id, since=since):
                bucket = days[as_utc(record.completed_at).date()]
                bucket["meditation_minutes"] += record.duration_minutes or 0
                bucket["sessions"] += 1
            for record in self.workout_repo.list_completed(session, user_id, since=since):
                bucket = days[as_utc(record.completed_at).date()]
                bucket["workout_minutes"] += record.duration_minutes or 0
                bucket["sessions"] += 1
            result["activity"] = [{"date": day, **values} for day, values in sorted(days.items())]

        if metric in ("all", "mood"):
            moods: dict[date, list[int]] = defaultdict(list)
            for checkin in self.repo.list_checkins(session, user_id, since=since):
                moods[as_utc(checkin.created_at).date()].append(checkin.mood_rating)
            trend = [
                {"date": day, "average_mood": round(sum(v) / len(v), 2), "checkins": len(v)}
                for day, v in sorted(moods.items())
            ]
            result["mood_trend"] = trend
            result["mood_direction"] = mood_direction([d["average_mood"] for d in trend])

        return result

    # ----- Mood check-ins -----

    def create_checkin(self, session: Session, user_id: str, payload: MoodCheckinCreate) -> MoodCheckin:
        checkin = MoodCheckin(user_id=user_id, **payload.model_dump())
        return self.repo.create_checkin(session, checkin)

    # ----- History -----

    def history(
        self,
        session: Session,
        user_id: str,
        page: int,
        limit: int,
        start_date: date | None = None,
        end_date: date | None = None,
        entry_type: str | None = None,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Merged timeline of completed sessions and check-ins, newest first.
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")
        since = day_start(start_date) if start_date else None
        until = day_end(end_date) if end_date else None

        # Each source contributes at most its newest page*limit rows, which is
        # enough to fill the requested page of the merged timeline.
        window = page * limit
        total = 0
        entries: list[dict[str, Any]] = []
        if entry_type in (None, "meditation"):
            total += self.meditation_repo.count_completed(session, user_id, since=since, until=until)
            for r in self.meditation_repo.list_completed(session, user_id, since=since, until=until, limit=window):
                entries.append(
                    {
                        "id": r.id,
                        "type": "meditation",
                        "occurred_at": as_utc(r.completed_at),
                        "content_id": r.content_id,
                        "duration_minutes": r.duration_minutes,
                        "details": {"mood_before": r.mood_before, "mood_after": r.mood_after, "rating": r.rating},
                    }
                )
        if entry_type in (None, "workout"):
            total += self.workout_repo.count_completed(session, user_id, since=since, until=until)
            for r in self.workout_repo.list_completed(session, user_id, since=since, until=until, limit=window):
                entries.append(
                    {
                        "id": r.id,
                        "type": "workout",
                        "occurred_at": as_utc(r.completed_at),
                        "content_id": r.content_id,
                        "duration_minutes": r.duration_minutes,
                        "details": {"calories_burned": r.calories_burned, "rating": r.rating},
                    }
                )
        if entry_type in (None, "mood"):
            total += self.repo.count_checkins(session, user_id, since=since, until=until)
            for c in self.repo.list_checkins(session, user_id, since=since, until=until, limit=window):
                entries.append(
                    {
                        "id": c.id,
                        "type": "mood",
                        "occurred_at": as_utc(c.created_at),
                        "mood_rating": c.mood_rating,
                        "details": {"tags": c.tags, "notes": c.notes},
                    }
                )

        # newest first, ties by id ascending (the order each query uses)
        entries.sort(key=lambda e: str(e["id"]))
        entries.sort(key=lambda e: e["occurred_at"], reverse=True)
        start = (page - 1) * limit
        return entries[start : start + limit], total

    # ----- Goals -----

    def list_goals(self, session: Session, user_id: str, active_only: bool = True) -> list[UserGoal]:
        return self.repo.list_goals(session, user_id, status="active" if active_only else None)

    def create_goal(self, session: Session, user_id: str, payload: GoalCreate) -> UserGoal:
        if payload.target_date and payload.target_date < utcnow().date():
            raise ValidationError("target_date cannot be in the past", field="target_date")
        goal = UserGoal(user_id=user_id, **payload.model_dump())
        if goal.current_value >= goal.target_value:
            goal.status = "completed"
        return self.repo.save_goal(session, goal)

    def update_goal(self, session: Session, user_id: str, goal_id: uuid.UUID, payload: GoalUpdate) -> UserGoal:
        """
        Update progress and/or status.

        Reaching the target on an active goal completes it unless a status
        is given explicitly.
        """
        goal = self.repo.get_goal(session, goal_id)
        if goal is None:
            raise NotFoundError("Goal not found")
        if goal.user_id != user_id:
            raise ForbiddenError("Goal belongs to another user")

        if payload.current_value is not None:
            goal.current_value = payload.current_value
        if payload.status is not None:
            goal.status = payload.status
        elif goal.status == "active" and goal.current_value >= goal.target_value:
            goal.status = "completed"
        goal.updated_at = utcnow()
        return self.repo.save_goal(session, goal)


def week_window(week_start: date | None) -> tuple[datetime, datetime, date, date]:
    """[start, end) of a 7-day window; defaults to the last 7 days including today."""
    start = week_start or (utcnow().date() - timedelta(days=6))
    end = start + timedelta(days=6)
    return day_start(start), day_end(end), start, end
