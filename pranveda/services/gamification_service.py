# pranveda/services/gamification_service.py
import logging
import uuid
from typing import Any

from sqlmodel import Session

from pranveda.core.errors import ForbiddenError, NotFoundError, ValidationError
from pranveda.core.timeutils import period_start, utcnow
from pranveda.models.gamification import CelebrationEvent, UserAchievement
from pranveda.repositories.gamification_repo import GamificationRepository
from pranveda.repositories.profile_repo import ProfileRepository
from pranveda.repositories.stats_repo import StatsRepository

logger = logging.getLogger(__name__)

POINTS_PER_LEVEL = 100

# event_type -> (audio file, animation, score increment, message template)
CELEBRATION_STYLES: dict[str, tuple[str, str, int, str]] = {
    "meditation_complete": (
        "celebrations/meditation-complete.mp3",
        "floating_hearts",
        10,
        "Great job completing your meditation!",
    ),
    "workout_complete": (
        "celebrations/workout-complete.mp3",
        "confetti",
        15,
        "Amazing workout! You're getting stronger!",
    ),
    "streak_milestone": (
        "celebrations/streak-milestone.mp3",
        "fireworks",
        50,
        "Incredible {days}-day streak!",
    ),
    "badge_unlock": (
        "celebrations/badge-unlock.mp3",
        "badge_sparkle",
        100,
        "Congratulations! You unlocked the {badge_name} badge!",
    ),
    "level_up": (
        "celebrations/level-up.mp3",
        "level_up_effect",
        200,
        "Level up! You're now level {level}!",
    ),
}

MESSAGE_DEFAULTS = {"days": 7, "badge_name": "Achievement", "level": 2}

# badge_type -> (name, description, points)
BADGES: dict[str, tuple[str, str, int]] = {
    "first_meditation": ("First Steps", "Completed your first meditation", 10),
    "meditation_streak_7": ("Week Warrior", "Meditated 7 days in a row", 50),
    "meditation_streak_30": ("Month Master", "Meditated 30 days in a row", 200),
    "first_workout": ("First Sweat", "Completed your first workout", 10),
    "workout_streak_7": ("Fitness Fighter", "Worked out 7 days in a row", 50),
    "workout_streak_30": ("Gym Champion", "Worked out 30 days in a row", 200),
}
DEFAULT_BADGE = ("Achievement", None, 10)

REWARDS: list[dict[str, Any]] = [
    {
        "id": "reward-1",
        "title": "Meditation Master",
        "description": "Unlock premium guided meditations",
        "points_required": 1000,
    },
    {
        "id": "reward-2",
        "title": "Streak Champion",
        "description": "Exclusive streak celebration theme",
        "points_required": 500,
    },
    {
        "id": "reward-3",
        "title": "Mindful Explorer",
        "description": "Early access to new ambient soundscapes",
        "points_required": 250,
    },
]

# Leaderboard category -> celebration event type (None = every event)
LEADERBOARD_EVENTS: dict[str, str | None] = {
    "overall": None,
    "meditation": "meditation_complete",
    "workout": "workout_complete",
    "streaks": "streak_milestone",
}


def level_for_points(points: int) -> dict[str, Any]:
    level = points // POINTS_PER_LEVEL + 1
    current = points % POINTS_PER_LEVEL
    return {
        "level": level,
        "total_points": points,
        "current_level_points": current,
        "next_level_points": level * POINTS_PER_LEVEL,
        "progress_percentage": round(current / POINTS_PER_LEVEL * 100, 1),
    }


class GamificationService:
    """
    Business logic for celebrations, badges, levels and leaderboards.

    Every celebration is created by exactly one trigger: a session
    completion (`record_completion`) or a milestone call (`trigger_milestone`).
    """

    def __init__(
        self,
        repo: GamificationRepository,
        profile_repo: ProfileRepository,
        stats_repo: StatsRepository,
    ):
        self.repo = repo
        self.profile_repo = profile_repo
        self.stats_repo = stats_repo

    # ----- Writes -----

    def unlock_badge(self, session: Session, user_id: str, badge_type: str) -> UserAchievement | None:
        """Unlock a badge once; returns None if it was already unlocked."""
        if self.repo.get_achievement(session, user_id, badge_type) is not None:
            return None
        name, description, points = BADGES.get(badge_type, DEFAULT_BADGE)
        achievement = UserAchievement(
            user_id=user_id,
            badge_type=badge_type,
            badge_name=name,
            badge_description=description,
            points_awarded=points,
        )
        achievement = self.repo.create_achievement(session, achievement)
        logger.info("Badge %s unlocked for %s", badge_type, user_id)
        return achievement

    def _celebration(
        self,
        user_id: str,
        event_type: str,
        data: dict[str, Any],
        badge: UserAchievement | None,
    ) -> CelebrationEvent:
        audio_file, animation, score, template = CELEBRATION_STYLES[event_type]
        params = dict(MESSAGE_DEFAULTS)
        params.update({k: data[k] for k in MESSAGE_DEFAULTS if data.get(k) is not None})
        if badge is not None and "badge_name" not in data:
            params["badge_name"] = badge.badge_name
        return CelebrationEvent(
            user_id=user_id,
            event_type=event_type,
            audio_file=audio_file,
            animation_type=animation,
            score_increment=score,
            badge_unlocked=badge.badge_type if badge else None,
            message=template.format(**params),
            data=data,
        )

    def trigger_milestone(
        self,
        session: Session,
        user_id: str,
        event_type: str,
        data: dict[str, Any] | None = None,
    ) -> CelebrationEvent:
        """
        Create one celebration for a client-reported milestone.

        `data["badge_unlocked"]` (a badge type) is unlocked at most once.
        """
        data = dict(data or {})
        badge = None
        badge_type = data.get("badge_unlocked")
        if badge_type is not None:
            if not isinstance(badge_type, str) or not badge_type.strip() or len(badge_type) > 50:
                raise ValidationError("badge_unlocked must be a badge type", field="data.badge_unlocked")
            badge = self.unlock_badge(session, user_id, badge_type.strip())

        celebration = self._celebration(user_id, event_type, data, badge)
        return self.repo.save_celebration(session, celebration)

    def record_completion(
        self,
        session: Session,
        user_id: str,
        kind: str,
        completed_count: int,
        current_streak: int,
        data: dict[str, Any],
    ) -> CelebrationEvent:
        """
        Celebrate a finished meditation/workout session.

        Unlocks first-session and streak badges; the most valuable badge
        unlocked by this completion is attached to the celebration.
        """
        candidates = []
        if completed_count == 1:
            candidates.append(f"first_{kind}")
        for days in (7, 30):
            if current_streak >= days:
                candidates.append(f"{kind}_streak_{days}")

        unlocked = [b for b in (self.unlock_badge(session, user_id, c) for c in candidates) if b]
        best = max(unlocked, key=lambda b: b.points_awarded, default=None)

        data = {**data, "streak": current_streak}
        if unlocked:
            data["badges"] = [b.badge_type for b in unlocked]
        celebration = self._celebration(user_id, f"{kind}_complete", data, best)
        return self.repo.save_celebration(session, celebration)

    def mark_viewed(self, session: Session, user_id: str, celebration_id: uuid.UUID) -> CelebrationEvent:
        """
        Flip `viewed` once. Calling it again on a viewed celebration is a
        successful no-op.

        Raises:
            NotFoundError: unknown celebration.
            ForbiddenError: celebration belongs to someone else.
        """
        celebration = self.repo.get_celebration(session, celebration_id)
        if celebration is None:
            raise NotFoundError("Celebration not found")
        if celebration.user_id != user_id:
            raise ForbiddenError("Celebration belongs to another user")
        if celebration.viewed:
            return celebration

        celebration.viewed = True
        celebration.viewed_at = utcnow()
        return self.repo.save_celebration(session, celebration)

    # ----- Reads -----

    def pending_celebrations(self, session: Session, user_id: str) -> list[CelebrationEvent]:
        return self.repo.list_celebrations(session, user_id, viewed=False)

    def badges(self, session: Session, user_id: str) -> list[dict[str, Any]]:
        unlocked = {a.badge_type: a for a in self.repo.list_achievements(session, user_id)}
        result: list[dict[str, Any]] = []

        for achievement in unlocked.values():
            result.append(
                {
                    "badge_type": achievement.badge_type,
                    "badge_name": achievement.badge_name,
                    "badge_description": achievement.badge_description,
                    "points_awarded": achievement.points_awarded,
                    "unlocked": True,
                    "unlocked_at": achievement.unlocked_at,
                }
            )
        for badge_type, (name, description, points) in BADGES.items():
            if badge_type in unlocked:
                continue
            result.append(
                {
                    "badge_type": badge_type,
                    "badge_name": name,
                    "badge_description": description,
                    "points_awarded": points,
                    "unlocked": False,
                }
            )
        return result

    def total_points(self, session: Session, user_id: str) -> int:
        return self.stats_repo.achievement_points(session, user_id) + self.stats_repo.celebration_points(
            session, user_id
        )

    def levels(self, session: Session, user_id: str) -> dict[str, Any]:
        return level_for_points(self.total_points(session, user_id))

    def rewards(self, session: Session, user_id: str) -> list[dict[str, Any]]:
        points = self.total_points(session, user_id)
        return [{**reward, "unlocked": points >= reward["points_required"]} for reward in REWARDS]

    def _ranked(self, session: Session, category: str, period: str) -> list[dict[str, Any]]:
        """
        Full ranking for a category/period.

        Order: score descending, then user_id ascending; ranks are 1..n.
        Deleted profiles and profiles that opted out are excluded.
        """
        scores = self.stats_repo.celebration_scores(
            session,
            since=period_start(period),
            event_type=LEADERBOARD_EVENTS[category],
        )
        profiles = {
            p.user_id: p
            for p in self.profile_repo.list_active(session, [user_id for user_id, _ in scores])
            if (p.privacy or {}).get("leaderboard_participation", True)
        }
        ordered = sorted(
            ((user_id, score) for user_id, score in scores if user_id in profiles),
            key=lambda item: (-item[1], item[0]),
        )
        return [
            {
                "rank": index,
                "user_id": user_id,
                "display_name": profiles[user_id].display_name,
                "avatar_url": profiles[user_id].avatar_url,
                "score": score,
            }
            for index, (user_id, score) in enumerate(ordered, start=1)
        ]

    def leaderboard(self, session: Session, category: str, period: str, limit: int) -> dict[str, Any]:
        ranked = self._ranked(session, category, period)
        return {
            "category": category,
            "period": period,
            "entries": ranked[:limit],
            "total_participants": len(ranked),
        }

    def ranking(self, session: Session, user_id: str, category: str, period: str) -> dict[str, Any]:
        ranked = self._ranked(session, category, period)
        mine = next((entry for entry in ranked if entry["user_id"] == user_id), None)
        total = len(ranked)
        result: dict[str, Any] = {
            "category": category,
            "period": period,
            "rank": None,
            "score": 0,
            "total_participants": total,
            "percentile": None,
        }
        if mine is not None:
            result["rank"] = mine["rank"]
            result["score"] = mine["score"]
            result["percentile"] = round((total - mine["rank"] + 1) / total * 100, 1)
        return result
