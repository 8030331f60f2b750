# pranveda/services/health_service.py
import logging
import time
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from pranveda.core.config import get_settings
from pranveda.core.llm import LLMClient
from pranveda.core.timeutils import utcnow
from pranveda.models.activity_log import AIInteraction
from pranveda.models.session import MeditationSession, WorkoutSession
from pranveda.repositories.stats_repo import StatsRepository

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()


def uptime_seconds() -> int:
    return int(time.monotonic() - STARTED_AT)


class HealthService:
    """Liveness and dependency checks."""

    def __init__(self, stats_repo: StatsRepository):
        self.stats_repo = stats_repo

    def database(self, session: Session) -> dict[str, Any]:
        start = time.monotonic()
        try:
            session.exec(select(1)).one()
        except SQLAlchemyError as exc:
            logger.error("Database health check failed: %s", exc)
            return {"status": "unhealthy", "error": "database unreachable"}
        return {"status": "healthy", "latency_ms": round((time.monotonic() - start) * 1000, 2)}

    def ai(self, llm: LLMClient | None) -> dict[str, Any]:
        if llm is None:
            return {"status": "not_configured"}
        return {"status": "configured", "model": llm.model}

    def overall(self, session: Session, llm: LLMClient | None, identity_configured: bool) -> dict[str, Any]:
        settings = get_settings()
        database = self.database(session)
        components = {
            "database": database,
            "ai": self.ai(llm),
            "identity": {"status": "configured" if identity_configured else "not_configured"},
        }
        return {
            "status": "healthy" if database["status"] == "healthy" else "degraded",
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
            "uptime_seconds": uptime_seconds(),
            "timestamp": utcnow(),
            "components": components,
        }

    def metrics(self, session: Session) -> dict[str, Any]:
        return {
            "uptime_seconds": uptime_seconds(),
            "timestamp": utcnow(),
            "counts": {
                "profiles": self.stats_repo.count_active_profiles(session),
                "meditation_sessions": self.stats_repo.count_rows(session, MeditationSession),
                "workout_sessions": self.stats_repo.count_rows(session, WorkoutSession),
                "ai_interactions": self.stats_repo.count_rows(session, AIInteraction),
            },
        }
