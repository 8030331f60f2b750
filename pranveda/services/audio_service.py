# pranveda/services/audio_service.py
from sqlmodel import Session

from pranveda.core.storage_utils import AudioStorage
from pranveda.models.activity_log import AudioFeedback
from pranveda.repositories.activity_log_repo import ActivityLogRepository
from pranveda.schemas.audio import AudioFeedbackCreate
from pranveda.services.catalog import AUDIO_TRACKS

CATEGORY_INFO = {
    "meditation": ("Meditation", "Guided meditation and breathing audio"),
    "ambient": ("Ambient", "Background soundscapes for focus and rest"),
    "celebration": ("Celebration", "Short sounds played on achievements"),
}


class AudioService:
    """
    Read-only audio catalog plus the playback feedback log.
    """

    def __init__(self, log_repo: ActivityLogRepository):
        self.log_repo = log_repo

    def _tracks(
        self,
        storage: AudioStorage,
        audio_type: str,
        category: str | None = None,
        max_seconds: int | None = None,
    ) -> list[dict]:
        result = []
        for track_id, title, kind, track_category, seconds, path in AUDIO_TRACKS:
            if kind != audio_type:
                continue
            if category and track_category != category:
                continue
            if max_seconds is not None and seconds > max_seconds:
                continue
            result.append(
                {
                    "id": track_id,
                    "title": title,
                    "type": kind,
                    "category": track_category,
                    "duration_seconds": seconds,
                    "path": path,
                    "url": storage.public_url(path),
                }
            )
        return result

    def celebrations(self, storage: AudioStorage, event_type: str | None = None) -> list[dict]:
        return self._tracks(storage, "celebration", category=event_type)

    def meditation(
        self,
        storage: AudioStorage,
        category: str | None = None,
        duration: int | None = None,
    ) -> list[dict]:
        """`duration` is a maximum in minutes."""
        return self._tracks(
            storage,
            "meditation",
            category=category,
            max_seconds=duration * 60 if duration is not None else None,
        )

    def ambient(
        self,
        storage: AudioStorage,
        ambient_type: str | None = None,
        duration: int | None = None,
    ) -> list[dict]:
        return self._tracks(
            storage,
            "ambient",
            category=ambient_type,
            max_seconds=duration * 60 if duration is not None else None,
        )

    def categories(self) -> list[dict]:
        counts: dict[str, int] = {}
        for _, _, kind, _, _, _ in AUDIO_TRACKS:
            counts[kind] = counts.get(kind, 0) + 1
        return [
            {"id": kind, "name": name, "description": description, "count": counts.get(kind, 0)}
            for kind, (name, description) in CATEGORY_INFO.items()
        ]

    def log_feedback(
        self,
        session: Session,
        storage: AudioStorage,
        user_id: str,
        payload: AudioFeedbackCreate,
    ) -> AudioFeedback:
        """Append a playback event; public URLs are stored as bucket paths."""
        entry = AudioFeedback(
            user_id=user_id,
            audio_type=payload.audio_type,
            file_path=storage.normalize_path(payload.file_path),
            feedback_type=payload.feedback_type,
            duration_seconds=payload.duration_seconds,
            volume_level=payload.volume_level,
        )
        return self.log_repo.add_audio_feedback(session, entry)
