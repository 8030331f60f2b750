# pranveda/core/storage_utils.py
from fastapi import Request
from supabase import Client


class AudioStorage:
    """
    Resolves audio asset paths to public URLs in a Supabase Storage bucket.

    Example:
        "meditation/guided-breathing-5min.mp3"
        -> https://<proj>.supabase.co/storage/v1/object/public/audio/meditation/guided-breathing-5min.mp3
    """

    def __init__(self, client: Client | None, bucket: str):
        self.client = client
        self.bucket = bucket

    def public_url(self, path: str) -> str:
        """
        Return the public URL for an object path inside the bucket.

        Without a Supabase client the bucket-relative path is returned so
        the catalog stays usable in local setups.
        """
        path = path.lstrip("/")
        if self.client is None:
            return f"/{self.bucket}/{path}"
        return self.client.storage.from_(self.bucket).get_public_url(path)

    def extract_path_from_public_url(self, url: str) -> str | None:
        """
        Given a public URL, extract the object path relative to the bucket.

        Example:
            https://<proj>.supabase.co/storage/v1/object/public/audio/ambient/rain.mp3
            -> 'ambient/rain.mp3'
        """
        marker = f"/storage/v1/object/public/{self.bucket}/"
        idx = url.find(marker)
        if idx == -1:
            return None
        return url[idx + len(marker) :].split("?", 1)[0]

    def normalize_path(self, value: str) -> str:
        """Accept either an object path or one of our public URLs."""
        return self.extract_path_from_public_url(value) or value.lstrip("/")


def get_audio_storage(request: Request) -> AudioStorage:
    storage = getattr(request.app.state, "audio_storage", None)
    if storage is None:
        storage = AudioStorage(None, "audio")
    return storage
