"""
Folio Kernel — Media collaborator

The kernel never stores or transcodes media. Blocks hold opaque media ids;
this interface turns an id into a display URL (renderer, read-only) and
releases ids when their portfolio is deleted (builder, best-effort).
"""

from __future__ import annotations

from engine.kernel.types import PLACEHOLDER_MEDIA_ID

DEFAULT_PLACEHOLDER_URL = "https://placehold.co/800x600?text=Add+an+image"


class MediaStore:
    """
    Abstract media interface.
    Implement with object storage for production, or in-memory for tests.
    """

    placeholder_url: str = DEFAULT_PLACEHOLDER_URL

    def resolve_display_url(self, media_id: str) -> str:
        """Public URL for a media id."""
        raise NotImplementedError

    async def release(self, media_id: str) -> None:
        """Drop a media id that no portfolio references any more."""
        raise NotImplementedError

    def display_url(self, media_id: str) -> str:
        """resolve_display_url, with the placeholder id short-circuited."""
        if media_id == PLACEHOLDER_MEDIA_ID:
            return self.placeholder_url
        return self.resolve_display_url(media_id)


class MemoryMedia(MediaStore):
    """In-memory media store for testing."""

    def __init__(self, base_url: str = "https://media.test", fail_on: set[str] | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.released: list[str] = []
        self.fail_on = fail_on or set()

    def resolve_display_url(self, media_id: str) -> str:
        return f"{self.base_url}/{media_id}"

    async def release(self, media_id: str) -> None:
        if media_id in self.fail_on:
            raise RuntimeError(f"release failed for {media_id}")
        self.released.append(media_id)
