"""
Preview handle registry.

Uploaded images are held in memory under opaque tokens so the client can
display them while the wizard runs. Handles are a capped resource: each
owner releases its handle exactly once when the image is superseded or
the wizard resets. Remote results are data URIs and never live here.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from studio.core.config import settings
from studio.core.errors import PreviewLimitExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewEntry:
    """Bytes held behind a preview handle."""
    data: bytes
    mime_type: str


class PreviewRegistry:
    """In-memory store of live preview handles."""

    def __init__(self, max_handles: Optional[int] = None):
        self.max_handles = max_handles
        self._entries: dict[str, PreviewEntry] = {}

    @property
    def limit(self) -> int:
        if self.max_handles is not None:
            return self.max_handles
        return settings.MAX_PREVIEW_HANDLES

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: str) -> bool:
        return handle in self._entries

    def create(self, data: bytes, mime_type: str) -> str:
        """
        Register bytes and return a new handle.

        Raises:
            PreviewLimitExceeded: if the registry is full
        """
        if len(self._entries) >= self.limit:
            raise PreviewLimitExceeded(
                f"Too many live previews ({len(self._entries)}/{self.limit})"
            )
        handle = uuid4().hex
        self._entries[handle] = PreviewEntry(data=data, mime_type=mime_type)
        logger.debug(f"Created preview {handle} ({len(data)} bytes)")
        return handle

    def get(self, handle: str) -> Optional[PreviewEntry]:
        return self._entries.get(handle)

    def release(self, handle: str) -> bool:
        """
        Drop a handle.

        Returns:
            True if the handle was live, False if it was unknown
        """
        entry = self._entries.pop(handle, None)
        if entry is None:
            logger.warning(f"Release of unknown preview {handle}")
            return False
        logger.debug(f"Released preview {handle}")
        return True


# Global registry instance
preview_registry = PreviewRegistry()
