"""
In-memory registry of wizard sessions.

Nothing is persisted: a session lives until it is deleted, sits idle for
longer than SESSION_TTL_SECONDS, or the process exits. All sessions share
one AI adapter and the global preview registry.
"""

import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from studio.ai.adapter import AIAdapter, get_adapter
from studio.core.config import settings
from studio.core.previews import PreviewRegistry, preview_registry
from studio.wizard import RetouchWizard

logger = logging.getLogger(__name__)


class SessionStore:
    """Holds the live wizards keyed by session id."""

    def __init__(
        self,
        adapter: Optional[AIAdapter] = None,
        registry: Optional[PreviewRegistry] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.adapter = adapter
        self.registry = registry if registry is not None else preview_registry
        self.clock = clock
        self._sessions: dict[str, RetouchWizard] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get_adapter(self) -> AIAdapter:
        """Return the shared adapter, creating it from settings on first use."""
        if self.adapter is None:
            self.adapter = get_adapter()
        return self.adapter

    def evict_expired(self) -> int:
        """
        Reset and forget sessions idle for longer than the TTL.

        Returns:
            Number of sessions evicted
        """
        cutoff = self.clock() - settings.SESSION_TTL_SECONDS
        expired = [sid for sid, seen in self._last_seen.items() if seen < cutoff]
        for session_id in expired:
            self.delete(session_id)
        if expired:
            logger.info(f"Evicted {len(expired)} idle session(s)")
        return len(expired)

    def create(self) -> RetouchWizard:
        self.evict_expired()
        session_id = str(uuid4())
        wizard = RetouchWizard(
            adapter=self.get_adapter(),
            registry=self.registry,
            session_id=session_id,
        )
        self._sessions[session_id] = wizard
        self._last_seen[session_id] = self.clock()
        logger.info(f"Created session {session_id}")
        return wizard

    def get(self, session_id: str) -> Optional[RetouchWizard]:
        """Look up a live session and mark it as recently used."""
        self.evict_expired()
        wizard = self._sessions.get(session_id)
        if wizard is not None:
            self._last_seen[session_id] = self.clock()
        return wizard

    def delete(self, session_id: str) -> bool:
        """Reset and forget a session, releasing its preview handles."""
        wizard = self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        if wizard is None:
            return False
        wizard.reset()
        logger.info(f"Deleted session {session_id}")
        return True

    def clear(self) -> None:
        for session_id in list(self._sessions):
            self.delete(session_id)


# Global session store
session_store = SessionStore()
