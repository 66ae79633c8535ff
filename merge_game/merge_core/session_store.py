"""
Session Store
=============

Owns the mapping from opaque session handles to game engines.

The engine knows nothing about sessions. The store provides:
- create / get / delete by handle (uuid4 strings)
- idle expiry and least-recently-used eviction at capacity
- one lock per session so callers can serialize drops on an engine
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from merge_game.merge_core.config_loader import GameConfig, get_config
from merge_game.merge_core.game import MergeGame


logger = logging.getLogger(__name__)


class SessionNotFound(KeyError):
    """Raised for unknown, deleted or expired session handles."""

    def __init__(self, handle: str):
        super().__init__(handle)
        self.handle = handle

    def __str__(self) -> str:
        return f"Game not found: {self.handle}"


@dataclass
class _Session:
    game: MergeGame
    lock: threading.RLock
    created_at: float
    last_access: float


class SessionStore:
    """
    In-memory registry of running games.

    Sessions are kept in least-recently-used order. The store's own mapping
    is guarded by a lock; each engine is guarded by its session lock, which
    `session()` holds for the duration of the `with` block.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        max_sessions: Optional[int] = None,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize session store.

        Args:
            config: Game configuration shared by every created game.
            max_sessions: Capacity (0 = unlimited). Defaults to config.
            idle_timeout: Seconds of inactivity before expiry (0 = never).
                Defaults to config.
            clock: Monotonic time source, injectable for tests.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._max_sessions = (
            config.sessions.max_sessions if max_sessions is None else max_sessions
        )
        self._idle_timeout = (
            config.sessions.idle_timeout_seconds if idle_timeout is None else idle_timeout
        )
        self._clock = clock
        self._sessions: "OrderedDict[str, _Session]" = OrderedDict()
        self._lock = threading.Lock()

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    @property
    def idle_timeout(self) -> float:
        return self._idle_timeout

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, handle: object) -> bool:
        with self._lock:
            return handle in self._sessions and not self._is_expired(
                self._sessions[handle], self._clock()
            )

    def handles(self) -> List[str]:
        """Live handles, least recently used first. Expired sessions are evicted first."""
        with self._lock:
            self._evict_expired_locked(self._clock())
            return list(self._sessions.keys())

    def create(self, seed: Optional[int] = None) -> Tuple[str, MergeGame]:
        """
        Start a new game.

        Args:
            seed: Optional seed for the game's next-item queue.

        Returns:
            (handle, game) tuple.
        """
        game = MergeGame(config=self._config, seed=seed)
        now = self._clock()

        with self._lock:
            self._evict_expired_locked(now)
            if self._max_sessions and len(self._sessions) >= self._max_sessions:
                oldest, _ = self._sessions.popitem(last=False)
                logger.info("Session store full (%d); evicted %s", self._max_sessions, oldest)

            handle = str(uuid.uuid4())
            self._sessions[handle] = _Session(
                game=game,
                lock=threading.RLock(),
                created_at=now,
                last_access=now
            )

        logger.info("Created session %s", handle)
        return handle, game

    def get(self, handle: str) -> MergeGame:
        """
        Look up a game and mark it as used.

        Raises:
            SessionNotFound: If the handle is unknown or expired.
        """
        return self._touch(handle).game

    @contextmanager
    def session(self, handle: str) -> Iterator[MergeGame]:
        """
        Hold a session's lock while using its game.

        Usage:
            with store.session(handle) as game:
                result = game.drop(column, item_id)

        Raises:
            SessionNotFound: If the handle is unknown or expired.
        """
        entry = self._touch(handle)
        with entry.lock:
            yield entry.game

    def delete(self, handle: str) -> None:
        """
        Remove a session.

        Raises:
            SessionNotFound: If the handle is unknown.
        """
        with self._lock:
            if self._sessions.pop(handle, None) is None:
                raise SessionNotFound(handle)
        logger.info("Deleted session %s", handle)

    def evict_expired(self, now: Optional[float] = None) -> int:
        """
        Drop every session idle for longer than the timeout.

        Returns:
            Number of sessions removed.
        """
        with self._lock:
            return self._evict_expired_locked(self._clock() if now is None else now)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def stats(self) -> Dict[str, Any]:
        """Health report data."""
        self.evict_expired()
        return {
            "status": "OK",
            "activeSessions": len(self),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def _touch(self, handle: str) -> _Session:
        now = self._clock()
        with self._lock:
            entry = self._sessions.get(handle)
            if entry is None:
                raise SessionNotFound(handle)
            if self._is_expired(entry, now):
                del self._sessions[handle]
                logger.debug("Session %s expired", handle)
                raise SessionNotFound(handle)
            entry.last_access = now
            self._sessions.move_to_end(handle)
            return entry

    def _is_expired(self, entry: _Session, now: float) -> bool:
        return bool(self._idle_timeout) and now - entry.last_access > self._idle_timeout

    def _evict_expired_locked(self, now: float) -> int:
        if not self._idle_timeout:
            return 0
        expired = [
            handle for handle, entry in self._sessions.items()
            if self._is_expired(entry, now)
        ]
        for handle in expired:
            del self._sessions[handle]
        if expired:
            logger.debug("Evicted %d idle sessions", len(expired))
        return len(expired)
