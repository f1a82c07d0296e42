# mensa/positions.py
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from mensa.grid import Cell, format_cell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PositionEntry:
    cell: Cell
    expires_at: datetime


class PositionStore:
    """
    Who is standing where, and until when. One entry per user.

    Every mutation and the sweep run under the same lock, so a snapshot never
    sees an entry half-evicted. Nothing here awaits, which keeps the lock safe
    to use from coroutines.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[int, PositionEntry] = {}

    def upsert(self, user_id: int, cell: Cell, expires_at: datetime) -> None:
        with self._lock:
            self._entries[user_id] = PositionEntry(cell, expires_at)
        logger.debug(f"Position set: {user_id} -> {format_cell(cell)} until {expires_at.isoformat()}")

    def remove(self, user_id: int) -> None:
        with self._lock:
            removed = self._entries.pop(user_id, None)
        if removed:
            logger.debug(f"Position removed: {user_id} (was {format_cell(removed.cell)})")

    def get(self, user_id: int) -> Optional[PositionEntry]:
        with self._lock:
            return self._entries.get(user_id)

    def sweep_and_snapshot(self, now: datetime) -> Mapping[int, Cell]:
        """Drop entries that expired before `now`, return a read-only user -> cell view."""
        with self._lock:
            expired = [uid for uid, e in self._entries.items() if e.expires_at < now]
            for uid in expired:
                del self._entries[uid]
            snapshot = {uid: e.cell for uid, e in self._entries.items()}
        if expired:
            logger.debug(f"Swept {len(expired)} expired position(s), {len(snapshot)} remain")
        return MappingProxyType(snapshot)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
