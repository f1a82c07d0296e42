# mensa/service.py
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from PIL import Image  # Pillow

from mensa import plan
from mensa.avatars import AvatarCache, AvatarFetcher
from mensa.config import DEFAULT_DURATION
from mensa.errors import BadDuration
from mensa.durations import parse_duration
from mensa.grid import Cell, format_cell, parse_cell
from mensa.positions import PositionEntry, PositionStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SetResult:
    cleared: bool
    cell: Optional[Cell] = None
    expires_at: Optional[datetime] = None


class MensaService:
    """Set / clear / render, sharing one store and one avatar cache across all callers."""

    def __init__(
        self,
        fetch_avatar: AvatarFetcher,
        store: PositionStore | None = None,
        cache: AvatarCache | None = None,
        background_loader: Callable[[], Image.Image] = plan.load_background,
        clock: Callable[[], datetime] = _utcnow,
        max_duration: timedelta | None = None,
    ):
        self.fetch_avatar = fetch_avatar
        self.store = store if store is not None else PositionStore()
        self.cache = cache if cache is not None else AvatarCache()
        self.background_loader = background_loader
        self.clock = clock
        self.max_duration = max_duration

    def set_position(
        self,
        user_id: int,
        token: str,
        duration_text: str | None = None,
        now: datetime | None = None,
    ) -> SetResult:
        # parse everything before touching state
        cell = parse_cell(token)
        if duration_text is None:
            duration = DEFAULT_DURATION
        else:
            duration = parse_duration(duration_text, self.max_duration)

        if not duration:
            self.clear_position(user_id)
            return SetResult(cleared=True)

        try:
            expires_at = (now or self.clock()) + duration
        except OverflowError as e:
            raise BadDuration(f"Duration {duration_text!r} is way too long.") from e
        self.store.upsert(user_id, cell, expires_at)
        logger.info(f"User {user_id} is at {format_cell(cell)} until {expires_at.isoformat()}")
        return SetResult(cleared=False, cell=cell, expires_at=expires_at)

    def clear_position(self, user_id: int) -> None:
        self.store.remove(user_id)
        self.cache.invalidate(user_id)
        logger.info(f"User {user_id} cleared their position")

    def get_position(self, user_id: int) -> Optional[PositionEntry]:
        return self.store.get(user_id)

    async def render_plan(self, now: datetime | None = None) -> Image.Image:
        return await plan.render(
            self.store,
            self.cache,
            self.fetch_avatar,
            self.background_loader(),
            now or self.clock(),
        )

    async def render_plan_png(self, now: datetime | None = None) -> io.BytesIO:
        return plan.to_png(await self.render_plan(now))
