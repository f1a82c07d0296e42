# mensa/avatars.py
import io
import logging
import threading
from typing import Awaitable, Callable, Dict, Optional

from PIL import Image, UnidentifiedImageError  # Pillow

from mensa.errors import FetchError

logger = logging.getLogger(__name__)

AvatarFetcher = Callable[[int], Awaitable[Image.Image]]
# signature: (user_id) -> decoded RGBA image, raises FetchError


def decode_avatar(user_id: int, data: bytes) -> Image.Image:
    """Decode raw avatar bytes into an RGBA image, or raise FetchError."""
    if not data:
        raise FetchError(user_id, "empty avatar payload")
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise FetchError(user_id, f"decode failed: {e}") from e
    return img.convert("RGBA")


class AvatarCache:
    """
    user id -> decoded avatar. Filled on first miss, dropped on explicit clear.

    The lock only guards dict access; fetches run outside it so lookups for
    different users never wait on each other. Two concurrent misses for the same
    user may both fetch; the last one stored wins.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._images: Dict[int, Image.Image] = {}

    def get(self, user_id: int) -> Optional[Image.Image]:
        with self._lock:
            return self._images.get(user_id)

    async def get_or_fetch(self, user_id: int, fetch: AvatarFetcher) -> Image.Image:
        cached = self.get(user_id)
        if cached is not None:
            logger.debug(f"Avatar cache hit for {user_id}")
            return cached

        logger.debug(f"Avatar cache miss for {user_id}, fetching")
        try:
            img = await fetch(user_id)
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(user_id, repr(e)) from e
        if img is None:
            raise FetchError(user_id, "fetcher returned no image")

        # only a fully fetched image ever lands in the map
        with self._lock:
            self._images[user_id] = img
        return img

    def invalidate(self, user_id: int) -> None:
        with self._lock:
            dropped = self._images.pop(user_id, None)
        if dropped is not None:
            logger.debug(f"Avatar cache entry dropped for {user_id}")

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._images

    def __len__(self) -> int:
        with self._lock:
            return len(self._images)
