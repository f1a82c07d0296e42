# mensa/plan.py
from __future__ import annotations

import asyncio
import io
import logging
import math
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont, ImageOps  # Pillow

from mensa.avatars import AvatarCache, AvatarFetcher
from mensa.config import (
    PLAN_IMAGE_PATH, X_OFFSET, Y_OFFSET, CELL_SIZE, COLUMNS, ROWS, MIN_LETTER, MIN_NUMBER,
)
from mensa.errors import RenderError
from mensa.grid import Cell, format_cell
from mensa.positions import PositionStore

logger = logging.getLogger(__name__)

RESAMPLE = getattr(getattr(Image, "Resampling", Image), "LANCZOS")
EMPTY_SLOT = (18, 18, 22, 255)

# -----------------------------------------------------------------------------
# Logging throttling: a busy channel renders a lot, keep INFO readable
# -----------------------------------------------------------------------------
THROTTLE_RENDER_SECS = 30.0

_last_log_ts: Dict[str, float] = {}

def _should_log(key: str, interval: float) -> bool:
    """Return True if enough time has passed since last log for this key."""
    now = time.monotonic()
    last = _last_log_ts.get(key, 0.0)
    if now - last >= interval:
        _last_log_ts[key] = now
        return True
    return False
# -----------------------------------------------------------------------------


# ---------------------- shared background image ------------------------------
# Loaded once, then only ever read. Renders paste onto a .copy().
_background: Optional[Image.Image] = None
_background_lock = threading.Lock()


def _resolve_asset(rel_path: str) -> Path | None:
    """Try several locations to find an asset on disk."""
    rel = Path(rel_path)
    if rel.is_absolute():
        return rel if rel.is_file() else None

    here = Path(__file__).resolve().parent
    candidates = [
        Path.cwd() / rel,         # current working dir
        here / rel,               # alongside this file
        here.parent / rel,        # project root (parent of /mensa)
    ]
    for p in candidates:
        if p.is_file():
            return p
    return None


def _fallback_background() -> Image.Image:
    """Plain labelled grid with the same geometry as the real plan."""
    w = X_OFFSET * 2 + COLUMNS * CELL_SIZE
    h = Y_OFFSET * 2 + ROWS * CELL_SIZE
    img = Image.new("RGBA", (w, h), (235, 235, 230, 255))
    drw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    for c in range(COLUMNS + 1):
        x = X_OFFSET + c * CELL_SIZE
        drw.line([(x, Y_OFFSET), (x, Y_OFFSET + ROWS * CELL_SIZE)], fill=(150, 150, 150, 255), width=1)
    for r in range(ROWS + 1):
        y = Y_OFFSET + r * CELL_SIZE
        drw.line([(X_OFFSET, y), (X_OFFSET + COLUMNS * CELL_SIZE, y)], fill=(150, 150, 150, 255), width=1)

    for c in range(COLUMNS):
        label = chr(ord(MIN_LETTER) + c)
        drw.text((X_OFFSET + c * CELL_SIZE + CELL_SIZE // 2 - 3, 0), label, fill=(60, 60, 60, 255), font=font)
    for r in range(ROWS):
        drw.text((4, Y_OFFSET + r * CELL_SIZE + CELL_SIZE // 2 - 5), str(r + MIN_NUMBER),
                 fill=(60, 60, 60, 255), font=font)
    return img


def load_background(path: str | None = None) -> Image.Image:
    """
    Return the process-wide plan background, loading it on first use.
    Callers must not draw on the returned image; copy it first.
    """
    global _background
    with _background_lock:
        if _background is not None:
            return _background

        rel = path or PLAN_IMAGE_PATH
        abs_path = _resolve_asset(rel)
        if abs_path:
            img = Image.open(abs_path)
            img.load()
            _background = img.convert("RGBA")
            logger.info(f"Loaded mensa plan image from {abs_path} ({_background.width}x{_background.height})")
        else:
            logger.warning(f"Mensa plan image not found at {rel}; using generated grid")
            _background = _fallback_background()
        return _background


def reset_background() -> None:
    """Forget the cached background (next load_background() reads it again)."""
    global _background
    with _background_lock:
        _background = None
# -----------------------------------------------------------------------------


# ---------------------------- pure layout stages ------------------------------
def group_by_cell(snapshot: Mapping[int, Cell]) -> Dict[Cell, FrozenSet[int]]:
    groups: Dict[Cell, set] = {}
    for user_id, cell in snapshot.items():
        groups.setdefault(cell, set()).add(user_id)
    return {cell: frozenset(users) for cell, users in groups.items()}


def tile_layout(count: int, max_width: int = CELL_SIZE, max_height: int = CELL_SIZE) -> Tuple[int, int, int]:
    """
    Grid for `count` square thumbnails inside max_width x max_height.
    Returns (columns, rows, thumb_px); columns * thumb_px <= max_width and
    rows * thumb_px <= max_height always hold.
    """
    if count < 1:
        raise ValueError("collage needs at least one image")

    best: Tuple[int, int, int] | None = None
    for cols in range(1, count + 1):
        rows = math.ceil(count / cols)
        thumb = min(max_width // cols, max_height // rows)
        # prefer bigger thumbnails, then fewer empty slots
        if best is None or thumb > best[2] or (thumb == best[2] and cols * rows < best[0] * best[1]):
            best = (cols, rows, thumb)
    cols, rows, thumb = best
    if thumb < 1:
        # more people than pixels: clamp, build_collage drops the overflow
        cols, rows = min(count, max_width), min(math.ceil(count / max(1, max_width)), max_height)
        thumb = 1
    return cols, rows, thumb


def build_collage(images: List[Image.Image], max_width: int = CELL_SIZE, max_height: int = CELL_SIZE) -> Image.Image:
    """Pack avatars into one tile that never exceeds max_width x max_height."""
    cols, rows, thumb = tile_layout(len(images), max_width, max_height)
    tile = Image.new("RGBA", (cols * thumb, rows * thumb), EMPTY_SLOT)
    for i, img in enumerate(images[:cols * rows]):
        thumb_img = ImageOps.fit(img.convert("RGBA"), (thumb, thumb), RESAMPLE)
        tile.paste(thumb_img, ((i % cols) * thumb, (i // cols) * thumb))
    logger.debug(f"Built collage of {len(images)} avatar(s): {cols}x{rows} @ {thumb}px")
    return tile


def cell_offset(cell: Cell) -> Tuple[int, int]:
    return X_OFFSET + cell.column * CELL_SIZE, Y_OFFSET + cell.row * CELL_SIZE


def blit(canvas: Image.Image, tile: Image.Image, offset: Tuple[int, int]) -> None:
    """Overwrite the canvas region at `offset` with `tile` (no blending)."""
    x, y = offset
    if x < 0 or y < 0 or x + tile.width > canvas.width or y + tile.height > canvas.height:
        raise RenderError(
            f"tile {tile.width}x{tile.height} at {offset} exceeds canvas {canvas.width}x{canvas.height}"
        )
    canvas.paste(tile, (x, y))
# -----------------------------------------------------------------------------


def compose(
    groups: Mapping[Cell, Iterable[int]],
    avatars: Mapping[int, Image.Image],
    background: Image.Image,
) -> Image.Image:
    """Paste one collage per occupied cell onto a copy of `background`."""
    canvas = background.copy()
    for cell, users in groups.items():
        imgs = [avatars[uid] for uid in sorted(users)]
        blit(canvas, build_collage(imgs), cell_offset(cell))
    return canvas


async def render(
    store: PositionStore,
    cache: AvatarCache,
    fetch: AvatarFetcher,
    background: Image.Image,
    now: datetime,
) -> Image.Image:
    """
    Sweep expired markers, resolve every occupant's avatar concurrently and
    composite the plan. Any failed avatar fetch fails the whole render.
    """
    snapshot = store.sweep_and_snapshot(now)
    groups = group_by_cell(snapshot)

    user_ids = sorted({uid for users in groups.values() for uid in users})
    images = await asyncio.gather(*(cache.get_or_fetch(uid, fetch) for uid in user_ids))
    avatars = dict(zip(user_ids, images))

    canvas = compose(groups, avatars, background)

    summary = ", ".join(f"{format_cell(c)}={len(u)}" for c, u in sorted(groups.items())) or "empty"
    if _should_log("render", THROTTLE_RENDER_SECS):
        logger.info(f"Rendered mensa plan: {len(user_ids)} user(s) in {len(groups)} cell(s) [{summary}]")
    else:
        logger.debug(f"Rendered mensa plan (throttled): [{summary}]")
    return canvas


def to_png(img: Image.Image) -> io.BytesIO:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf
