import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from mensa import plan
from mensa.config import X_OFFSET, Y_OFFSET, CELL_SIZE, COLUMNS, ROWS

NOW = datetime(2024, 5, 6, 12, 0, tzinfo=timezone.utc)

BG_COLOR = (255, 255, 255, 255)
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)


def solid(color, size=64) -> Image.Image:
    return Image.new("RGBA", (size, size), color)


def png_bytes(color, size=64) -> bytes:
    buf = io.BytesIO()
    solid(color, size).save(buf, format="PNG")
    return buf.getvalue()


class FakeFetcher:
    """Async avatar fetcher returning solid colours; records every call."""

    def __init__(self, colors=None, fail_for=()):
        self.colors = dict(colors or {})
        self.fail_for = set(fail_for)
        self.calls = []

    async def __call__(self, user_id):
        self.calls.append(user_id)
        if user_id in self.fail_for:
            raise ConnectionError(f"no avatar for {user_id}")
        return solid(self.colors.get(user_id, GREEN))


@pytest.fixture(autouse=True)
def _fresh_plan_state():
    plan.reset_background()
    plan._last_log_ts.clear()
    yield
    plan.reset_background()


@pytest.fixture
def background():
    w = X_OFFSET * 2 + COLUMNS * CELL_SIZE
    h = Y_OFFSET * 2 + ROWS * CELL_SIZE
    return Image.new("RGBA", (w, h), BG_COLOR)
