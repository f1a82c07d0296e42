import asyncio

import pytest

from mensa.avatars import AvatarCache, decode_avatar
from mensa.errors import FetchError
from conftest import FakeFetcher, RED, BLUE, png_bytes


def test_miss_then_hit():
    cache = AvatarCache()
    fetch = FakeFetcher({1: RED})

    async def run():
        a = await cache.get_or_fetch(1, fetch)
        b = await cache.get_or_fetch(1, fetch)
        return a, b

    a, b = asyncio.run(run())
    assert a is b
    assert fetch.calls == [1]
    assert 1 in cache


def test_failed_fetch_is_not_cached_and_retried():
    cache = AvatarCache()
    fetch = FakeFetcher(fail_for={7})

    with pytest.raises(FetchError) as exc:
        asyncio.run(cache.get_or_fetch(7, fetch))
    assert exc.value.user_id == 7
    assert isinstance(exc.value.__cause__, ConnectionError)
    assert 7 not in cache

    fetch.fail_for.clear()
    asyncio.run(cache.get_or_fetch(7, fetch))
    assert fetch.calls == [7, 7]
    assert 7 in cache


def test_invalidate_forces_fresh_fetch():
    cache = AvatarCache()
    fetch = FakeFetcher({1: RED})
    asyncio.run(cache.get_or_fetch(1, fetch))

    cache.invalidate(1)
    cache.invalidate(1)  # absent: no-op
    assert 1 not in cache

    fetch.colors[1] = BLUE
    img = asyncio.run(cache.get_or_fetch(1, fetch))
    assert img.getpixel((0, 0)) == BLUE
    assert fetch.calls == [1, 1]


def test_different_users_fetch_concurrently():
    cache = AvatarCache()
    started = []
    release = None

    async def slow_fetch(uid):
        started.append(uid)
        await release.wait()
        return await FakeFetcher()(uid)

    async def run():
        nonlocal release
        release = asyncio.Event()
        tasks = [asyncio.create_task(cache.get_or_fetch(uid, slow_fetch)) for uid in (1, 2, 3)]
        await asyncio.sleep(0)
        # all three are in flight before any finishes
        assert sorted(started) == [1, 2, 3]
        release.set()
        await asyncio.gather(*tasks)

    asyncio.run(run())
    assert len(cache) == 3


def test_cancelled_fetch_leaves_cache_untouched():
    cache = AvatarCache()

    async def never(uid):
        await asyncio.sleep(3600)

    async def run():
        task = asyncio.create_task(cache.get_or_fetch(5, never))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert 5 not in cache


def test_decode_avatar():
    img = decode_avatar(1, png_bytes(RED, size=32))
    assert img.mode == "RGBA"
    assert img.size == (32, 32)

    with pytest.raises(FetchError):
        decode_avatar(1, b"not an image")
    with pytest.raises(FetchError):
        decode_avatar(1, b"")
