import threading
from datetime import timedelta

import pytest

from mensa.grid import Cell
from mensa.positions import PositionStore
from conftest import NOW


def test_upsert_twice_keeps_latest():
    store = PositionStore()
    store.upsert(1, Cell(0, 0), NOW + timedelta(minutes=5))
    store.upsert(1, Cell(3, 4), NOW + timedelta(hours=2))

    assert len(store) == 1
    entry = store.get(1)
    assert entry.cell == Cell(3, 4)
    assert entry.expires_at == NOW + timedelta(hours=2)


def test_remove_is_noop_when_absent():
    store = PositionStore()
    store.remove(42)
    store.upsert(1, Cell(1, 1), NOW + timedelta(hours=1))
    store.remove(1)
    assert store.get(1) is None
    assert len(store) == 0


def test_sweep_drops_only_expired():
    store = PositionStore()
    store.upsert(1, Cell(0, 0), NOW - timedelta(seconds=1))
    store.upsert(2, Cell(1, 1), NOW + timedelta(minutes=1))
    store.upsert(3, Cell(2, 2), NOW)  # expiring exactly now is still present

    snap = store.sweep_and_snapshot(NOW)

    assert dict(snap) == {2: Cell(1, 1), 3: Cell(2, 2)}
    assert store.get(1) is None


def test_snapshot_is_read_only_and_detached():
    store = PositionStore()
    store.upsert(1, Cell(0, 0), NOW + timedelta(hours=1))
    snap = store.sweep_and_snapshot(NOW)

    with pytest.raises(TypeError):
        snap[2] = Cell(1, 1)

    store.upsert(2, Cell(5, 5), NOW + timedelta(hours=1))
    assert 2 not in snap


def test_concurrent_writers_and_sweeps():
    store = PositionStore()
    errors = []

    def writer(base):
        try:
            for i in range(200):
                uid = base + (i % 10)
                store.upsert(uid, Cell(i % 10, (i // 10) % 10), NOW + timedelta(seconds=i % 3 - 1))
                if i % 7 == 0:
                    store.remove(uid)
        except Exception as e:  # pragma: no cover
            errors.append(e)

    def sweeper():
        try:
            for _ in range(200):
                snap = store.sweep_and_snapshot(NOW)
                assert all(isinstance(c, Cell) for c in snap.values())
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(b,)) for b in (0, 100, 200)]
    threads += [threading.Thread(target=sweeper) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    final = store.sweep_and_snapshot(NOW)
    assert len(final) == len(store)
