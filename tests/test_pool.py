import threading

import pytest

from mutracking.physics.hits import Hit
from mutracking.physics.kinematics import LorentzVector
from mutracking.physics.particles import ParticleDefinition
from mutracking.physics.pool import HitPool, WorkerContext


def _make(pool, track_id=1):
    return pool.create(ParticleDefinition("mu-", 13), track_id, 0, "1", 1.0,
                       LorentzVector(0.0, 0.0, 0.0, 0.0), LorentzVector(1.0, 0.0, 1.0, 0.0))


def test_pool_grows_one_chunk_at_a_time():
    pool = HitPool(chunk_size=4)
    hits = [_make(pool) for _ in range(5)]
    assert pool.capacity == 8
    assert pool.in_use == 5 and pool.free == 3
    assert pool.peak_in_use == 5
    assert all(h.is_set() for h in hits)


def test_release_recycles_slot_and_clears_fields():
    pool = HitPool(chunk_size=2)
    h = _make(pool)
    pool.release(h)
    assert pool.in_use == 0
    assert not h.is_set()
    with pytest.raises(AttributeError):
        h.track_id
    assert pool.allocate() is h


def test_double_release_raises():
    pool = HitPool(chunk_size=2)
    h = _make(pool)
    _make(pool)
    pool.release(h)
    with pytest.raises(RuntimeError):
        pool.release(h)


def test_pool_refuses_other_threads():
    pool = HitPool()
    _make(pool)
    errors = []

    def worker():
        try:
            pool.allocate()
        except RuntimeError as exc:
            errors.append(exc)

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert len(errors) == 1


def test_bad_chunk_size():
    with pytest.raises(ValueError):
        HitPool(chunk_size=0)


def test_worker_context_event_lifecycle(make_step):
    ctx = WorkerContext(worker_id=3, pool=HitPool(chunk_size=2))
    coll = ctx.begin_event(11)
    assert coll.event_id == 11
    for tid in (1, 2, 3):
        ctx.record(coll, make_step(track_id=tid))
    assert ctx.record(coll, None) is None
    assert len(coll) == 3
    assert [h.track_id for h in coll] == [1, 2, 3]
    assert ctx.pool.in_use == 3

    ctx.end_event(coll)
    assert len(coll) == 0
    assert ctx.pool.in_use == 0
    assert ctx.pool.peak_in_use == 3
    assert (ctx.stats.events, ctx.stats.hits) == (1, 3)


def test_release_rejects_hits_from_elsewhere():
    pool = HitPool(chunk_size=2)
    pooled = _make(pool)
    stranger = Hit(ParticleDefinition("mu-", 13), 9, 0, "1", 1.0,
                   LorentzVector(0.0, 0.0, 0.0, 0.0), LorentzVector(1.0, 0.0, 1.0, 0.0))
    with pytest.raises(RuntimeError):
        pool.release(stranger)
    assert stranger.is_set()
    assert pool.in_use == 1

    other = HitPool(chunk_size=2)
    with pytest.raises(RuntimeError):
        other.release(pooled)
    pool.release(pooled)
    assert pool.in_use == 0
