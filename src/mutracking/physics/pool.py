# src/mutracking/physics/pool.py
from __future__ import annotations
from dataclasses import dataclass, field, fields
import threading
from typing import List, Optional

from .collection import HitCollection
from .hits import Hit
from .kinematics import LorentzVector
from .particles import ParticleDefinition
from .steps import Step

DEFAULT_CHUNK_SIZE = 512

_HIT_FIELDS = tuple(f.name for f in fields(Hit))


class HitPool:
    """
    Per-worker free-list allocator for Hit objects.

    Hit slots are pre-created in chunks and recycled on release, so the
    per-step hit path is a list pop instead of a fresh object allocation.
    The pool binds to the first thread that uses it and refuses use from
    any other thread. It never runs out; it grows by one chunk when empty.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.chunk_size = int(chunk_size)
        self._free: List[Hit] = []
        self._live_ids: set[int] = set()
        self._owner: Optional[int] = None
        self.capacity = 0
        self.in_use = 0
        self.peak_in_use = 0

    def _check_owner(self) -> None:
        ident = threading.get_ident()
        if self._owner is None:
            self._owner = ident
        elif self._owner != ident:
            raise RuntimeError("HitPool is bound to another worker thread")

    def _grow(self) -> None:
        fresh = [object.__new__(Hit) for _ in range(self.chunk_size)]
        self._free.extend(fresh)
        self.capacity += self.chunk_size

    @property
    def free(self) -> int:
        return len(self._free)

    def allocate(self) -> Hit:
        """Return an uninitialized Hit slot (no fields set)."""
        self._check_owner()
        if not self._free:
            self._grow()
        hit = self._free.pop()
        self._live_ids.add(id(hit))
        self.in_use += 1
        if self.in_use > self.peak_in_use:
            self.peak_in_use = self.in_use
        return hit

    def create(
        self,
        particle: ParticleDefinition,
        track_id: int,
        parent_id: int,
        chamber_id: str,
        deposit: float,
        position: LorentzVector,
        momentum: LorentzVector,
    ) -> Hit:
        hit = self.allocate()
        Hit.__init__(hit, particle, track_id, parent_id, chamber_id, deposit, position, momentum)
        return hit

    def from_step(self, step: Optional[Step], post: bool = True) -> Hit:
        return Hit.from_step(step, post, pool=self)

    def release(self, hit: Hit) -> None:
        """
        Return a hit's storage to the pool. Its fields are cleared, so any
        stale reference fails on access instead of reading recycled data.
        """
        self._check_owner()
        if id(hit) not in self._live_ids:
            raise RuntimeError("Hit released twice or not allocated by this pool")
        for name in _HIT_FIELDS:
            if hasattr(hit, name):
                object.__delattr__(hit, name)
        self._free.append(hit)
        self._live_ids.discard(id(hit))
        self.in_use -= 1


@dataclass
class WorkerStats:
    events: int = 0
    hits: int = 0
    accepted: int = 0
    rejected: int = 0


@dataclass
class WorkerContext:
    """
    Everything a worker owns: its hit pool and the bookkeeping for the events
    it processes. One context per worker thread; never shared.
    """
    worker_id: int = 0
    pool: HitPool = field(default_factory=HitPool)
    stats: WorkerStats = field(default_factory=WorkerStats)

    def begin_event(self, event_id: int, collection_name: str = "hits") -> HitCollection:
        self.stats.events += 1
        return HitCollection(collection_name=collection_name, event_id=event_id)

    def record(self, collection: HitCollection, step: Optional[Step], post: bool = True) -> Optional[Hit]:
        """Build a pooled hit from `step` and append it to `collection`."""
        if step is None:
            return None
        hit = self.pool.from_step(step, post)
        collection.insert(hit)
        self.stats.hits += 1
        return hit

    def end_event(self, collection: HitCollection) -> None:
        """Release every hit of a finished event back to this worker's pool."""
        collection.release(self.pool)
