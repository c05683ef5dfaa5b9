from __future__ import annotations
from dataclasses import dataclass, fields
import sys
from typing import TYPE_CHECKING, Optional, TextIO

from . import units
from .kinematics import LorentzVector
from .particles import ParticleDefinition
from .steps import Step

if TYPE_CHECKING:  # pragma: no cover
    from .pool import HitPool

HIT_FIELD_WIDTH = 10
HIT_SIGNIFICANT_DIGITS = 4


@dataclass(frozen=True, slots=True, eq=False, repr=False)
class Hit:
    """
    One energy deposit recorded in a sensitive chamber.

    All numeric fields are stored in canonical units (see physics.units):
      deposit  : Energy
      position : (t [Time], x, y, z [Length])
      momentum : (E [Energy], px, py, pz [Momentum])

    Equality is object identity: two hits compare equal only when they are
    the same object (same pool slot). Use Hit.is_same() to make that explicit.
    """
    particle: ParticleDefinition
    track_id: int
    parent_id: int
    chamber_id: str
    deposit: float
    position: LorentzVector
    momentum: LorentzVector

    @classmethod
    def from_step(cls, step: Optional[Step], post: bool = True, *, pool: Optional["HitPool"] = None) -> "Hit":
        """
        Build a hit from a transport step, reading the post-step (default) or
        pre-step endpoint and normalizing every quantity to canonical units.

        If `step` is None the returned object has no fields set; callers must
        check Hit.is_set() before using it.
        """
        hit = pool.allocate() if pool is not None else object.__new__(cls)
        if step is None:
            return hit

        track = step.track
        point = step.point(post)
        cls.__init__(
            hit,
            particle=track.particle,
            track_id=int(track.track_id),
            parent_id=int(track.parent_id),
            chamber_id=track.top_volume,
            deposit=step.total_energy_deposit / units.Energy,
            position=LorentzVector.from_parts(point.global_time / units.Time,
                                              [c / units.Length for c in point.position]),
            momentum=LorentzVector.from_parts(point.total_energy / units.Energy,
                                              [c / units.Momentum for c in point.momentum]),
        )
        return hit

    def is_set(self) -> bool:
        return all(hasattr(self, f.name) for f in fields(self))

    def is_same(self, other: object) -> bool:
        return self is other

    @property
    def particle_name(self) -> str:
        return self.particle.name

    @property
    def pdg_code(self) -> int:
        return self.particle.pdg_code

    def format(self) -> str:
        return format_hit(self)

    def print(self, file: TextIO | None = None) -> None:
        (file or sys.stdout).write(format_hit(self) + "\n")

    def __str__(self) -> str:
        return format_hit(self)

    def __repr__(self) -> str:
        if not self.is_set():
            return "Hit(<unset>)"
        return (f"Hit(particle={self.particle.name!r}, track_id={self.track_id}, "
                f"parent_id={self.parent_id}, chamber_id={self.chamber_id!r}, deposit={self.deposit!r})")


def _col(value: float, category: str) -> str:
    return f"{units.best_unit(value, category, HIT_SIGNIFICANT_DIGITS):>{HIT_FIELD_WIDTH}}"


def format_hit(hit: Hit) -> str:
    """
    One-line, fixed-width rendering:
      name | track | parent | chamber | Deposit: E | [t x y z] | [E px py pz ]
    """
    pos, mom = hit.position, hit.momentum
    position = " ".join([
        _col(pos.t * units.Time, "Time"),
        _col(pos.x * units.Length, "Length")
        + _col(pos.y * units.Length, "Length")
        + _col(pos.z * units.Length, "Length"),
    ])
    momentum = (_col(mom.e * units.Energy, "Energy")
                + _col(mom.px * units.Momentum, "Momentum")
                + _col(mom.py * units.Momentum, "Momentum")
                + _col(mom.pz * units.Momentum, "Momentum"))
    return (f" {hit.particle_name} | {hit.track_id} | {hit.parent_id} | {hit.chamber_id}"
            f" | Deposit: {_col(hit.deposit * units.Energy, 'Energy')}"
            f" | [{position}] | [{momentum} ]")
