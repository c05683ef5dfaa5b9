# src/mutracking/physics/particles.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from .kinematics import LorentzVector

# G4index value for generator particles that were not handed to transport
NOT_TRANSPORTED = -1


@dataclass(frozen=True, slots=True)
class ParticleDefinition:
    """Particle species: display name + PDG code."""
    name: str
    pdg_code: int


@dataclass(slots=True)
class GenParticle:
    """
    Event-generator particle record (read-only input to the converter).

    g4_index links the record to the transported track (NOT_TRANSPORTED if it
    never entered transport). vertex and momentum are 4-vectors in canonical units.
    """
    index: int
    g4_index: int
    pdg_id: int
    status: int
    vertex: LorentzVector
    momentum: LorentzVector
    mother1: int = -1
    mother2: int = -1
    daughter1: int = -1
    daughter2: int = -1
    mass: float = 0.0

    @property
    def transported(self) -> bool:
        return self.g4_index >= 0


@dataclass(slots=True)
class PrimaryParticle:
    """Primary particle at a vertex; energy/momentum in engine-native units."""
    pdg_code: int
    track_id: int
    total_energy: float
    momentum: tuple[float, float, float]


@dataclass(slots=True)
class PrimaryVertex:
    """Primary vertex; t0 and position in engine-native units."""
    t0: float
    x0: float
    y0: float
    z0: float
    particles: List[PrimaryParticle] = field(default_factory=list)


@dataclass(slots=True)
class GeneratorEvent:
    event_id: int
    vertices: List[PrimaryVertex] = field(default_factory=list)

    @property
    def primary_count(self) -> int:
        return sum(len(v.particles) for v in self.vertices)
