# src/mutracking/physics/steps.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

import numpy as np

from .particles import ParticleDefinition


@dataclass(slots=True)
class StepPoint:
    """
    One endpoint of a transport step, in engine-native units
    (global_time [ns], position [mm], total_energy [MeV], momentum [MeV/c]).
    """
    global_time: float
    position: np.ndarray  # shape (3,)
    total_energy: float
    momentum: np.ndarray  # shape (3,)


@dataclass(slots=True)
class Track:
    """
    Track state during a step.

    volume_history: names of the touchable's volume history, outermost first;
    the last entry is the enclosing (top) volume.
    """
    particle: ParticleDefinition
    track_id: int
    parent_id: int
    volume_history: List[str] = field(default_factory=list)

    @property
    def top_volume(self) -> str:
        return self.volume_history[-1] if self.volume_history else ""


@dataclass(slots=True)
class Step:
    track: Track
    pre: StepPoint
    post: StepPoint
    total_energy_deposit: float  # MeV

    def point(self, post: bool = True) -> StepPoint:
        return self.post if post else self.pre
