import numpy as np
import pytest

from mutracking.physics.hits import Hit
from mutracking.physics.kinematics import LorentzVector
from mutracking.physics.particles import ParticleDefinition
from mutracking.physics.steps import Step, StepPoint, Track

MUON = ParticleDefinition("mu-", 13)


@pytest.fixture
def make_step():
    """Step whose pre and post endpoints coincide, in engine-native units."""
    def _make(track_id=1, parent_id=0, volume="1", pos_mm=(0.0, 0.0, 0.0), t_ns=1.0,
              edep=1.0, e=1000.0, p=(0.0, 900.0, 0.0)):
        point = StepPoint(t_ns, np.array(pos_mm, dtype=float), e, np.array(p, dtype=float))
        return Step(Track(MUON, track_id, parent_id, ["world", volume]), point, point, edep)
    return _make


@pytest.fixture
def make_hit():
    """Hit built directly from canonical-unit values."""
    def _make(y=0.0, deposit=1.0, py=1.0, track_id=1, parent_id=0, chamber="1"):
        return Hit(MUON, track_id, parent_id, chamber, deposit,
                   LorentzVector(1.0, 0.0, y, 0.0), LorentzVector(10.0, 0.0, py, 0.0))
    return _make
