import dataclasses

import numpy as np
import pytest

from mutracking.physics.hits import Hit, format_hit
from mutracking.physics.particles import ParticleDefinition
from mutracking.physics.steps import Step, StepPoint, Track
from mutracking.physics.units import best_unit


def _step():
    track = Track(ParticleDefinition("mu-", 13), track_id=3, parent_id=1,
                  volume_history=["world", "tracker", "105"])
    pre = StepPoint(1.0, np.array([0.0, 0.0, 0.0]), 1000.0, np.array([0.0, 900.0, 0.0]))
    post = StepPoint(2.5, np.array([10.0, 20.0, 30.0]), 999.0, np.array([0.0, 899.0, 1.0]))
    return Step(track, pre, post, total_energy_deposit=1.2)


def test_from_step_post_endpoint_in_canonical_units():
    h = Hit.from_step(_step())
    assert h.is_set()
    assert h.particle_name == "mu-" and h.pdg_code == 13
    assert (h.track_id, h.parent_id, h.chamber_id) == (3, 1, "105")
    assert h.deposit == pytest.approx(1.2)
    assert h.position.t == pytest.approx(2.5)
    # mm -> cm
    assert (h.position.x, h.position.y, h.position.z) == pytest.approx((1.0, 2.0, 3.0))
    assert h.momentum.e == pytest.approx(999.0)
    assert (h.momentum.px, h.momentum.py, h.momentum.pz) == pytest.approx((0.0, 899.0, 1.0))


def test_from_step_pre_endpoint():
    h = Hit.from_step(_step(), post=False)
    assert h.position.t == pytest.approx(1.0)
    assert h.position.y == 0.0
    assert h.momentum.e == pytest.approx(1000.0)


def test_from_step_none_leaves_hit_unset():
    h = Hit.from_step(None)
    assert not h.is_set()
    with pytest.raises(AttributeError):
        h.deposit
    assert repr(h) == "Hit(<unset>)"


def test_equality_is_identity():
    a = Hit.from_step(_step())
    b = Hit.from_step(_step())
    assert a == a
    assert a != b
    assert a.is_same(a) and not a.is_same(b)


def test_hit_is_immutable():
    h = Hit.from_step(_step())
    with pytest.raises(dataclasses.FrozenInstanceError):
        h.deposit = 2.0


def test_format_hit_line():
    line = format_hit(Hit.from_step(_step()))
    assert line.startswith(" mu- | 3 | 1 | 105 | Deposit: ")
    assert "1.2 MeV" in line
    assert "2.5 ns" in line
    assert "1 cm" in line and "3 cm" in line
    assert line.endswith(" ]")
    assert str(Hit.from_step(_step())) == line


@pytest.mark.parametrize("value,category,expected", [
    (15.0, "Length", "1.5 cm"),
    (2500.0, "Length", "2.5 m"),
    (0.5, "Energy", "500 keV"),
    (1500.0, "Momentum", "1.5 GeV/c"),
    (0.0, "Energy", "0 MeV"),
    (0.0, "Length", "0 cm"),
])
def test_best_unit(value, category, expected):
    assert best_unit(value, category) == expected


def test_best_unit_unknown_category():
    with pytest.raises(ValueError):
        best_unit(1.0, "Charge")
