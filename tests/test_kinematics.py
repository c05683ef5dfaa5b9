import math

import pytest

from mutracking.physics.kinematics import ETA_ALONG_AXIS, LorentzVector


def test_momentum_aliases_and_magnitudes():
    p = LorentzVector.from_parts(5.0, [3.0, 4.0, 0.0])
    assert (p.e, p.px, p.py, p.pz) == (5.0, 3.0, 4.0, 0.0)
    assert p.mag3() == pytest.approx(5.0)
    assert p.pt() == pytest.approx(5.0)
    assert p.mass() == pytest.approx(0.0)
    assert LorentzVector(5.0, 0.0, 0.0, 3.0).mass() == pytest.approx(4.0)


def test_eta_and_phi():
    assert LorentzVector(1.0, 1.0, 0.0, 0.0).eta() == pytest.approx(0.0)
    theta = math.radians(30.0)
    p = LorentzVector(1.0, math.sin(theta), 0.0, math.cos(theta))
    assert p.eta() == pytest.approx(-math.log(math.tan(theta / 2)))
    assert LorentzVector(1.0, 0.0, 1.0, 0.0).phi() == pytest.approx(math.pi / 2)


def test_degenerate_directions():
    assert LorentzVector().eta() == 0.0
    assert LorentzVector().phi() == 0.0
    assert LorentzVector(1.0, 0.0, 0.0, 2.0).eta() == ETA_ALONG_AXIS
    assert LorentzVector(1.0, 0.0, 0.0, -2.0).eta() == -ETA_ALONG_AXIS
