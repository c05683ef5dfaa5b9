# src/mutracking/physics/kinematics.py
from __future__ import annotations
from dataclasses import dataclass
import math

# Pseudorapidity reported for momenta exactly along the beam (z) axis
ETA_ALONG_AXIS = 1.0e72


@dataclass(frozen=True, slots=True)
class LorentzVector:
    """
    Four-vector (t, x, y, z).

    Used both as a 4-position (time + space) and as a 4-momentum
    (energy + 3-momentum); the e/px/py/pz accessors alias t/x/y/z.
    """
    t: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_parts(cls, t: float, vect) -> "LorentzVector":
        x, y, z = (float(v) for v in vect)
        return cls(float(t), x, y, z)

    @property
    def e(self) -> float:
        return self.t

    @property
    def px(self) -> float:
        return self.x

    @property
    def py(self) -> float:
        return self.y

    @property
    def pz(self) -> float:
        return self.z

    def mag3(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def pt(self) -> float:
        return math.hypot(self.x, self.y)

    def eta(self) -> float:
        """Pseudorapidity of the 3-vector; 0 for a null vector."""
        p = self.mag3()
        if p == 0.0:
            return 0.0
        if p == self.z:
            return ETA_ALONG_AXIS
        if p == -self.z:
            return -ETA_ALONG_AXIS
        return 0.5 * math.log((p + self.z) / (p - self.z))

    def phi(self) -> float:
        if self.x == 0.0 and self.y == 0.0:
            return 0.0
        return math.atan2(self.y, self.x)

    def mass(self) -> float:
        m2 = self.t * self.t - self.mag3() ** 2
        return math.sqrt(m2) if m2 > 0 else -math.sqrt(-m2)
