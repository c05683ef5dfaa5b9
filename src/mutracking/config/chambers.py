# src/mutracking/config/chambers.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

UNKNOWN_CHAMBER = -1.0


def parse_chamber_number(chamber_id: str) -> float:
    """Numeric chamber id, e.g. "104" -> 104.0. Raises ValueError if not numeric."""
    return float(chamber_id)


@dataclass
class ChamberMap:
    """External chamber-name -> number table; unknown names map to -1."""
    name_to_number: Dict[str, float]
    default: float = UNKNOWN_CHAMBER

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, float]] = None, default: float = UNKNOWN_CHAMBER):
        return cls(name_to_number={str(k): float(v) for k, v in (mapping or {}).items()}, default=default)

    def number_for(self, chamber_id: str) -> float:
        return self.name_to_number.get(chamber_id, self.default)

    __call__ = number_for
