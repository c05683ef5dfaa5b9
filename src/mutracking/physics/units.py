# src/mutracking/physics/units.py
from __future__ import annotations
from typing import Dict, List, Tuple

# Engine-native units (transport engine convention: mm, ns, MeV)
mm = 1.0
cm = 10.0 * mm
m = 1000.0 * mm
km = 1000.0 * m
um = 1.0e-3 * mm
nm = 1.0e-6 * mm

ns = 1.0
ps = 1.0e-3 * ns
us = 1.0e3 * ns
ms = 1.0e6 * ns
s = 1.0e9 * ns

MeV = 1.0
eV = 1.0e-6 * MeV
keV = 1.0e-3 * MeV
GeV = 1.0e3 * MeV
TeV = 1.0e6 * MeV

# Canonical units of the stored tables: every stored number is value / unit
Length = cm
Time = ns
Energy = MeV
Momentum = MeV

_UNIT_TABLES: Dict[str, List[Tuple[str, float]]] = {
    "Length": [("km", km), ("m", m), ("cm", cm), ("mm", mm), ("um", um), ("nm", nm)],
    "Time": [("s", s), ("ms", ms), ("us", us), ("ns", ns), ("ps", ps)],
    "Energy": [("TeV", TeV), ("GeV", GeV), ("MeV", MeV), ("keV", keV), ("eV", eV)],
    "Momentum": [("TeV/c", TeV), ("GeV/c", GeV), ("MeV/c", MeV), ("keV/c", keV), ("eV/c", eV)],
}

NATIVE_LENGTH_UNITS = {"mm": mm, "cm": cm, "m": m}
NATIVE_TIME_UNITS = {"ns": ns, "ps": ps, "us": us}
NATIVE_ENERGY_UNITS = {"eV": eV, "keV": keV, "MeV": MeV, "GeV": GeV}


def best_unit(value: float, category: str, precision: int = 4) -> str:
    """
    Render an engine-native value with the largest unit of `category` that keeps
    the magnitude >= 1 (smallest unit otherwise). Zero renders in the canonical unit.
    """
    try:
        table = _UNIT_TABLES[category]
    except KeyError:
        raise ValueError(f"Unknown unit category '{category}'") from None

    if value == 0:
        canonical = {"Length": Length, "Time": Time, "Energy": Energy, "Momentum": Momentum}[category]
        name = next(n for n, u in table if u == canonical)
        return f"0 {name}"

    mag = abs(value)
    name, unit = table[-1]
    for n, u in table:
        if mag >= u:
            name, unit = n, u
            break
    return f"{value / unit:.{precision}g} {name}"
