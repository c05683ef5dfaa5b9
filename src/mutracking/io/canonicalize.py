# src/mutracking/io/canonicalize.py
from __future__ import annotations
from typing import Dict, Iterable, Mapping, Tuple

import pandas as pd

STEP_KEYS: Dict[str, Tuple[str, ...]] = {
    # canonical_key: tuple of fallback source keys
    "event_id":  ("event_id", "event", "evt", "eventID"),
    "track_id":  ("track_id", "track", "trackID"),
    "parent_id": ("parent_id", "parent", "parentID"),
    "particle":  ("particle", "particle_name", "name"),
    "pdg":       ("pdg", "pdg_code", "pdgid", "PDG"),
    # enclosing volume; "volume_path" holds the full history joined by '/'
    "volume":      ("volume", "chamber", "chamber_id", "det_id"),
    "volume_path": ("volume_path", "history"),
    "edep":      ("edep", "Edep_MeV", "Edep", "deposit", "dE"),
    "post_t":  ("post_t", "t", "t_ns", "time"),
    "post_x":  ("post_x", "x", "x_mm"),
    "post_y":  ("post_y", "y", "y_mm"),
    "post_z":  ("post_z", "z", "z_mm"),
    "post_e":  ("post_e", "e", "energy", "E"),
    "post_px": ("post_px", "px"),
    "post_py": ("post_py", "py"),
    "post_pz": ("post_pz", "pz"),
    "pre_t":  ("pre_t",),
    "pre_x":  ("pre_x",),
    "pre_y":  ("pre_y",),
    "pre_z":  ("pre_z",),
    "pre_e":  ("pre_e",),
    "pre_px": ("pre_px",),
    "pre_py": ("pre_py",),
    "pre_pz": ("pre_pz",),
}
STEP_REQUIRED = ("event_id", "track_id", "parent_id", "pdg", "edep",
                 "post_t", "post_x", "post_y", "post_z", "post_e", "post_px", "post_py", "post_pz")

GEN_PARTICLE_KEYS: Dict[str, Tuple[str, ...]] = {
    "event_id": ("event_id", "event", "evt"),
    "index":    ("index", "idx"),
    "g4_index": ("g4_index", "G4index", "g4index"),
    "pdg":      ("pdg", "pdgid", "pdg_id"),
    "status":   ("status",),
    "vt": ("vt", "vertex_t", "time"),
    "vx": ("vx", "vertex_x", "x"),
    "vy": ("vy", "vertex_y", "y"),
    "vz": ("vz", "vertex_z", "z"),
    "e":  ("e", "energy", "E"),
    "px": ("px",),
    "py": ("py",),
    "pz": ("pz",),
    "mo1":  ("mo1", "mother1"),
    "mo2":  ("mo2", "mother2"),
    "dau1": ("dau1", "daughter1"),
    "dau2": ("dau2", "daughter2"),
    "mass": ("mass", "m"),
}
GEN_PARTICLE_REQUIRED = ("event_id", "pdg", "e", "px", "py", "pz")

PRIMARY_KEYS: Dict[str, Tuple[str, ...]] = {
    "event_id": ("event_id", "event", "evt"),
    "vertex":   ("vertex", "vertex_id", "vertex_index"),
    "t0": ("t0", "vertex_t"),
    "x0": ("x0", "vertex_x"),
    "y0": ("y0", "vertex_y"),
    "z0": ("z0", "vertex_z"),
    "pdg":      ("pdg", "pdg_code", "pdgid"),
    "track_id": ("track_id", "track"),
    "e":  ("e", "energy", "total_energy"),
    "px": ("px",),
    "py": ("py",),
    "pz": ("pz",),
}
PRIMARY_REQUIRED = ("event_id", "pdg", "e", "px", "py", "pz")

EXTRA_KEYS_MAP: Dict[str, Tuple[str, ...]] = {
    "event_id": ("event_id", "event", "evt"),
    "key":      ("key", "column", "name"),
    "value":    ("value", "val"),
}
EXTRA_REQUIRED = ("event_id", "key", "value")


def _first(columns: Iterable[str], names: Iterable[str]):
    cols = set(columns)
    for k in names:
        if k in cols:
            return k
    return None


def canonicalize_frame(
    df: pd.DataFrame,
    keys: Mapping[str, Tuple[str, ...]],
    required: Iterable[str] = (),
    *,
    source: str = "table",
) -> pd.DataFrame:
    """
    Return a copy of `df` whose columns are renamed to the canonical keys.
    Columns not listed in `keys` are kept as-is. Raises ValueError naming
    every missing required key.
    """
    rename: Dict[str, str] = {}
    for canon, aliases in keys.items():
        src = _first(df.columns, aliases)
        if src is not None and src not in rename:
            rename[src] = canon
    out = df.rename(columns=rename)
    missing = [k for k in required if k not in out.columns]
    if missing:
        raise ValueError(f"{source}: missing required column(s) {missing} (have {list(df.columns)})")
    return out
