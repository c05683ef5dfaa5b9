"""
mutracking.io.adapters

Readers that turn tabular dumps of a transport run into the physics-layer
input records consumed by the hit pipeline:

- steps          -> per-event lists of physics.steps.Step
- primaries      -> per-event physics.particles.GeneratorEvent
- gen particles  -> per-event lists of physics.particles.GenParticle
- extra          -> per-event 16-column extra block

Design goals
------------
- Keep I/O concerns isolated from hit construction and conversion.
- Normalize units on ingest to engine-native units (mm, ns, MeV), so that
  Hit.from_step applies the same canonical-unit division as live transport.
- Be tolerant to column-name variants (io.canonicalize).
- Remain side-effect free: return Python objects; HDF5 is handled downstream.

Supported inputs: CSV (.csv), Parquet (.parquet/.pq), HDF (.h5/.hdf5).
"""
from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterator, List, Tuple

import numpy as np
import pandas as pd

from mutracking.io.canonicalize import (
    EXTRA_KEYS_MAP, EXTRA_REQUIRED,
    GEN_PARTICLE_KEYS, GEN_PARTICLE_REQUIRED,
    PRIMARY_KEYS, PRIMARY_REQUIRED,
    STEP_KEYS, STEP_REQUIRED,
    canonicalize_frame,
)
from mutracking.io.columnar import EXTRA_COLUMN_COUNT, empty_extra
from mutracking.io.ntuple_store import EXTRA_KEYS
from mutracking.physics import units
from mutracking.physics.kinematics import LorentzVector
from mutracking.physics.particles import (
    GenParticle, GeneratorEvent, NOT_TRANSPORTED, ParticleDefinition, PrimaryParticle, PrimaryVertex,
)
from mutracking.physics.steps import Step, StepPoint, Track

_EXTRA_INDEX = {k: i for i, k in enumerate(EXTRA_KEYS)}


def read_table(path: str | Path) -> pd.DataFrame:
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(p)
    if suffix in {".parquet", ".pq"}:
        return pd.read_parquet(p)
    if suffix in {".h5", ".hdf5"}:
        return pd.read_hdf(p)
    raise ValueError(f"Unrecognized input table: {p.name} (expected .csv/.parquet/.h5)")


class StepTableAdapter:
    """
    Read one-row-per-step tables and yield (event_id, [Step, ...]) in
    ascending event id, steps in row order.

    Expected columns (aliases accepted, see io.canonicalize.STEP_KEYS):
      event_id, track_id, parent_id, particle, pdg, volume | volume_path, edep,
      post_t, post_x, post_y, post_z, post_e, post_px, post_py, post_pz,
      [pre_t, pre_x, pre_y, pre_z, pre_e, pre_px, pre_py, pre_pz]

    Missing pre-step columns fall back to the post-step values.

    Parameters
    ----------
    length_unit, time_unit, energy_unit : units the table is written in;
        values are converted to engine-native units on ingest.
    """

    def __init__(self, length_unit: str = "mm", time_unit: str = "ns", energy_unit: str = "MeV") -> None:
        try:
            self.length_scale = units.NATIVE_LENGTH_UNITS[length_unit]
            self.time_scale = units.NATIVE_TIME_UNITS[time_unit]
            self.energy_scale = units.NATIVE_ENERGY_UNITS[energy_unit]
        except KeyError as exc:
            raise ValueError(f"Unsupported unit {exc.args[0]!r}") from None

    def _point(self, row, which: str) -> StepPoint:
        L, T, E = self.length_scale, self.time_scale, self.energy_scale
        return StepPoint(
            global_time=float(row[f"{which}_t"]) * T,
            position=np.array([row[f"{which}_x"], row[f"{which}_y"], row[f"{which}_z"]], dtype=float) * L,
            total_energy=float(row[f"{which}_e"]) * E,
            momentum=np.array([row[f"{which}_px"], row[f"{which}_py"], row[f"{which}_pz"]], dtype=float) * E,
        )

    def frame(self, path: str | Path) -> pd.DataFrame:
        df = canonicalize_frame(read_table(path), STEP_KEYS, STEP_REQUIRED, source=str(path))
        if "volume" not in df.columns and "volume_path" not in df.columns:
            raise ValueError(f"{path}: need a 'volume' or 'volume_path' column")
        for key in ("t", "x", "y", "z", "e", "px", "py", "pz"):
            if f"pre_{key}" not in df.columns:
                df[f"pre_{key}"] = df[f"post_{key}"]
        if "particle" not in df.columns:
            df["particle"] = df["pdg"].astype(str)
        return df

    def _steps(self, df: pd.DataFrame) -> List[Step]:
        steps: List[Step] = []
        has_path = "volume_path" in df.columns
        for row in df.to_dict("records"):
            if has_path and isinstance(row["volume_path"], str):
                history = [v for v in row["volume_path"].split("/") if v]
            else:
                history = [str(row["volume"])]
            track = Track(
                particle=ParticleDefinition(str(row["particle"]), int(row["pdg"])),
                track_id=int(row["track_id"]),
                parent_id=int(row["parent_id"]),
                volume_history=history,
            )
            steps.append(Step(
                track=track,
                pre=self._point(row, "pre"),
                post=self._point(row, "post"),
                total_energy_deposit=float(row["edep"]) * self.energy_scale,
            ))
        return steps

    def iter_events(self, path: str | Path) -> Iterator[Tuple[int, List[Step]]]:
        df = self.frame(path)
        for event_id, group in df.groupby("event_id", sort=True):
            yield int(event_id), self._steps(group)


def read_primaries(path: str | Path, length_unit: str = "mm", time_unit: str = "ns",
                   energy_unit: str = "MeV") -> Dict[int, GeneratorEvent]:
    """
    One row per primary particle. Rows sharing (event_id, vertex) form one
    vertex; the vertex position is taken from its first row.
    """
    L = units.NATIVE_LENGTH_UNITS[length_unit]
    T = units.NATIVE_TIME_UNITS[time_unit]
    E = units.NATIVE_ENERGY_UNITS[energy_unit]
    df = canonicalize_frame(read_table(path), PRIMARY_KEYS, PRIMARY_REQUIRED, source=str(path))
    for col in ("vertex", "t0", "x0", "y0", "z0", "track_id"):
        if col not in df.columns:
            df[col] = 0

    out: Dict[int, GeneratorEvent] = {}
    for event_id, ev_rows in df.groupby("event_id", sort=True):
        event = GeneratorEvent(event_id=int(event_id))
        for _, v_rows in ev_rows.groupby("vertex", sort=False):
            first = v_rows.iloc[0]
            vertex = PrimaryVertex(t0=float(first["t0"]) * T, x0=float(first["x0"]) * L,
                                   y0=float(first["y0"]) * L, z0=float(first["z0"]) * L)
            for row in v_rows.to_dict("records"):
                vertex.particles.append(PrimaryParticle(
                    pdg_code=int(row["pdg"]),
                    track_id=int(row["track_id"]),
                    total_energy=float(row["e"]) * E,
                    momentum=(float(row["px"]) * E, float(row["py"]) * E, float(row["pz"]) * E),
                ))
            event.vertices.append(vertex)
        out[int(event_id)] = event
    return out


def read_gen_particles(path: str | Path) -> Dict[int, List[GenParticle]]:
    """
    One row per generator particle, already in canonical units. Missing
    bookkeeping columns default to: index = row position within the event,
    g4_index = NOT_TRANSPORTED, status = 1, mothers/daughters = -1.
    """
    df = canonicalize_frame(read_table(path), GEN_PARTICLE_KEYS, GEN_PARTICLE_REQUIRED, source=str(path))
    defaults = {"g4_index": NOT_TRANSPORTED, "status": 1, "vt": 0.0, "vx": 0.0, "vy": 0.0, "vz": 0.0,
                "mo1": -1, "mo2": -1, "dau1": -1, "dau2": -1, "mass": 0.0}
    for col, val in defaults.items():
        if col not in df.columns:
            df[col] = val

    out: Dict[int, List[GenParticle]] = {}
    for event_id, rows in df.groupby("event_id", sort=True):
        particles: List[GenParticle] = []
        for i, row in enumerate(rows.to_dict("records")):
            particles.append(GenParticle(
                index=int(row["index"]) if "index" in row else i,
                g4_index=int(row["g4_index"]),
                pdg_id=int(row["pdg"]),
                status=int(row["status"]),
                vertex=LorentzVector(float(row["vt"]), float(row["vx"]), float(row["vy"]), float(row["vz"])),
                momentum=LorentzVector(float(row["e"]), float(row["px"]), float(row["py"]), float(row["pz"])),
                mother1=int(row["mo1"]), mother2=int(row["mo2"]),
                daughter1=int(row["dau1"]), daughter2=int(row["dau2"]),
                mass=float(row["mass"]),
            ))
        out[int(event_id)] = particles
    return out


def read_extra(path: str | Path) -> Dict[int, List[List[float]]]:
    """
    Long-format extra values: (event_id, key, value) rows, where key is one
    of the 16 extra column names (or its 0-based position). Values append to
    their column in row order.
    """
    df = canonicalize_frame(read_table(path), EXTRA_KEYS_MAP, EXTRA_REQUIRED, source=str(path))
    out: Dict[int, List[List[float]]] = {}
    for row in df.to_dict("records"):
        key = row["key"]
        col = _EXTRA_INDEX.get(str(key))
        if col is None:
            try:
                col = int(key)
            except (TypeError, ValueError):
                raise ValueError(f"{path}: unknown extra column {key!r}") from None
        if not 0 <= col < EXTRA_COLUMN_COUNT:
            raise ValueError(f"{path}: extra column index {col} out of range")
        block = out.setdefault(int(row["event_id"]), empty_extra())
        block[col].append(float(row["value"]))
    return out
