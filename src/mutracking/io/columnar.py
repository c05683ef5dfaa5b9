"""
mutracking.io.columnar

Pure conversions from per-event physics objects into column tables
(DataEntryList) ready for NTupleStore.fill_table.

A DataEntry is a 1D float64 array (one value per hit/particle); a
DataEntryList is an ordered list of DataEntry whose order matches the
schema columns. All conversions keep no state and allocate fresh arrays,
so they are safe to call from any worker on that worker's own data.

Column layouts
--------------
hits (14):        deposit, time, chamber number, pdg code, track id, parent id,
                  x, y, z, E, px, py, pz, weight(=1)
primaries (12):   pdg code, track id, parent(=0), t0, x0, y0, z0,
                  total energy, px, py, pz, weight(=1)
gen particles (20): index, G4 index, pdg id, status, vertex t/x/y/z,
                  momentum E/px/py/pz, mother1, mother2, daughter1, daughter2,
                  mass, pT, eta, phi
extra (16):       copied verbatim; columns may differ in length
"""
from __future__ import annotations
from typing import Callable, Iterable, List, Mapping, Sequence, Union

import numpy as np

from mutracking.config.chambers import ChamberMap, parse_chamber_number
from mutracking.physics import units
from mutracking.physics.hits import Hit
from mutracking.physics.particles import GenParticle, GeneratorEvent

DataEntry = np.ndarray
DataEntryList = List[np.ndarray]
ChamberNumberFn = Callable[[str], float]

HIT_COLUMN_COUNT = 14
PRIMARY_COLUMN_COUNT = 12
GEN_PARTICLE_COLUMN_COUNT = 20
EXTRA_COLUMN_COUNT = 16


def _columns(rows: List[tuple], ncols: int) -> DataEntryList:
    table = np.asarray(rows, dtype=np.float64).reshape(len(rows), ncols)
    return [np.ascontiguousarray(table[:, j]) for j in range(ncols)]


def empty_columns(ncols: int) -> DataEntryList:
    return [np.empty(0, dtype=np.float64) for _ in range(ncols)]


def chamber_lookup(mapping: Union[ChamberMap, Mapping[str, float]]) -> ChamberNumberFn:
    """Chamber-number function backed by a name table (missing names -> -1)."""
    if isinstance(mapping, ChamberMap):
        return mapping.number_for
    return ChamberMap.from_mapping(mapping).number_for


def hits_to_columns(
    hits: Iterable[Hit],
    chamber_number: Union[ChamberNumberFn, ChamberMap, Mapping[str, float], None] = None,
) -> DataEntryList:
    """
    Convert an event's hits into the 14 hit columns.

    chamber_number maps each chamber id to its numeric column value:
      None (default)     -> parse the id as a number (ValueError if it is not)
      mapping/ChamberMap -> table lookup, -1 when the id is absent
      callable           -> used as-is
    """
    if chamber_number is None:
        number_for = parse_chamber_number
    elif callable(chamber_number) and not isinstance(chamber_number, Mapping):
        number_for = chamber_number
    else:
        number_for = chamber_lookup(chamber_number)

    rows = []
    for h in hits:
        pos, mom = h.position, h.momentum
        rows.append((
            h.deposit, pos.t, number_for(h.chamber_id), h.pdg_code, h.track_id, h.parent_id,
            pos.x, pos.y, pos.z, mom.e, mom.px, mom.py, mom.pz, 1.0,
        ))
    return _columns(rows, HIT_COLUMN_COUNT)


def primaries_to_columns(event: GeneratorEvent) -> DataEntryList:
    """
    Convert every primary particle of every vertex (vertex order, then
    particle order) into the 12 primary columns, normalized to canonical units.
    """
    rows = []
    for vertex in event.vertices:
        t0 = vertex.t0 / units.Time
        x0, y0, z0 = (vertex.x0 / units.Length, vertex.y0 / units.Length, vertex.z0 / units.Length)
        for p in vertex.particles:
            px, py, pz = (c / units.Momentum for c in p.momentum)
            rows.append((
                p.pdg_code, p.track_id, 0.0, t0, x0, y0, z0,
                p.total_energy / units.Energy, px, py, pz, 1.0,
            ))
    return _columns(rows, PRIMARY_COLUMN_COUNT)


def gen_particles_to_columns(particles: Sequence[GenParticle], saveall: bool = False) -> DataEntryList:
    """
    Convert generator particles into the 20 generator columns.

    With saveall=False only particles that were handed to transport
    (g4_index >= 0) are kept.
    """
    rows = []
    for p in particles:
        if not (saveall or p.g4_index >= 0):
            continue
        v, m = p.vertex, p.momentum
        rows.append((
            p.index, p.g4_index, p.pdg_id, p.status,
            v.e, v.px, v.py, v.pz,
            m.e, m.px, m.py, m.pz,
            p.mother1, p.mother2, p.daughter1, p.daughter2,
            p.mass, m.pt(), m.eta(), m.phi(),
        ))
    return _columns(rows, GEN_PARTICLE_COLUMN_COUNT)


def empty_extra() -> List[List[float]]:
    return [[] for _ in range(EXTRA_COLUMN_COUNT)]


def extra_to_columns(extra: Sequence[Sequence[float]]) -> DataEntryList:
    """
    Copy the 16 extra columns verbatim. Each column keeps its own length;
    callers must not assume the columns line up row by row.
    """
    if len(extra) != EXTRA_COLUMN_COUNT:
        raise ValueError(f"extra block needs {EXTRA_COLUMN_COUNT} columns, got {len(extra)}")
    return [np.array(col, dtype=np.float64).reshape(-1) for col in extra]
