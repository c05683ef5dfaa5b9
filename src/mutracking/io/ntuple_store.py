from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import h5py
import numpy as np

from mutracking.io.settings import SimSetting

FORMAT_VERSION = "1.0"
SOFTWARE = "mutracking 0.1.0"


class DataKeyType(str, Enum):
    SINGLE = "single"   # one scalar per row (event)
    VECTOR = "vector"   # one value per hit/particle within the row


class SchemaMismatchError(ValueError):
    """Declared table schema disagrees with the data supplied to it."""


_S, _V = DataKeyType.SINGLE, DataKeyType.VECTOR

HIT_KEYS = (
    "Hit_energy", "Hit_time", "Hit_detId",
    "Hit_particlePdgId", "Hit_G4TrackId", "Hit_G4ParentTrackId",
    "Hit_x", "Hit_y", "Hit_z",
    "Hit_particleEnergy", "Hit_particlePx", "Hit_particlePy", "Hit_particlePz",
    "Hit_weight",
)
GEN_PARTICLE_KEYS = (
    "GenParticle_index", "GenParticle_G4index", "GenParticle_pdgid", "GenParticle_status",
    "GenParticle_time", "GenParticle_x", "GenParticle_y", "GenParticle_z",
    "GenParticle_energy", "GenParticle_px", "GenParticle_py", "GenParticle_pz",
    "GenParticle_mo1", "GenParticle_mo2", "GenParticle_dau1", "GenParticle_dau2",
    "GenParticle_mass", "GenParticle_pt", "GenParticle_eta", "GenParticle_phi",
)
EXTRA_KEYS = (
    "COSMIC_EVENT_ID",
    "COSMIC_CORE_X", "COSMIC_CORE_Y",
    "COSMIC_GEN_PRIMARY_ENERGY", "COSMIC_GEN_THETA", "COSMIC_GEN_PHI",
    "COSMIC_GEN_FIRST_HEIGHT", "COSMIC_GEN_ELECTRON_COUNT", "COSMIC_GEN_MUON_COUNT",
    "COSMIC_GEN_HADRON_COUNT", "COSMIC_GEN_PRIMARY_ID",
    "EXTRA_11", "EXTRA_12", "EXTRA_13", "EXTRA_14", "EXTRA_15",
)
PRIMARY_KEYS = (
    "Primary_particlePdgId", "Primary_G4TrackId", "Primary_G4ParentTrackId",
    "Primary_time", "Primary_x", "Primary_y", "Primary_z",
    "Primary_energy", "Primary_px", "Primary_py", "Primary_pz",
    "Primary_weight",
)

DEFAULT_DATA_KEYS: Tuple[str, ...] = ("NumHits", *HIT_KEYS, "NumGenParticles", *GEN_PARTICLE_KEYS, *EXTRA_KEYS)
DEFAULT_DATA_KEY_TYPES: Tuple[DataKeyType, ...] = (
    _S, *([_V] * len(HIT_KEYS)), _S, *([_V] * len(GEN_PARTICLE_KEYS)), *([_V] * len(EXTRA_KEYS))
)
PRIMARY_DATA_KEYS: Tuple[str, ...] = ("NumPrimaries", *PRIMARY_KEYS)
PRIMARY_DATA_KEY_TYPES: Tuple[DataKeyType, ...] = (_S, *([_V] * len(PRIMARY_KEYS)))


@dataclass(frozen=True)
class NTupleSchema:
    """
    Ordered column declaration of one table. Single keys take one scalar per
    fill, Vector keys one variable-length array per fill, both in key order.
    """
    name: str
    keys: Tuple[str, ...]
    types: Tuple[DataKeyType, ...]

    def __post_init__(self) -> None:
        if len(self.keys) != len(self.types):
            raise SchemaMismatchError(
                f"table '{self.name}': {len(self.keys)} keys but {len(self.types)} types")
        if len(set(self.keys)) != len(self.keys):
            raise SchemaMismatchError(f"table '{self.name}': duplicate column names")
        if any("/" in k for k in self.keys):
            raise SchemaMismatchError(f"table '{self.name}': column names may not contain '/'")

    @classmethod
    def build(cls, name: str, keys: Iterable[str], types: Iterable[DataKeyType | str]) -> "NTupleSchema":
        return cls(name, tuple(str(k) for k in keys), tuple(DataKeyType(t) for t in types))

    @property
    def single_keys(self) -> List[str]:
        return [k for k, t in zip(self.keys, self.types) if t is DataKeyType.SINGLE]

    @property
    def vector_keys(self) -> List[str]:
        return [k for k, t in zip(self.keys, self.types) if t is DataKeyType.VECTOR]

    def check_fill(
        self,
        types: Sequence[DataKeyType | str],
        single_values: Sequence[float],
        vector_values: Sequence[Sequence[float]],
    ) -> None:
        """Raise SchemaMismatchError unless the fill data matches this schema."""
        given = tuple(DataKeyType(t) for t in types)
        if given != self.types:
            raise SchemaMismatchError(f"table '{self.name}': fill types do not match declared types")
        n_single, n_vector = len(self.single_keys), len(self.vector_keys)
        if len(single_values) != n_single:
            raise SchemaMismatchError(
                f"table '{self.name}': {len(single_values)} scalar values for {n_single} Single keys")
        if len(vector_values) != n_vector:
            raise SchemaMismatchError(
                f"table '{self.name}': {len(vector_values)} vector columns for {n_vector} Vector keys")


def default_schema(name: str = "box_run") -> NTupleSchema:
    return NTupleSchema(name, DEFAULT_DATA_KEYS, DEFAULT_DATA_KEY_TYPES)


def primaries_schema(name: str = "primaries") -> NTupleSchema:
    return NTupleSchema(name, PRIMARY_DATA_KEYS, PRIMARY_DATA_KEY_TYPES)


def _string_array(values: Iterable[str]) -> np.ndarray:
    return np.array(list(values), dtype=h5py.string_dtype())


def _append(dset: h5py.Dataset, data: np.ndarray) -> None:
    if len(data) == 0:
        return
    n0 = dset.shape[0]
    dset.resize((n0 + len(data),))
    dset[n0:] = data


class NTupleStore:
    """
    HDF5-backed table sink.

    Layout (per declared table):

    /ntuples/<table>                    attrs: keys, types, n_rows
    /ntuples/<table>/<key>              Single key: (n_rows,) float64
    /ntuples/<table>/<key>/values       Vector key: flat float64 values
    /ntuples/<table>/<key>/row_ptr      Vector key: (n_rows+1,) int64 CSR pointers
    /settings                           attrs: run settings (name -> text)

    Not safe for concurrent writers: callers on several threads must
    serialize declare/fill calls.
    """

    def __init__(self, path: str | Path, mode: str = "w", config_text: Optional[str] = None) -> None:
        self.path = Path(path)
        self.mode = mode
        self._config_text = config_text
        self._schemas: Dict[str, NTupleSchema] = {}
        self._f: Optional[h5py.File] = None

    # ---- lifecycle -----------------------------------------------------------

    def open(self) -> "NTupleStore":
        if self._f is not None:
            return self
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._f = h5py.File(self.path, self.mode)
        if self.mode != "r" and "format_version" not in self._f.attrs:
            self._f.attrs["format_version"] = FORMAT_VERSION
            self._f.attrs["created_utc"] = datetime.now(timezone.utc).isoformat()
            self._f.attrs["software"] = SOFTWARE
            if self._config_text is not None:
                self._f.attrs["config_text"] = self._config_text
        for name, grp in self._f.get("ntuples", {}).items():
            self._schemas[name] = NTupleSchema.build(
                name, (k.decode() if isinstance(k, bytes) else k for k in grp.attrs["keys"]),
                (t.decode() if isinstance(t, bytes) else t for t in grp.attrs["types"]))
        return self

    def save(self) -> bool:
        if self._f is None:
            return False
        self._f.flush()
        return True

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None

    def __enter__(self) -> "NTupleStore":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    @property
    def file(self) -> h5py.File:
        if self._f is None:
            raise RuntimeError(f"NTupleStore {self.path} is not open")
        return self._f

    # ---- schema registry -----------------------------------------------------

    def tables(self) -> List[str]:
        return list(self._schemas)

    def schema(self, name: str) -> NTupleSchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise KeyError(f"table '{name}' has not been declared in {self.path}") from None

    def declare_table(self, name: str, keys: Sequence[str], types: Sequence[DataKeyType | str]) -> bool:
        """
        Declare a table once. Returns True when newly created, False when an
        identical declaration already exists; a conflicting one raises
        SchemaMismatchError.
        """
        schema = NTupleSchema.build(name, keys, types)
        existing = self._schemas.get(name)
        if existing is not None:
            if existing != schema:
                raise SchemaMismatchError(f"table '{name}' already declared with a different schema")
            return False

        grp = self.file.require_group("ntuples").create_group(name)
        grp.attrs["keys"] = _string_array(schema.keys)
        grp.attrs["types"] = _string_array(t.value for t in schema.types)
        grp.attrs["n_rows"] = 0
        for key, typ in zip(schema.keys, schema.types):
            if typ is DataKeyType.SINGLE:
                grp.create_dataset(key, shape=(0,), maxshape=(None,), dtype="f8", chunks=True)
            else:
                kg = grp.create_group(key)
                kg.create_dataset("values", shape=(0,), maxshape=(None,), dtype="f8", chunks=True)
                kg.create_dataset("row_ptr", data=np.zeros(1, dtype=np.int64), maxshape=(None,), chunks=True)
        self._schemas[name] = schema
        return True

    def declare(self, schema: NTupleSchema) -> bool:
        return self.declare_table(schema.name, schema.keys, schema.types)

    def fill_table(
        self,
        name: str,
        types: Sequence[DataKeyType | str],
        single_values: Sequence[float],
        vector_values: Sequence[Sequence[float]],
    ) -> bool:
        """
        Append one row. Every check runs before any dataset is touched, so a
        SchemaMismatchError leaves the table unchanged.
        """
        schema = self.schema(name)
        schema.check_fill(types, single_values, vector_values)
        singles = np.asarray(single_values, dtype=np.float64).reshape(-1)
        vectors = [np.asarray(v, dtype=np.float64).reshape(-1) for v in vector_values]

        grp = self.file["ntuples"][name]
        for key, value in zip(schema.single_keys, singles):
            _append(grp[key], np.array([value]))
        for key, values in zip(schema.vector_keys, vectors):
            kg = grp[key]
            ptr = kg["row_ptr"]
            _append(kg["values"], values)
            _append(ptr, np.array([ptr[ptr.shape[0] - 1] + len(values)], dtype=np.int64))
        grp.attrs["n_rows"] = int(grp.attrs["n_rows"]) + 1
        return True

    def fill(self, schema: NTupleSchema, single_values: Sequence[float],
             vector_values: Sequence[Sequence[float]]) -> bool:
        return self.fill_table(schema.name, schema.types, single_values, vector_values)

    # ---- settings ------------------------------------------------------------

    def write_settings(self, entries: Iterable[SimSetting]) -> None:
        # attrs keep creation order
        if "settings" in self.file:
            grp = self.file["settings"]
        else:
            grp = self.file.create_group("settings", track_order=True)
        for entry in entries:
            grp.attrs[entry.name] = entry.text

    # ---- reading -------------------------------------------------------------

    def n_rows(self, name: str) -> int:
        self.schema(name)
        return int(self.file["ntuples"][name].attrs["n_rows"])

    def read_table(self, name: str) -> Dict[str, Any]:
        """
        Return {key: array} for Single keys and {key: [array per row]} for
        Vector keys, in schema order.
        """
        schema = self.schema(name)
        grp = self.file["ntuples"][name]
        out: Dict[str, Any] = {}
        for key, typ in zip(schema.keys, schema.types):
            if typ is DataKeyType.SINGLE:
                out[key] = np.array(grp[key], dtype=np.float64)
            else:
                values = np.array(grp[key]["values"], dtype=np.float64)
                ptr = np.array(grp[key]["row_ptr"], dtype=np.int64)
                out[key] = [values[ptr[i]:ptr[i + 1]] for i in range(len(ptr) - 1)]
        return out

    def read_settings(self) -> Dict[str, str]:
        if "settings" not in self.file:
            return {}
        return {k: (v.decode() if isinstance(v, bytes) else str(v))
                for k, v in self.file["settings"].attrs.items()}


def read_ntuple(path: str | Path, name: str) -> Dict[str, Any]:
    with NTupleStore(path, mode="r") as store:
        return store.read_table(name)
