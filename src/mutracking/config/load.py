from __future__ import annotations
from .schemas import Config
from pathlib import Path
import json

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # py<=310

_IO_PATH_FIELDS = ("steps_path", "primaries_path", "gen_particles_path", "extra_path",
                   "output_path", "settings_path")


def load_config(path: str | Path, *, relative_to_file: bool = True) -> Config:
    """
    Parse and validate a TOML run configuration.

    With relative_to_file=True, relative [io] paths are resolved against the
    directory holding the config file rather than the working directory.
    """
    p = Path(path)
    cfg = Config(**tomllib.loads(p.read_text()))
    if relative_to_file:
        base = p.resolve().parent
        for name in _IO_PATH_FIELDS:
            val = getattr(cfg.io, name)
            if val is not None and not Path(val).is_absolute():
                setattr(cfg.io, name, str(base / val))
    return cfg


def settings_path_for(cfg: Config) -> Path:
    if cfg.io.settings_path:
        return Path(cfg.io.settings_path)
    return Path(cfg.io.output_path).with_suffix(".settings")


def snapshot_config_toml(path: str | Path) -> str:
    """Return the raw TOML text for embedding in HDF5 metadata."""
    return Path(path).read_text()


def json_dumps(obj) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)
