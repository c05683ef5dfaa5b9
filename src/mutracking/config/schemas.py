from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional, Dict, List, Union


class RunCfg(BaseModel):
    """
    Global run controls.

    TOML:

    [run]
    workers = 2                 # int or "auto"
    diagnostics_level = 1       # 0=off, 1=summary, 2=verbose
    save_all_gen_particles = false
    """

    # Execution
    workers: Union[int, Literal["auto"]] = 1
    progress: bool = False
    max_events: Optional[int] = None

    # Hit construction
    post_step: bool = True          # read the post-step endpoint (else pre-step)
    skip_zero_deposit: bool = True  # steps without energy deposit produce no hit

    # Export
    save_all_gen_particles: bool = False
    print_hits: bool = False

    # Run metadata, recorded as settings
    generator: str = "basic"
    detector: str = "Prototype"

    # Diagnostics
    diagnostics_level: int = 1  # 0=off, 1=minimal, 2=verbose

    @field_validator("diagnostics_level")
    def _diag_range(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("diagnostics_level must be 0, 1, or 2")
        return v

    @field_validator("workers")
    def _workers_positive(cls, v):
        if isinstance(v, int) and v < 1:
            raise ValueError("workers must be >= 1 or 'auto'")
        return v


class IOCfg(BaseModel):
    """
    Input tables (engine-native units) and output locations.

    TOML:

    [io]
    steps_path   = "steps.csv"       # required: one row per transport step
    gen_particles_path = "gen.csv"   # optional
    primaries_path     = "prim.csv"  # optional
    extra_path         = "extra.csv" # optional
    output_path  = "run.h5"
    """

    steps_path: str
    primaries_path: Optional[str] = None
    gen_particles_path: Optional[str] = None
    extra_path: Optional[str] = None
    output_path: str
    settings_path: Optional[str] = None  # defaults to <output_path>.settings

    # Units the step/primary tables are written in (converted on ingest)
    length_unit: Literal["mm", "cm", "m"] = "mm"
    time_unit: Literal["ns", "ps", "us"] = "ns"
    energy_unit: Literal["eV", "keV", "MeV", "GeV"] = "MeV"

    table_name: str = "box_run"
    primaries_table: str = "primaries"


class ChambersCfg(BaseModel):
    """
    How chamber (volume) names become the numeric Hit_detId column.

    mode = "parse": the chamber name is itself a number.
    mode = "map":   look the name up in name_map (missing names -> -1).
    """

    mode: Literal["parse", "map"] = "parse"
    name_map: Dict[str, float] = Field(default_factory=dict)


class CutCfg(BaseModel):
    """
    Tracker-layer trigger applied before export.

    [cut]
    enabled = true
    layer_bounds = [[8000, 8100], [8100, 8200], [8200, 8300]]
    """

    enabled: bool = False
    layer_bounds: List[List[float]] = Field(default_factory=list)
    min_layers: int = 3
    min_deposit: float = 0.5
    min_y: float = 7000.0
    min_py: float = 0.0

    @field_validator("layer_bounds")
    def _pairs(cls, v: List[List[float]]) -> List[List[float]]:
        for b in v:
            if len(b) != 2:
                raise ValueError(f"layer bound {b} must be a [min, max] pair")
        return v


class SettingsCfg(BaseModel):
    """Free-form run settings written next to the data."""

    prefix: str = ""
    entries: Dict[str, str] = Field(default_factory=dict)
    extra: List[str] = Field(default_factory=list)
    extra_name: str = "EXTRA_"
    extra_start: int = 11


class Config(BaseModel):
    """
    Top-level TOML configuration.
    """

    run: RunCfg = Field(default_factory=RunCfg)
    io: IOCfg
    chambers: ChambersCfg = Field(default_factory=ChambersCfg)
    cut: CutCfg = Field(default_factory=CutCfg)
    settings: SettingsCfg = Field(default_factory=SettingsCfg)
