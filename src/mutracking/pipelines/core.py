from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
import os
from pathlib import Path
import threading
from typing import Dict, List, Optional, Sequence, Tuple

import typer
from tqdm import tqdm

from mutracking.config.chambers import ChamberMap, parse_chamber_number
from mutracking.config.load import json_dumps, load_config, settings_path_for, snapshot_config_toml
from mutracking.config.schemas import Config
from mutracking.filters.cuts import CutConfig, CutDiagnostics, hits_to_cut_columns
from mutracking.io.adapters import StepTableAdapter, read_extra, read_gen_particles, read_primaries
from mutracking.io.columnar import (
    ChamberNumberFn,
    empty_extra,
    extra_to_columns,
    gen_particles_to_columns,
    primaries_to_columns,
)
from mutracking.io.ntuple_store import NTupleSchema, NTupleStore, default_schema, primaries_schema
from mutracking.io.settings import (
    SimSettingList,
    indexed_settings,
    save_settings,
    settings,
    settings_from_pairs,
)
from mutracking.physics.particles import GenParticle, GeneratorEvent
from mutracking.physics.pool import WorkerContext, WorkerStats
from mutracking.physics.steps import Step

EventSteps = Tuple[int, List[Step]]


@dataclass
class RunInputs:
    """Everything read from disk before the event loop starts."""
    events: List[EventSteps]
    primaries: Dict[int, GeneratorEvent] = field(default_factory=dict)
    gen_particles: Dict[int, List[GenParticle]] = field(default_factory=dict)
    extra: Dict[int, List[List[float]]] = field(default_factory=dict)


@dataclass
class RunSummary:
    events: int = 0
    hits: int = 0
    exported: int = 0
    skipped: int = 0
    cut: CutDiagnostics = field(default_factory=CutDiagnostics)

    def merge(self, stats: WorkerStats, diag: CutDiagnostics) -> None:
        self.events += stats.events
        self.hits += stats.hits
        self.exported += stats.accepted
        self.skipped += stats.rejected
        self.cut.events_in += diag.events_in
        self.cut.accepted += diag.accepted
        self.cut.rejected += diag.rejected
        self.cut.candidate_hits += diag.candidate_hits
        for n, c in diag.layer_counts.items():
            self.cut.layer_counts[n] = self.cut.layer_counts.get(n, 0) + c


def chamber_number_fn(cfg: Config) -> ChamberNumberFn:
    if cfg.chambers.mode == "map":
        return ChamberMap.from_mapping(cfg.chambers.name_map).number_for
    return parse_chamber_number


def cut_config(cfg: Config) -> CutConfig:
    return CutConfig(
        min_layers=cfg.cut.min_layers,
        min_deposit=cfg.cut.min_deposit,
        min_y=cfg.cut.min_y,
        min_py=cfg.cut.min_py,
    )


def load_inputs(cfg: Config) -> RunInputs:
    io = cfg.io
    adapter = StepTableAdapter(io.length_unit, io.time_unit, io.energy_unit)
    events = list(adapter.iter_events(io.steps_path))
    if cfg.run.max_events is not None:
        events = events[: cfg.run.max_events]
    inputs = RunInputs(events=events)
    if io.primaries_path:
        inputs.primaries = read_primaries(io.primaries_path, io.length_unit, io.time_unit, io.energy_unit)
    if io.gen_particles_path:
        inputs.gen_particles = read_gen_particles(io.gen_particles_path)
    if io.extra_path:
        inputs.extra = read_extra(io.extra_path)
    return inputs


def build_run_settings(cfg: Config, summary: Optional[RunSummary] = None) -> SimSettingList:
    """Run metadata, in the order it is written."""
    out = settings(
        "SIM_GENERATOR", cfg.run.generator,
        "SIM_DETECTOR", cfg.run.detector,
        "SIM_STEP_INPUT", str(cfg.io.steps_path),
        "SIM_POST_STEP", str(cfg.run.post_step).lower(),
        "SIM_SAVE_ALL_GEN_PARTICLES", str(cfg.run.save_all_gen_particles).lower(),
        "SIM_CHAMBER_MODE", cfg.chambers.mode,
    )
    if cfg.cut.enabled:
        out += settings(
            "CUT_MIN_LAYERS", str(cfg.cut.min_layers),
            "CUT_MIN_DEPOSIT", repr(cfg.cut.min_deposit),
            "CUT_MIN_Y", repr(cfg.cut.min_y),
            "CUT_MIN_PY", repr(cfg.cut.min_py),
        )
        out += indexed_settings("CUT_LAYER_BOUND_", [json_dumps(b) for b in cfg.cut.layer_bounds])
    out += settings_from_pairs(cfg.settings.entries.items(), cfg.settings.prefix)
    out += indexed_settings(cfg.settings.extra_name, cfg.settings.extra, cfg.settings.extra_start)
    if summary is not None:
        out += settings(
            "RUN_EVENTS", str(summary.events),
            "RUN_HITS", str(summary.hits),
            "RUN_EXPORTED_EVENTS", str(summary.exported),
            "RUN_SKIPPED_EVENTS", str(summary.skipped),
        )
    return out


def _process_chunk(
    worker_id: int,
    events: Sequence[EventSteps],
    cfg: Config,
    inputs: RunInputs,
    store: NTupleStore,
    schema: NTupleSchema,
    prim_schema: Optional[NTupleSchema],
    lock: threading.Lock,
) -> Tuple[WorkerStats, CutDiagnostics]:
    """
    Process a disjoint run of events on one worker thread. The worker owns its
    context (and hit pool); only store fills and printing go through `lock`.
    """
    ctx = WorkerContext(worker_id=worker_id)
    diag = CutDiagnostics()
    number_for = chamber_number_fn(cfg)
    cut_cfg = cut_config(cfg)
    verbose = cfg.run.diagnostics_level >= 2

    for event_id, steps in events:
        hits = ctx.begin_event(event_id)
        try:
            for step in steps:
                if cfg.run.skip_zero_deposit and step.total_energy_deposit == 0:
                    continue
                ctx.record(hits, step, post=cfg.run.post_step)

            hit_cols = hits_to_cut_columns(
                hits, cfg.cut.layer_bounds, cfg.cut.enabled, cut_cfg, number_for, diag)
            n_hits = len(hit_cols[0])
            if n_hits == 0:
                ctx.stats.rejected += 1
                if verbose:
                    with lock:
                        print(f"[pipeline] worker {worker_id}: event {event_id} not exported "
                              f"({len(hits)} hits)")
                continue

            gen_cols = gen_particles_to_columns(
                inputs.gen_particles.get(event_id, []), cfg.run.save_all_gen_particles)
            extra_cols = extra_to_columns(inputs.extra.get(event_id, empty_extra()))
            generator_event = inputs.primaries.get(event_id)

            with lock:
                if cfg.run.print_hits:
                    hits.print(event_id)
                store.fill(schema, [n_hits, len(gen_cols[0])], [*hit_cols, *gen_cols, *extra_cols])
                if prim_schema is not None and generator_event is not None:
                    prim_cols = primaries_to_columns(generator_event)
                    store.fill(prim_schema, [len(prim_cols[0])], prim_cols)
            ctx.stats.accepted += 1
        finally:
            ctx.end_event(hits)

    return ctx.stats, diag


def _split(events: List[EventSteps], n: int) -> List[List[EventSteps]]:
    n = max(1, min(n, len(events)))
    size, rem = divmod(len(events), n)
    out, start = [], 0
    for i in range(n):
        stop = start + size + (1 if i < rem else 0)
        out.append(events[start:stop])
        start = stop
    return [c for c in out if c]


def run_events(
    cfg: Config,
    inputs: RunInputs,
    store: NTupleStore,
    workers: int = 1,
) -> RunSummary:
    """Declare the tables, then fan the events out over `workers` threads."""
    schema = default_schema(cfg.io.table_name)
    store.declare(schema)
    prim_schema = None
    if inputs.primaries:
        prim_schema = primaries_schema(cfg.io.primaries_table)
        store.declare(prim_schema)

    summary = RunSummary()
    chunks = _split(inputs.events, workers)
    lock = threading.Lock()
    pbar = tqdm(total=len(inputs.events), desc=f"events x{len(chunks)}", unit="ev") if cfg.run.progress else None

    with ThreadPoolExecutor(max_workers=max(1, len(chunks))) as ex:
        futs = {ex.submit(_process_chunk, i, ch, cfg, inputs, store, schema, prim_schema, lock): len(ch)
                for i, ch in enumerate(chunks)}
        for fut in as_completed(futs):
            stats, diag = fut.result()
            summary.merge(stats, diag)
            if pbar:
                pbar.update(futs[fut])
    if pbar:
        pbar.close()
    return summary


def run_pipeline(
    cfg_path: str,
    *,
    workers: Optional[int] = None,
    savecut: Optional[bool] = None,
    saveall: Optional[bool] = None,
    print_hits: Optional[bool] = None,
) -> Path:
    """
    Orchestrate a full run from a TOML config file.

    CLI flags override the corresponding config fields when not None.

    Returns
    -------
    Path to written HDF5 file.
    """
    cfg = load_config(cfg_path)

    # ---- apply CLI overrides on top of TOML ----
    if workers is not None:
        cfg.run.workers = workers
    if savecut is not None:
        cfg.cut.enabled = savecut
    if saveall is not None:
        cfg.run.save_all_gen_particles = saveall
    if print_hits is not None:
        cfg.run.print_hits = print_hits

    diag_level = cfg.run.diagnostics_level
    n_workers = (os.cpu_count() or 1) if cfg.run.workers == "auto" else int(cfg.run.workers)

    if diag_level >= 1:
        print(f"[run] config = {cfg_path}")
        print(f"[run] workers={n_workers} cut={cfg.cut.enabled} "
              f"saveall={cfg.run.save_all_gen_particles} chambers={cfg.chambers.mode}")
        print(f"[run] input={cfg.io.steps_path} -> output={cfg.io.output_path}")

    inputs = load_inputs(cfg)
    if diag_level >= 1:
        print(f"[pipeline] Got {len(inputs.events)} events "
              f"({len(inputs.gen_particles)} with generator particles, "
              f"{len(inputs.primaries)} with primaries)")

    out_path = Path(cfg.io.output_path)
    with NTupleStore(out_path, mode="w", config_text=snapshot_config_toml(cfg_path)) as store:
        summary = run_events(cfg, inputs, store, workers=n_workers)
        entries = build_run_settings(cfg, summary)
        store.write_settings(entries)
        store.save()

    settings_file = settings_path_for(cfg)
    if settings_file.exists():
        settings_file.unlink()
    save_settings(settings_file, entries)

    if diag_level >= 1:
        print(f"[pipeline] {summary.events} events, {summary.hits} hits, "
              f"exported {summary.exported}, skipped {summary.skipped}")
        if cfg.cut.enabled:
            print(f"[cut] accepted {summary.cut.accepted}/{summary.cut.events_in} events "
                  f"({summary.cut.candidate_hits} candidate hits)")
            if diag_level >= 2:
                for n in sorted(summary.cut.layer_counts):
                    print(f"[cut]   {n} layer(s) reached: {summary.cut.layer_counts[n]} events")
        print(f"[store] wrote {out_path} and {settings_file}")

    return out_path


# ---------------------------------------------------------------------------
# Unified CLI entry point
# ---------------------------------------------------------------------------

app = typer.Typer(help="Hit export pipeline (mutracking.pipelines.core)")


@app.command()
def main(
    cfg_path: str = typer.Argument(
        ...,
        help="Path to TOML config file",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-j",
        help="Override [run].workers (number of worker threads)",
    ),
    savecut: Optional[bool] = typer.Option(
        None,
        "--cut / --no-cut",
        help="Enable or disable the tracker-layer cut; overrides [cut].enabled when set",
    ),
    saveall: Optional[bool] = typer.Option(
        None,
        "--save-all / --transported-only",
        help="Export all generator particles or only transported ones; overrides [run].save_all_gen_particles",
    ),
    print_hits: bool = typer.Option(
        False,
        "--print-hits",
        help="Override [run].print_hits = true (print every exported hit collection)",
    ),
):
    """
    Convert a step dump into hit/generator ntuples for a single config.
    """
    out_path = run_pipeline(
        cfg_path,
        workers=workers,
        savecut=savecut,
        saveall=saveall,
        print_hits=print_hits if print_hits else None,
    )
    typer.echo(str(out_path))


if __name__ == "__main__":
    app()
