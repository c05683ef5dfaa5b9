# src/mutracking/filters/cuts.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from mutracking.io.columnar import (
    ChamberNumberFn,
    DataEntryList,
    HIT_COLUMN_COUNT,
    empty_columns,
    hits_to_columns,
)
from mutracking.physics.hits import Hit

LayerBounds = Sequence[Sequence[float]]


@dataclass
class CutConfig:
    """
    Tracker-layer trigger thresholds (canonical units). All comparisons are
    strict: py > min_py, deposit > min_deposit, y > min_y, lo < y < hi.
    """
    min_layers: int = 3
    min_deposit: float = 0.5
    min_y: float = 7000.0
    min_py: float = 0.0


@dataclass
class CutDiagnostics:
    events_in: int = 0
    accepted: int = 0
    rejected: int = 0
    candidate_hits: int = 0
    layer_counts: Dict[int, int] = field(default_factory=dict)

    def inc(self, n_layers: int) -> None:
        self.layer_counts[n_layers] = self.layer_counts.get(n_layers, 0) + 1


def _check_bounds(layer_bounds: LayerBounds) -> None:
    for k, b in enumerate(layer_bounds):
        if len(b) != 2:
            raise ValueError(f"layer_bounds[{k}]={list(b)} must be a [min, max] pair")


def is_candidate(hit: Hit, cfg: CutConfig) -> bool:
    return (hit.momentum.py > cfg.min_py
            and hit.deposit > cfg.min_deposit
            and hit.position.y > cfg.min_y)


def layers_crossed(
    hits: Sequence[Hit],
    layer_bounds: LayerBounds,
    cfg: Optional[CutConfig] = None,
    diag: Optional[CutDiagnostics] = None,
) -> List[int]:
    """
    Sorted, de-duplicated indices of the layers whose open interval (lo, hi)
    contains the y of at least one candidate hit.
    """
    if cfg is None:
        cfg = CutConfig()
    _check_bounds(layer_bounds)
    reached = set()
    for h in hits:
        if not is_candidate(h, cfg):
            continue
        if diag is not None:
            diag.candidate_hits += 1
        y = h.position.y
        for k, (lo, hi) in enumerate(layer_bounds):
            if lo < y < hi:
                reached.add(k)
    return sorted(reached)


def passes_layer_cut(
    hits: Sequence[Hit],
    layer_bounds: LayerBounds,
    cfg: Optional[CutConfig] = None,
    diag: Optional[CutDiagnostics] = None,
) -> bool:
    if cfg is None:
        cfg = CutConfig()
    n_layers = len(layers_crossed(hits, layer_bounds, cfg, diag))
    ok = n_layers >= cfg.min_layers
    if diag is not None:
        diag.events_in += 1
        diag.inc(n_layers)
        if ok:
            diag.accepted += 1
        else:
            diag.rejected += 1
    return ok


def apply_layer_cut(
    hits: Sequence[Hit],
    layer_bounds: LayerBounds,
    cfg: Optional[CutConfig] = None,
    chamber_number: Optional[ChamberNumberFn] = None,
    diag: Optional[CutDiagnostics] = None,
) -> DataEntryList:
    """
    Event-level accept/reject. An accepted event exports *all* of its hits
    through the 14-column conversion; a rejected one yields 14 empty columns.
    """
    if passes_layer_cut(hits, layer_bounds, cfg, diag):
        return hits_to_columns(hits, chamber_number)
    return empty_columns(HIT_COLUMN_COUNT)


def hits_to_cut_columns(
    hits: Sequence[Hit],
    layer_bounds: LayerBounds,
    savecut: bool,
    cfg: Optional[CutConfig] = None,
    chamber_number: Optional[ChamberNumberFn] = None,
    diag: Optional[CutDiagnostics] = None,
) -> DataEntryList:
    """Apply the layer cut when savecut is set, else convert unconditionally."""
    if savecut:
        return apply_layer_cut(hits, layer_bounds, cfg, chamber_number, diag)
    return hits_to_columns(hits, chamber_number)
