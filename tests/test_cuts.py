import pytest

from mutracking.filters.cuts import (
    CutConfig,
    CutDiagnostics,
    apply_layer_cut,
    hits_to_cut_columns,
    layers_crossed,
    passes_layer_cut,
)

# canonical units (cm); above the default y threshold of 7000
BOUNDS = [[7000.0, 7010.0], [7010.0, 7020.0], [7020.0, 7030.0]]


def test_two_layers_rejected_third_layer_accepts(make_hit):
    hits = [make_hit(y=7005.0), make_hit(y=7015.0)]
    cols = apply_layer_cut(hits, BOUNDS)
    assert len(cols) == 14
    assert all(len(c) == 0 for c in cols)

    hits.append(make_hit(y=7025.0))
    cols = apply_layer_cut(hits, BOUNDS)
    assert all(len(c) == 3 for c in cols)


def test_small_bounds_with_lowered_y_threshold(make_hit):
    bounds = [[0, 10], [10, 20], [20, 30]]
    cfg = CutConfig(min_y=0.0)
    hits = [make_hit(y=5.0), make_hit(y=15.0)]
    assert not passes_layer_cut(hits, bounds, cfg)
    hits.append(make_hit(y=25.0))
    assert passes_layer_cut(hits, bounds, cfg)
    # the default y threshold excludes all of these hits
    assert not passes_layer_cut(hits, bounds)


def test_accepted_event_exports_every_hit(make_hit):
    hits = [make_hit(y=7005.0), make_hit(y=7015.0), make_hit(y=7025.0), make_hit(y=0.0, deposit=0.1)]
    cols = apply_layer_cut(hits, BOUNDS)
    assert all(len(c) == 4 for c in cols)


@pytest.mark.parametrize("kw", [{"deposit": 0.5}, {"py": 0.0}, {"py": -3.0}])
def test_non_candidate_hits_do_not_count(make_hit, kw):
    hits = [make_hit(y=7005.0), make_hit(y=7015.0), make_hit(y=7025.0, **kw)]
    assert not passes_layer_cut(hits, BOUNDS)


def test_bounds_are_strict_and_layers_deduplicated(make_hit):
    hits = [make_hit(y=7005.0), make_hit(y=7006.0), make_hit(y=7010.0), make_hit(y=7025.0)]
    assert layers_crossed(hits, BOUNDS) == [0, 2]
    assert not passes_layer_cut(hits, BOUNDS)


def test_savecut_off_converts_unconditionally(make_hit):
    hits = [make_hit(y=1.0, chamber="3")]
    cols = hits_to_cut_columns(hits, BOUNDS, savecut=False)
    assert all(len(c) == 1 for c in cols)
    cols = hits_to_cut_columns(hits, BOUNDS, savecut=True)
    assert all(len(c) == 0 for c in cols)


def test_cut_diagnostics(make_hit):
    diag = CutDiagnostics()
    good = [make_hit(y=7005.0), make_hit(y=7015.0), make_hit(y=7025.0)]
    bad = [make_hit(y=7005.0), make_hit(y=0.0)]
    assert passes_layer_cut(good, BOUNDS, diag=diag)
    assert not passes_layer_cut(bad, BOUNDS, diag=diag)
    assert (diag.events_in, diag.accepted, diag.rejected) == (2, 1, 1)
    assert diag.candidate_hits == 4
    assert diag.layer_counts == {3: 1, 1: 1}


def test_malformed_bounds(make_hit):
    with pytest.raises(ValueError):
        passes_layer_cut([make_hit(y=7005.0)], [[7000.0, 7010.0, 7020.0]])
