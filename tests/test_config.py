from pathlib import Path

import pytest
from pydantic import ValidationError

from mutracking.config.load import load_config, settings_path_for
from mutracking.config.schemas import Config


def _write(tmp_path, text):
    p = tmp_path / "run.toml"
    p.write_text(text)
    return p


def test_load_config_defaults_and_relative_paths(tmp_path):
    cfg = load_config(_write(tmp_path, """
[io]
steps_path = "steps.csv"
output_path = "out/run.h5"

[cut]
enabled = true
layer_bounds = [[1, 2], [2, 3]]
"""))
    assert cfg.io.steps_path == str(tmp_path.resolve() / "steps.csv")
    assert cfg.io.gen_particles_path is None
    assert cfg.io.table_name == "box_run"
    assert cfg.run.workers == 1 and cfg.run.diagnostics_level == 1
    assert cfg.cut.layer_bounds == [[1.0, 2.0], [2.0, 3.0]]
    assert (cfg.cut.min_layers, cfg.cut.min_deposit, cfg.cut.min_y) == (3, 0.5, 7000.0)
    assert cfg.chambers.mode == "parse"
    assert cfg.settings.extra_start == 11
    assert settings_path_for(cfg) == Path(cfg.io.output_path).with_suffix(".settings")


def test_explicit_settings_path_and_absolute_paths(tmp_path):
    steps = tmp_path / "elsewhere" / "steps.csv"
    cfg = load_config(_write(tmp_path, f"""
[run]
workers = "auto"

[io]
steps_path = "{steps.as_posix()}"
output_path = "run.h5"
settings_path = "meta.txt"
"""))
    assert cfg.run.workers == "auto"
    assert cfg.io.steps_path == steps.as_posix()
    assert settings_path_for(cfg) == tmp_path.resolve() / "meta.txt"


@pytest.mark.parametrize("section", [
    {"run": {"diagnostics_level": 3}},
    {"run": {"workers": 0}},
    {"cut": {"layer_bounds": [[1, 2, 3]]}},
    {"chambers": {"mode": "guess"}},
    {"io": {"steps_path": "s.csv", "output_path": "o.h5", "length_unit": "inch"}},
])
def test_invalid_config(section):
    data = {"io": {"steps_path": "s.csv", "output_path": "o.h5"}}
    data.update(section)
    with pytest.raises(ValidationError):
        Config(**data)


def test_io_section_required():
    with pytest.raises(ValidationError):
        Config()
