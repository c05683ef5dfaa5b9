import pytest

from mutracking.io.settings import (
    SimSetting,
    indexed_settings,
    load_settings,
    prefixed_settings,
    save_setting,
    save_settings,
    settings,
    settings_from_lists,
)


def test_settings_pairs():
    assert settings("A", "1", "B", "2") == [("A", "1"), ("B", "2")]


def test_settings_with_leading_prefix():
    assert settings("pfx_", "A", "1", "B", "2") == [("pfx_A", "1"), ("pfx_B", "2")]
    assert prefixed_settings("pfx_", "A", "1") == [("pfx_A", "1")]


def test_indexed_settings():
    assert indexed_settings("X", ["a", "b"], 3) == [("X3", "a"), ("X4", "b")]
    assert indexed_settings("X", []) == []


def test_parallel_lists_degenerate_cases_are_empty():
    assert settings_from_lists(["A"], []) == []
    assert settings_from_lists([], []) == []
    assert settings_from_lists(["A", "B"], ["1"]) == []
    assert settings_from_lists(["A", "B"], ["1", "2"], prefix="p_") == [("p_A", "1"), ("p_B", "2")]


def test_duplicates_keep_declaration_order():
    out = settings("A", "1", "A", "2")
    assert [s.text for s in out] == ["1", "2"]


def test_odd_argument_count_reads_first_as_prefix():
    assert settings("A", "1", "B") == [("A1", "B")]
    with pytest.raises(ValueError):
        settings("pfx_")


def test_unpaired_arguments_raise():
    with pytest.raises(ValueError):
        settings("A")
    with pytest.raises(ValueError):
        prefixed_settings("p_", "A", "1", "B")


def test_save_and_load_settings(tmp_path):
    path = tmp_path / "run.settings"
    assert save_settings(path, settings("A", "1", "B", "two words"))
    assert save_setting(path, SimSetting("C", "x: y"))
    assert path.read_text().splitlines() == ["A: 1", "B: two words", "C: x: y"]
    assert load_settings(path) == [("A", "1"), ("B", "two words"), ("C", "x: y")]
