# src/mutracking/io/settings.py
"""
Run settings: ordered (name, text) metadata pairs.

Builders
--------
settings("A", "1", "B", "2")               -> [("A","1"), ("B","2")]
prefixed_settings("pfx_", "A", "1")        -> [("pfx_A","1")]
settings_from_pairs([("A","1")])           -> [("A","1")]
settings_from_lists(["A"], ["1"])          -> [("A","1")]
indexed_settings("X", ["a","b"], 3)        -> [("X3","a"), ("X4","b")]

Unequal or empty parallel lists give an empty list, never an error.
"""
from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, NamedTuple, Sequence, Tuple


class SimSetting(NamedTuple):
    name: str
    text: str


SimSettingList = List[SimSetting]


def settings_from_pairs(pairs: Iterable[Tuple[str, str]], prefix: str = "") -> SimSettingList:
    return [SimSetting(prefix + str(name), str(text)) for name, text in pairs]


def _pairs(name_text: Sequence[str]) -> List[Tuple[str, str]]:
    if len(name_text) < 2 or len(name_text) % 2:
        raise ValueError(f"settings need name/text pairs, got {len(name_text)} strings")
    return list(zip(name_text[0::2], name_text[1::2]))


def settings(*args: str) -> SimSettingList:
    """
    Flat name/text arguments, taken two at a time. An odd argument count
    means the first argument is a prefix for every name:

        settings("A", "1", "B", "2")          -> [("A","1"), ("B","2")]
        settings("pfx_", "A", "1", "B", "2")  -> [("pfx_A","1"), ("pfx_B","2")]
    """
    if len(args) % 2:
        return prefixed_settings(args[0], *args[1:])
    return settings_from_pairs(_pairs(args))


def prefixed_settings(prefix: str, *name_text: str) -> SimSettingList:
    """Like settings(), with `prefix` prepended to every name."""
    return settings_from_pairs(_pairs(name_text), prefix)


def settings_from_lists(names: Sequence[str], texts: Sequence[str], prefix: str = "") -> SimSettingList:
    if len(names) != len(texts) or not names:
        return []
    return settings_from_pairs(zip(names, texts), prefix)


def indexed_settings(name: str, texts: Sequence[str], starting_index: int = 0, prefix: str = "") -> SimSettingList:
    """Number the texts: name + (starting_index + position)."""
    return [SimSetting(f"{prefix}{name}{starting_index + i}", str(text)) for i, text in enumerate(texts)]


def format_setting(entry: SimSetting) -> str:
    return f"{entry.name}: {entry.text}"


def save_settings(path: str | Path, entries: Iterable[SimSetting]) -> bool:
    """Append one "name: text" line per entry, in list order."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "a", encoding="utf-8") as f:
        for entry in entries:
            f.write(format_setting(entry) + "\n")
    return True


def save_setting(path: str | Path, entry: SimSetting) -> bool:
    return save_settings(path, [entry])


def load_settings(path: str | Path) -> SimSettingList:
    out: SimSettingList = []
    with open(path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.rstrip("\n")
            if not line:
                continue
            name, _, text = line.partition(": ")
            out.append(SimSetting(name, text))
    return out
