# src/mutracking/physics/collection.py
from __future__ import annotations
from collections.abc import Sequence
import sys
from typing import TYPE_CHECKING, Iterator, List, Optional, TextIO, overload

from .hits import Hit, format_hit

if TYPE_CHECKING:  # pragma: no cover
    from .pool import HitPool


class HitCollection(Sequence):
    """
    Ordered hits of one event, in detection order.

    The collection is owned by the event being processed; converters and
    filters only read it. Only the owner calls release() once the event's
    export is done.
    """

    def __init__(self, detector_name: str = "", collection_name: str = "hits", event_id: int = -1) -> None:
        self.detector_name = detector_name
        self.collection_name = collection_name
        self.event_id = event_id
        self._hits: List[Hit] = []

    def insert(self, hit: Hit) -> int:
        self._hits.append(hit)
        return len(self._hits)

    def entries(self) -> int:
        return len(self._hits)

    @overload
    def __getitem__(self, i: int) -> Hit: ...
    @overload
    def __getitem__(self, i: slice) -> List[Hit]: ...
    def __getitem__(self, i):
        return self._hits[i]

    def __len__(self) -> int:
        return len(self._hits)

    def __iter__(self) -> Iterator[Hit]:
        return iter(self._hits)

    def release(self, pool: Optional["HitPool"] = None) -> None:
        """Drop all hits, returning their storage to `pool` when given."""
        if pool is not None:
            for hit in self._hits:
                pool.release(hit)
        self._hits.clear()

    def format(self, event_id: Optional[int] = None) -> str:
        return format_collection(self, self.event_id if event_id is None else event_id)

    def print(self, event_id: Optional[int] = None, file: TextIO | None = None) -> None:
        (file or sys.stdout).write(self.format(event_id))


def format_collection(hits: Sequence[Hit], event_id: int) -> str:
    """
    Render an event header box followed by one line per hit, with a dashed
    rule wherever the track id changes. Empty collections render as "".
    """
    count = len(hits)
    if not count:
        return ""

    boxside = "-" * (25 + len(str(event_id)) + len(str(count)))
    lines = ["", "", boxside, f"| Event: {event_id} | Hit Count: {count} |", boxside]

    track_id = None
    for i, hit in enumerate(hits):
        line = format_hit(hit)
        if i != 0 and hit.track_id != track_id:
            lines.append("-" * len(line))
        track_id = hit.track_id
        lines.append(line)
    return "\n".join(lines) + "\n\n"
