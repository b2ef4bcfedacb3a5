"""
sensorfiltering/align.py

Positional join of per-channel sample sequences into synchronized records.

Records are joined by step index. Timestamps of the individual channel files
are NOT cross-checked: equal row counts are taken to mean synchronized rows,
and keeping the files in step is a precondition on the caller.
"""

from __future__ import annotations
import numbers
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from sensorfiltering.errors import AlignmentError, OutOfRange
from sensorfiltering.models import AlignedRecord, Sample


class AlignedSeries:
    """Immutable ordered sequence of AlignedRecord."""

    def __init__(self, records: Sequence[AlignedRecord], channels: Sequence[str]):
        self._records: Tuple[AlignedRecord, ...] = tuple(records)
        self._channels: Tuple[str, ...] = tuple(channels)

    @property
    def channels(self) -> Tuple[str, ...]:
        return self._channels

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[AlignedRecord]:
        return iter(self._records)

    def record(self, index: int) -> AlignedRecord:
        """Record at step `index`; negative or past-the-end indices raise OutOfRange."""
        if not isinstance(index, numbers.Integral) or index < 0 or index >= len(self._records):
            raise OutOfRange(index, len(self._records))
        return self._records[index]

    def first(self) -> AlignedRecord:
        return self.record(0)

    def last(self) -> AlignedRecord:
        return self.record(len(self._records) - 1)

    def times(self) -> List[float]:
        return [r.time for r in self._records]

    def values(self, channel: str) -> List[float]:
        return [r.channel_values[channel].value for r in self._records]

    def truncate(self, n: int) -> "AlignedSeries":
        if n < 0:
            raise ValueError(f"truncate length must be >= 0, got {n}")
        return AlignedSeries(self._records[:n], self._channels)

    def __repr__(self) -> str:
        return f"AlignedSeries(n={len(self)}, channels={list(self._channels)})"


def align(channels: Mapping[str, Sequence[Sample]], time_channel: Optional[str] = None) -> AlignedSeries:
    """Join per-channel sequences positionally.

    Args:
        channels: channel name -> samples, in source order. May include the
            dedicated time channel.
        time_channel: name of the channel whose sample *value* is the record
            time. If None, each record takes the time of the first
            measurement channel's sample.

    Raises:
        AlignmentError: lengths differ; carries the length of every channel.
    """
    if time_channel is not None and time_channel not in channels:
        raise ValueError(f"time channel '{time_channel}' not among channels {list(channels)}")
    meas_names = [name for name in channels if name != time_channel]
    if not meas_names:
        raise ValueError("align() needs at least one measurement channel")

    # time channel first in the diagnostic, then measurement channels in given order
    order = ([time_channel] if time_channel is not None else []) + meas_names
    counts: Dict[str, int] = {name: len(channels[name]) for name in order}
    if len(set(counts.values())) > 1:
        raise AlignmentError(counts)

    n = counts[order[0]]
    records: List[AlignedRecord] = []
    for i in range(n):
        vals = {name: channels[name][i] for name in meas_names}
        if time_channel is not None:
            t = float(channels[time_channel][i].value)
        else:
            t = float(vals[meas_names[0]].time)
        records.append(AlignedRecord(time=t, channel_values=vals))
    return AlignedSeries(records, meas_names)
