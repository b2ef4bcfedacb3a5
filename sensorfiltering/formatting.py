"""
sensorfiltering/formatting.py

Console text for samples, records and estimates. Pure functions over frozen
snapshots; units are passed in, never looked up.
"""
from __future__ import annotations
from typing import List, Mapping, Optional

from sensorfiltering.align import AlignedSeries
from sensorfiltering.models import AlignedRecord, Belief, Estimate, Sample


def _num(x: float) -> str:
    return f"{x:.15g}"


def _with_unit(x: float, unit: Optional[str]) -> str:
    return f"{_num(x)} {unit}" if unit else _num(x)


def format_sample(sample: Sample, unit: Optional[str] = None) -> str:
    return f"{_with_unit(sample.value, unit)} (var {_num(sample.variance)})"


def format_record(record: AlignedRecord, units: Optional[Mapping[str, str]] = None) -> str:
    """e.g. '0.1 s, 1.1 m/s, 0.01 rad/s'"""
    units = units or {}
    parts = [_with_unit(record.time, "s")]
    for ch, s in record.channel_values.items():
        parts.append(_with_unit(s.value, units.get(ch)))
    return ", ".join(parts)


def format_belief(belief: Belief, unit: Optional[str] = None) -> str:
    return f"{_with_unit(belief.mean, unit)} ± {_num(belief.std)}"


def format_estimate(est: Estimate, unit: Optional[str] = None) -> str:
    return f"{_with_unit(est.time, 's')}: {_with_unit(est.mean, unit)} ± {_num(est.std)}"


def summarize_series(series: AlignedSeries, units: Optional[Mapping[str, str]] = None) -> str:
    """Record count plus first and last records."""
    n = len(series)
    lines: List[str] = [f"{n} records | channels: {', '.join(series.channels)}"]
    if n == 0:
        return lines[0]
    lines.append(format_record(series.first(), units))
    if n > 1:
        lines.append("...")
        lines.append(format_record(series.last(), units))
    return "\n".join(lines)


def summarize_run(final_beliefs: Mapping[str, Belief], units: Optional[Mapping[str, str]] = None) -> str:
    units = units or {}
    return "\n".join(f"{ch}: {format_belief(b, units.get(ch))}" for ch, b in final_beliefs.items())
