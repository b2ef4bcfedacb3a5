# sensorfiltering/errors.py
"""
Failure kinds of the smoothing pipeline.

Every error is detected at load/validation time (or at a degenerate update)
and propagates up to the orchestrator, which aborts the whole run.
"""
from __future__ import annotations
from typing import Mapping, Optional


class FilterError(Exception):
    """Base class for all pipeline failures."""


class SourceUnavailable(FilterError):
    def __init__(self, source: str, reason: str):
        self.source = str(source)
        self.reason = reason
        super().__init__(f"cannot open source {self.source}: {reason}")


class ParseError(FilterError):
    """A required numeric field is missing or not a number.

    `row` is the 0-based data row (comments and header excluded), or None when
    the column itself is absent from the source.
    """

    def __init__(self, source: str, row: Optional[int], field, raw=None, reason: str = "not a valid number"):
        self.source = str(source)
        self.row = row
        self.field = field
        self.raw = raw
        self.reason = reason
        where = f"row {row}" if row is not None else "header"
        super().__init__(f"{self.source}: {where}, field '{field}': {reason} (got {raw!r})")


class AlignmentError(FilterError):
    """Per-channel sample counts disagree. `counts` holds every channel."""

    def __init__(self, counts: Mapping[str, int]):
        self.counts = dict(counts)
        detail = ", ".join(f"{k}={v}" for k, v in self.counts.items())
        super().__init__(f"channel lengths disagree: {detail}")


class DegenerateUpdate(FilterError):
    """Predicted and measurement variance are both zero; the gain is undefined."""

    def __init__(self, channel: Optional[str], time: Optional[float],
                 prior_variance: float = 0.0, measurement_variance: float = 0.0):
        self.channel = channel
        self.time = time
        self.prior_variance = prior_variance
        self.measurement_variance = measurement_variance
        super().__init__(
            f"degenerate update on channel '{channel}' at t={time}: "
            f"predicted variance {prior_variance} + measurement variance {measurement_variance} = 0"
        )


class OutOfRange(FilterError, IndexError):
    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(f"record index {index} out of range for series of length {length}")
