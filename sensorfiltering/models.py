"""
sensorfiltering/models.py

Data containers for the scalar smoothing pipeline.
All containers are frozen; a run never mutates a loaded sample or record.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Sample:
    """One channel's reading at one step. `variance` is a variance, not a std."""
    time: float
    value: float
    variance: float

    def __post_init__(self):
        if not self.variance >= 0.0:
            raise ValueError(f"Sample variance must be >= 0, got {self.variance}")


@dataclass(frozen=True)
class AlignedRecord:
    time: float
    channel_values: Mapping[str, Sample] = field(default_factory=dict)

    def __post_init__(self):
        # read-only view so a record cannot be edited after alignment
        object.__setattr__(self, "channel_values", MappingProxyType(dict(self.channel_values)))

    def sample(self, channel: str) -> Sample:
        return self.channel_values[channel]


@dataclass(frozen=True)
class Belief:
    """Per-channel filter state: (mean, variance)."""
    mean: float
    variance: float

    def __post_init__(self):
        if not self.variance >= 0.0:
            raise ValueError(f"Belief variance must be >= 0, got {self.variance}")

    @property
    def std(self) -> float:
        return self.variance ** 0.5


@dataclass(frozen=True)
class Estimate:
    time: float
    mean: float
    variance: float

    @property
    def std(self) -> float:
        return self.variance ** 0.5


@dataclass(frozen=True)
class Gain:
    time: float
    gain: float
