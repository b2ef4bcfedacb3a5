"""
Run driver for the scalar smoother (forward pass).
- Folds an AlignedSeries through one ScalarKalmanFilter per channel
- Collects the per-step estimates and gains into an immutable EstimateHistory
- run_dataset(): config-driven load -> align -> run for one named dataset
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from sensorfiltering.adapter import load_dataset
from sensorfiltering.align import AlignedSeries
from sensorfiltering.kf_scalar import ScalarKalmanFilter
from sensorfiltering.models import Belief, Estimate, Gain
from tools.logging_gate import _log


class EstimateHistory:
    """Read-only per-channel estimate and gain history of one run."""

    def __init__(self, estimates: Mapping[str, Tuple[Estimate, ...]], gains: Mapping[str, Tuple[Gain, ...]]):
        self._estimates = MappingProxyType({k: tuple(v) for k, v in estimates.items()})
        self._gains = MappingProxyType({k: tuple(v) for k, v in gains.items()})

    @property
    def channels(self) -> Tuple[str, ...]:
        return tuple(self._estimates)

    def estimates(self, channel: str) -> Tuple[Estimate, ...]:
        return self._estimates[channel]

    def gains(self, channel: str) -> Tuple[Gain, ...]:
        return self._gains[channel]

    def __len__(self) -> int:
        if not self._estimates:
            return 0
        return len(next(iter(self._estimates.values())))

    def to_frame(self) -> pd.DataFrame:
        """One row per step: time, <ch>_mean, <ch>_var, <ch>_std, <ch>_gain."""
        cols: Dict[str, Any] = {}
        chans = self.channels
        if chans:
            cols["time"] = [e.time for e in self._estimates[chans[0]]]
        for ch in chans:
            est = self._estimates[ch]
            var = np.array([e.variance for e in est], dtype=float)
            cols[f"{ch}_mean"] = [e.mean for e in est]
            cols[f"{ch}_var"] = var
            cols[f"{ch}_std"] = np.sqrt(var)
            cols[f"{ch}_gain"] = [g.gain for g in self._gains[ch]]
        return pd.DataFrame(cols)


@dataclass(frozen=True)
class RunResult:
    final_beliefs: Mapping[str, Belief]
    history: EstimateHistory


def run_forward(series: AlignedSeries,
                initial_beliefs: Mapping[str, Belief],
                process_noise: Optional[Mapping[str, float]] = None,
                policy: str = "raise") -> RunResult:
    """
    Predict then update for every record, every channel, in order.

    Args:
        series: aligned records (fully materialized).
        initial_beliefs: configured (mean, variance) guess per channel.
        process_noise: per-channel variance increment per step (default 0).
        policy: degenerate-update policy, "raise" or "propagate".

    Returns:
        RunResult with the final belief per channel and the full history.
    """
    missing = [ch for ch in series.channels if ch not in initial_beliefs]
    if missing:
        raise ValueError(f"no initial belief for channel(s): {missing}")
    q = dict(process_noise or {})

    filters = {ch: ScalarKalmanFilter(ch, initial_beliefs[ch], q.get(ch, 0.0), policy)
               for ch in series.channels}
    for rec in series:
        for ch, kf in filters.items():
            s = rec.channel_values[ch]
            kf.step(rec.time, s.value, s.variance)

    history = EstimateHistory({ch: kf.estimates for ch, kf in filters.items()},
                              {ch: kf.gains for ch, kf in filters.items()})
    final = MappingProxyType({ch: kf.belief for ch, kf in filters.items()})
    return RunResult(final_beliefs=final, history=history)

# -----------------------------
# Config helpers
# -----------------------------

def beliefs_from_config(ds_cfg: Mapping[str, Any]) -> Dict[str, Belief]:
    out: Dict[str, Belief] = {}
    for name, c in ds_cfg.get("channels", {}).items():
        if "initial_mean" not in c or "initial_variance" not in c:
            raise ValueError(f"channel '{name}': initial_mean and initial_variance are required")
        out[name] = Belief(float(c["initial_mean"]), float(c["initial_variance"]))
    return out


def process_noise_from_config(ds_cfg: Mapping[str, Any]) -> Dict[str, float]:
    return {name: float(c.get("process_noise", 0.0)) for name, c in ds_cfg.get("channels", {}).items()}


def run_dataset(cfg: Mapping[str, Any], name: str, max_epochs: Optional[int] = None) -> Tuple[AlignedSeries, RunResult]:
    """Load, align and smooth one dataset from `cfg['datasets'][name]`."""
    datasets = cfg.get("datasets", {})
    if name not in datasets:
        raise KeyError(f"dataset '{name}' not configured (have: {list(datasets)})")
    ds_cfg = datasets[name]
    fcfg = cfg.get("filter", {})
    time_step = fcfg.get("time_step_s")
    policy = str(fcfg.get("degenerate_policy", "raise"))

    series = load_dataset(ds_cfg, float(time_step) if time_step is not None else None)
    if max_epochs is not None:
        series = series.truncate(int(max_epochs))
        _log("INFO", f"[CFG ] Truncated to first {max_epochs} records via max_epochs")
    _log("INFO", f"[RUN ] {name}: {len(series)} records | channels={list(series.channels)} | policy={policy}")

    result = run_forward(series, beliefs_from_config(ds_cfg), process_noise_from_config(ds_cfg), policy)

    for ch in result.history.channels:
        b = result.final_beliefs[ch]
        _log("INFO", f"[SUM ] {name}/{ch}: final mean={b.mean:.6g} var={b.variance:.3e}")
    gains_head = {ch: [round(g.gain, 4) for g in result.history.gains(ch)[:5]] for ch in result.history.channels}
    _log("DEBUG", f"[GAIN] head: {gains_head}")
    return series, result
