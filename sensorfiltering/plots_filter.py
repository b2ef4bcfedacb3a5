from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional
import numpy as np
import matplotlib.pyplot as plt
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from sensorfiltering.align import AlignedSeries
from sensorfiltering.run_filter import EstimateHistory

# --- Styling helpers ---
COL_MEAS = "#d62728"  # red, drawn translucent
COL_EST = "#111111"
COL_BAND = "#1f77b4"  # blue


def save_estimates_csv(history: EstimateHistory, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    history.to_frame().to_csv(path, index=False)
    return path


def _channel_arrays(series: AlignedSeries, history: EstimateHistory, ch: str, base: float):
    t = np.array(series.times(), dtype=float)
    z = np.array(series.values(ch), dtype=float) - base
    est = history.estimates(ch)
    m = np.array([e.mean for e in est], dtype=float) - base
    s = np.sqrt(np.array([e.variance for e in est], dtype=float))
    return t, z, m, s


def plot_estimates(series: AlignedSeries, history: EstimateHistory, out_dir: Path, title: str,
                   units: Optional[Mapping[str, str]] = None,
                   baselines: Optional[Mapping[str, float]] = None) -> Path:
    """Measurements, estimated mean and ±1σ band vs time, one panel per channel.
    PNG (matplotlib) + HTML (plotly). Channels with a baseline are drawn as deviations."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    units = units or {}
    baselines = baselines or {}
    chans = history.channels

    def _ylabel(ch):
        lbl = f"{ch} deviation" if ch in baselines else ch
        return f"{lbl} [{units[ch]}]" if ch in units else lbl

    # Static PNG
    fig, axs = plt.subplots(len(chans), 1, figsize=(9, 3.2 * len(chans)), sharex=True, squeeze=False)
    for ax, ch in zip(axs[:, 0], chans):
        t, z, m, s = _channel_arrays(series, history, ch, float(baselines.get(ch, 0.0)))
        ax.plot(t, z, color=COL_MEAS, alpha=0.3, lw=1.0, label="Measured")
        ax.plot(t, m, color=COL_EST, lw=1.6, label="Estimated mean")
        ax.fill_between(t, m - s, m + s, color=COL_BAND, alpha=0.25, label="±1σ")
        ax.set_ylabel(_ylabel(ch))
        ax.grid(True, alpha=.35)
        ax.legend(loc="upper right", frameon=False)
    axs[-1, 0].set_xlabel("Time [s]")
    fig.suptitle(f"Scalar Kalman smoother - {title}")
    fig.tight_layout()
    png = out_dir / f"{title}_estimates.png"
    fig.savefig(png, dpi=150, bbox_inches="tight")
    plt.close(fig)

    # Interactive HTML
    figi = make_subplots(rows=len(chans), cols=1, shared_xaxes=True, vertical_spacing=0.04,
                         subplot_titles=[_ylabel(ch) for ch in chans])
    for i, ch in enumerate(chans, start=1):
        t, z, m, s = _channel_arrays(series, history, ch, float(baselines.get(ch, 0.0)))
        figi.add_trace(go.Scatter(x=t, y=z, name=f"{ch} measured", opacity=0.35,
                                  line=dict(color=COL_MEAS)), row=i, col=1)
        figi.add_trace(go.Scatter(x=t, y=m + s, line=dict(width=0), showlegend=False, hoverinfo="skip"),
                       row=i, col=1)
        figi.add_trace(go.Scatter(x=t, y=m - s, name=f"{ch} ±1σ", fill="tonexty", line=dict(width=0),
                                  fillcolor="rgba(31,119,180,0.25)"), row=i, col=1)
        figi.add_trace(go.Scatter(x=t, y=m, name=f"{ch} estimate", line=dict(color=COL_EST, width=2)),
                       row=i, col=1)
    figi.update_layout(height=320 * len(chans), width=1000,
                       title_text=f"Scalar Kalman smoother - {title}", margin=dict(l=60, r=20, t=60, b=40))
    figi.write_html(str(out_dir / f"{title}_estimates.html"), include_plotlyjs="cdn")
    return png


def plot_gains(history: EstimateHistory, out_dir: Path, title: str) -> Path:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    fig, ax = plt.subplots(figsize=(9, 3.5))
    for ch in history.channels:
        g = history.gains(ch)
        ax.plot([x.time for x in g], [x.gain for x in g], lw=1.4, label=ch)
    ax.set_xlabel("Time [s]"); ax.set_ylabel("Kalman gain [-]"); ax.set_ylim(-0.02, 1.02)
    ax.grid(True, alpha=.35); ax.legend(frameon=False)
    ax.set_title(f"Kalman gain - {title}")
    fig.tight_layout()
    png = out_dir / f"{title}_gains.png"
    fig.savefig(png, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return png
