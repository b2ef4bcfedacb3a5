# sensorfiltering/adapter.py
"""
Channel loader: turns delimited text sources into per-channel Sample lists
and, for a configured dataset, into an AlignedSeries for the run driver.

Two source layouts are handled:
  (a) headerless, one bare float per row (time.csv, u_wheel.csv, u_gyro.csv,
      theta_bt.csv) or a few bare columns per row (r_zw_t.csv: x, y);
  (b) header-bearing tables with named columns, e.g. BMP280 logs
      `pressure, p_std, temp, t_std[, time]` with '#' comment lines.

The paired uncertainty column is read as a variance (p_std/t_std in the
BMP280 logs are variances despite the name); set `uncertainty_is_std` to
square a genuine standard deviation column instead.

Loads are all-or-nothing: the first bad row aborts with ParseError, an
unreadable file with SourceUnavailable.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from sensorfiltering.align import AlignedSeries, align
from sensorfiltering.errors import ParseError, SourceUnavailable
from sensorfiltering.models import Sample
from tools.logging_gate import _log

Column = Union[str, int]

# -----------------------------
# Schemas
# -----------------------------

@dataclass(frozen=True)
class ColumnSchema:
    value: Column
    variance: Optional[Column] = None
    fallback_variance: Optional[float] = None
    uncertainty_is_std: bool = False

    def __post_init__(self):
        if self.variance is None and self.fallback_variance is None:
            raise ValueError(f"column '{self.value}': no uncertainty column and no fallback_variance")
        if self.fallback_variance is not None and not float(self.fallback_variance) >= 0.0:
            raise ValueError(f"column '{self.value}': fallback_variance must be >= 0, got {self.fallback_variance}")


@dataclass(frozen=True)
class SourceOptions:
    header: bool = False
    comment: Optional[str] = None
    delimiter: str = ","
    time_column: Optional[Column] = None   # used when present in the file
    time_step: Optional[float] = None      # otherwise t_i = i * time_step

# -----------------------------
# Raw reading
# -----------------------------

def _read_frame(path: Path, options: SourceOptions) -> pd.DataFrame:
    try:
        df = pd.read_csv(
            path,
            header=0 if options.header else None,
            sep=options.delimiter,
            comment=options.comment,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            skipinitialspace=True,
        )
    except FileNotFoundError as e:
        raise SourceUnavailable(path, "file not found") from e
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except UnicodeDecodeError as e:
        raise ParseError(path, None, "*", reason=f"undecodable text ({e})") from e
    except pd.errors.ParserError as e:
        raise ParseError(path, None, "*", reason=f"malformed table ({e})") from e
    except OSError as e:
        raise SourceUnavailable(path, str(e)) from e
    if options.header:
        df.columns = [str(c).strip() for c in df.columns]
    return df


def _resolve_column(df: pd.DataFrame, col: Column, path: Path):
    if col in df.columns:
        return col
    # positional access into a header-bearing table
    if isinstance(col, int) and 0 <= col < len(df.columns):
        return df.columns[col]
    raise ParseError(path, None, col, reason="column not found")


def _numeric_column(df: pd.DataFrame, col: Column, path: Path) -> np.ndarray:
    key = _resolve_column(df, col, path)
    raw = df[key]
    vals = pd.to_numeric(raw.str.strip(), errors="coerce").to_numpy(dtype=float)
    bad = ~np.isfinite(vals)
    if bad.any():
        row = int(np.flatnonzero(bad)[0])
        raise ParseError(path, row, col, raw=raw.iloc[row])
    return vals


def _times(df: pd.DataFrame, n: int, options: SourceOptions, path: Path) -> np.ndarray:
    if options.time_column is not None and options.time_column in df.columns:
        return _numeric_column(df, options.time_column, path)
    step = options.time_step if options.time_step is not None else 1.0
    return np.arange(n, dtype=float) * float(step)

# -----------------------------
# Public loaders
# -----------------------------

def load_table(source: Union[str, Path], schemas: Mapping[str, ColumnSchema],
               options: SourceOptions = SourceOptions()) -> Dict[str, List[Sample]]:
    """Read one source once and build a Sample list per named channel."""
    path = Path(source)
    df = _read_frame(path, options)
    if df.empty and len(df.columns) == 0:
        return {name: [] for name in schemas}

    n = len(df)
    t = _times(df, n, options, path)
    out: Dict[str, List[Sample]] = {}
    for name, sch in schemas.items():
        z = _numeric_column(df, sch.value, path)
        if sch.variance is not None:
            r = _numeric_column(df, sch.variance, path)
            if sch.uncertainty_is_std:
                r = r ** 2
            neg = np.flatnonzero(r < 0.0)
            if neg.size:
                row = int(neg[0])
                raise ParseError(path, row, sch.variance, raw=df[_resolve_column(df, sch.variance, path)].iloc[row],
                                 reason="negative variance")
        else:
            r = np.full(n, float(sch.fallback_variance))
        out[name] = [Sample(time=float(t[i]), value=float(z[i]), variance=float(r[i])) for i in range(n)]
    return out


def load_channel(source: Union[str, Path], schema: ColumnSchema,
                 options: SourceOptions = SourceOptions()) -> List[Sample]:
    """Ordered Samples, one per data row, for a single channel."""
    return load_table(source, {"_": schema}, options)["_"]

# -----------------------------
# Config-driven datasets
# -----------------------------

def schema_from_config(ch_cfg: Mapping[str, Any], default_column: Column = 0) -> ColumnSchema:
    fb = ch_cfg.get("fallback_variance")
    return ColumnSchema(
        value=ch_cfg.get("value", default_column),
        variance=ch_cfg.get("variance"),
        fallback_variance=float(fb) if fb is not None else None,
        uncertainty_is_std=bool(ch_cfg.get("uncertainty_is_std", False)),
    )


def _options_from_config(ds_cfg: Mapping[str, Any], time_step: Optional[float]) -> SourceOptions:
    return SourceOptions(
        header=bool(ds_cfg.get("header", False)),
        comment=ds_cfg.get("comment"),
        delimiter=str(ds_cfg.get("delimiter", ",")),
        time_column=ds_cfg.get("time_column"),
        time_step=time_step,
    )


def load_dataset(ds_cfg: Mapping[str, Any], time_step: Optional[float] = None) -> AlignedSeries:
    """Load every channel of a `datasets.<name>` config block and align them.

    A block with a top-level `source` is one table holding all channels.
    Otherwise each channel names its own `source`, and an optional `time`
    block names the dedicated time file.
    """
    options = _options_from_config(ds_cfg, time_step)
    ch_cfgs: Mapping[str, Mapping[str, Any]] = ds_cfg.get("channels", {})
    if not ch_cfgs:
        raise ValueError("dataset has no channels configured")

    if ds_cfg.get("source"):
        path = Path(ds_cfg["source"])
        schemas = {name: schema_from_config(c) for name, c in ch_cfgs.items()}
        channels = load_table(path, schemas, options)
        _log("INFO", f"[ADPT] {path.name}: {len(next(iter(channels.values())))} rows | channels={list(channels)}")
        return align(channels)

    # one file per channel (several channels may share a multi-column file)
    by_source: Dict[str, Dict[str, ColumnSchema]] = {}
    time_name = None
    tcfg = ds_cfg.get("time")
    if tcfg:
        time_name = str(tcfg.get("name", "time"))
        by_source.setdefault(str(tcfg["source"]), {})[time_name] = ColumnSchema(
            value=tcfg.get("column", 0), fallback_variance=0.0)
    for name, c in ch_cfgs.items():
        if "source" not in c:
            raise ValueError(f"channel '{name}' has no source")
        by_source.setdefault(str(c["source"]), {})[name] = schema_from_config(c, c.get("column", 0))

    loaded: Dict[str, List[Sample]] = {}
    for src, schemas in by_source.items():
        part = load_table(src, schemas, options)
        _log("INFO", f"[ADPT] {Path(src).name}: {len(next(iter(part.values())))} rows | channels={list(part)}")
        loaded.update(part)

    # keep time channel first, then channels in config order
    ordered: Dict[str, List[Sample]] = {}
    if time_name is not None:
        ordered[time_name] = loaded[time_name]
    for name in ch_cfgs:
        ordered[name] = loaded[name]
    return align(ordered, time_channel=time_name)
