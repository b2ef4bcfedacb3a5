# orchestrator/main.py
"""
Orchestrator: config -> load/align -> scalar KF per channel -> summary, CSV, charts.

All selected datasets are estimated before anything is written, so a failing
dataset aborts the run with no partial output.

Run: python -m orchestrator.main [--dataset bmp280 odometry] [--no_plots]
"""

from __future__ import annotations
import argparse
from pathlib import Path
from typing import List, Optional

from config.loader import load_config
from config.validate_config import validate_config
from sensorfiltering.errors import FilterError
from sensorfiltering.formatting import summarize_run, summarize_series
from sensorfiltering.plots_filter import plot_estimates, plot_gains, save_estimates_csv
from sensorfiltering.run_filter import run_dataset
from tools.logging_gate import _log, set_log_level


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Scalar Kalman smoothing of aligned sensor channels.")
    ap.add_argument("--config", default=None, help="Path to pipeline.yaml (default: PIPELINE_CFG or config/pipeline.yaml).")
    ap.add_argument("--dataset", nargs="*", default=None,
                    help="Datasets to run (names under datasets: in the config). Default: all.")
    ap.add_argument("--out_dir", default=None,
                    help="Write CSV and charts here instead of <tracks_out>/<RUN_ID> and <plots_out>/<RUN_ID>.")
    ap.add_argument("--max_epochs", type=int, default=None, help="Truncate every dataset to its first N records.")
    ap.add_argument("--no_plots", action="store_true", help="Skip PNG/HTML charts.")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    CFG = load_config(args.config)
    set_log_level(CFG.get("logging", {}).get("level", "INFO"))
    RUN_ID = CFG["project"]["run_id"]
    _log("INFO", f"[INIT] scalar KF smoother | run_id={RUN_ID}")

    problems = validate_config(CFG)
    if problems:
        for p in problems:
            _log("ERROR", f"[ERR ] config: {p}")
        return 1

    names = args.dataset or list(CFG["datasets"])
    max_epochs = args.max_epochs if args.max_epochs is not None else CFG["filter"].get("max_epochs")

    # 1) Estimate everything first
    runs = {}
    try:
        for name in names:
            print(f"\n[STEP] {name}")
            runs[name] = run_dataset(CFG, name, max_epochs=max_epochs)
    except (FilterError, KeyError) as e:
        _log("ERROR", f"[ERR ] {name}: {e}")
        _log("ERROR", "[ERR ] run aborted; no outputs written")
        return 1

    # 2) Console summary + exports
    if args.out_dir:
        tracks_dir = plots_dir = Path(args.out_dir).resolve()
    else:
        tracks_dir = Path(CFG["paths"]["tracks_out"]) / RUN_ID
        plots_dir = Path(CFG["paths"]["plots_out"]) / RUN_ID

    for name, (series, result) in runs.items():
        ch_cfg = CFG["datasets"][name].get("channels", {})
        units = {ch: c["units"] for ch, c in ch_cfg.items() if c.get("units")}
        baselines = {ch: float(c["baseline"]) for ch, c in ch_cfg.items() if c.get("baseline") is not None}

        print(f"\n[DATA] {name}")
        print(summarize_series(series, units))
        print(summarize_run(result.final_beliefs, units))

        csv_path = save_estimates_csv(result.history, tracks_dir / f"{name}_estimates.csv")
        _log("INFO", f"[SAVE] {name}: estimates -> {csv_path}")
        if not args.no_plots and len(series):
            png = plot_estimates(series, result.history, plots_dir, name, units, baselines)
            gpng = plot_gains(result.history, plots_dir, name)
            _log("INFO", f"[SAVE] {name}: charts -> {png.name}, {gpng.name}")

    print(f"[DONE] Run complete | run_id={RUN_ID}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
