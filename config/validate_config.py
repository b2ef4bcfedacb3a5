# config/validate_config.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List

from config.loader import load_config

REQ_PATH_KEYS = ["data_root", "tracks_out", "plots_out"]
POLICIES = ("raise", "propagate")


def _nonneg(x: Any) -> bool:
    try:
        return float(x) >= 0.0
    except (TypeError, ValueError):
        return False


def validate_config(cfg: Dict[str, Any]) -> List[str]:
    """Return a list of problems; empty means the config is usable."""
    problems: List[str] = []

    for k in REQ_PATH_KEYS:
        v = cfg.get("paths", {}).get(k)
        if v is None:
            problems.append(f"paths.{k} missing")
        elif "{" in str(v) or "}" in str(v):
            problems.append(f"Unresolved placeholder in paths.{k}: {v}")

    fcfg = cfg.get("filter", {})
    ts = fcfg.get("time_step_s")
    if ts is not None and not (_nonneg(ts) and float(ts) > 0.0):
        problems.append(f"filter.time_step_s must be > 0, got {ts!r}")
    pol = fcfg.get("degenerate_policy", "raise")
    if pol not in POLICIES:
        problems.append(f"filter.degenerate_policy must be one of {POLICIES}, got {pol!r}")

    datasets = cfg.get("datasets", {})
    if not datasets:
        problems.append("no datasets configured")
    for name, ds in datasets.items():
        chans = ds.get("channels", {})
        if not chans:
            problems.append(f"datasets.{name}: no channels")
        multi_file = not ds.get("source")
        for ch, c in chans.items():
            where = f"datasets.{name}.channels.{ch}"
            for key in ("initial_mean", "initial_variance"):
                if key not in c:
                    problems.append(f"{where}.{key} missing")
            if "initial_variance" in c and not _nonneg(c["initial_variance"]):
                problems.append(f"{where}.initial_variance must be >= 0")
            if not _nonneg(c.get("process_noise", 0.0)):
                problems.append(f"{where}.process_noise must be >= 0")
            if c.get("variance") is None:
                if c.get("fallback_variance") is None:
                    problems.append(f"{where}: needs a variance column or fallback_variance")
                elif not _nonneg(c["fallback_variance"]):
                    problems.append(f"{where}.fallback_variance must be >= 0")
            if multi_file and not c.get("source"):
                problems.append(f"{where}.source missing")
    return problems


def main():
    cfg = load_config()
    print("[OK ] YAML loaded.")
    print(f"[OK ] project.root = {Path(cfg['project']['root']).resolve()}")

    problems = validate_config(cfg)
    for p in problems:
        print(f"[ERR ] {p}")
    if problems:
        raise SystemExit(1)
    print("[OK ] Type/range checks passed.")

    # Existence checks for every configured source
    for name, ds in cfg["datasets"].items():
        srcs = [ds.get("source"), ds.get("time", {}).get("source")]
        srcs += [c.get("source") for c in ds.get("channels", {}).values()]
        for s in sorted({s for s in srcs if s}):
            print(f"[CHK] {name:10s} -> {s} | exists={Path(s).exists()}")

    print("[DONE] Config validation complete.")


if __name__ == "__main__":
    main()
