# config/loader.py
from __future__ import annotations
from pathlib import Path
import os, re, yaml
from typing import Any, Dict
import datetime, uuid

_DEFAULT_CFG_ENV = "PIPELINE_CFG"  # absolute or relative path override
_DEFAULT_CFG_PATHS = [
    Path("config/pipeline.yaml"),                              # CWD-based
    Path(__file__).resolve().parent / "pipeline.yaml",          # alongside loader.py
]

_PLACEHOLDER_RX = re.compile(r"\{([a-zA-Z0-9_]+)\}")

def _proj_root() -> Path:
    return Path(os.environ.get("PROJECT_ROOT", Path(__file__).resolve().parents[1]))

def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def _resolve_placeholders(s: str, mapping: Dict[str, str]) -> str:
    def repl(m):
        key = m.group(1)
        return str(mapping.get(key, m.group(0)))
    return _PLACEHOLDER_RX.sub(repl, s)

def _abs(p: str, root: Path) -> str:
    pp = Path(p)
    return str(pp if pp.is_absolute() else (root / pp).resolve())

def _make_run_id(cfg: dict) -> str:
    """Generate a RUN_ID from the run_id template."""
    rcfg = cfg.get("run_id", {})
    tmpl = rcfg.get("template", "{date}_{hash}")
    stamp = datetime.datetime.now(datetime.timezone.utc).strftime(rcfg.get("date_format", "%Y%m%dT%H%M%SZ"))
    # short hash from uuid
    h = uuid.uuid4().hex[:8]
    return tmpl.format(date=stamp, hash=h)

def load_config(path: str | Path | None = None) -> Dict[str, Any]:
    # 0) explicit path provided
    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found at explicit path: {path}")
    # 1) ENV override
    elif os.environ.get(_DEFAULT_CFG_ENV):
        env_path = os.environ[_DEFAULT_CFG_ENV]
        path = Path(env_path)
        if not path.exists():
            raise FileNotFoundError(f"PIPELINE_CFG set to '{env_path}' but file not found")
    else:
        # 2) search default candidates
        for cand in _DEFAULT_CFG_PATHS:
            if cand.exists():
                path = cand
                break
        if path is None:
            searched = "\n".join(str(p) for p in _DEFAULT_CFG_PATHS)
            raise FileNotFoundError(
                "Could not locate pipeline.yaml.\n"
                f"Searched:\n{searched}\n"
                "You can also set PIPELINE_CFG=/abs/path/to/pipeline.yaml"
            )
    cfg = _load_yaml(path)
    if os.environ.get("CFG_DEBUG") == "1":
        print(f"[CFG ] loaded: {path}")

    for sec in ("project", "paths", "logging", "filter", "datasets"):
        cfg.setdefault(sec, {})

    # Compute project root (auto unless overridden)
    root = Path(cfg["project"].get("root") or _proj_root()).resolve()
    cfg["project"]["root"] = str(root)

    # Base mapping for placeholders, then expand paths.* against it
    paths = cfg["paths"]
    mapping = {k: v for k, v in paths.items() if isinstance(v, str) and "{" not in v}
    for k, v in paths.items():
        if isinstance(v, str):
            paths[k] = _abs(_resolve_placeholders(v, mapping), root)
    mapping = {k: v for k, v in paths.items() if isinstance(v, str)}

    # Dataset sources: {data_root}/file.csv etc.
    for ds in cfg["datasets"].values():
        if ds.get("source"):
            ds["source"] = _abs(_resolve_placeholders(str(ds["source"]), mapping), root)
        if ds.get("time", {}).get("source"):
            ds["time"]["source"] = _abs(_resolve_placeholders(str(ds["time"]["source"]), mapping), root)
        for ch in ds.get("channels", {}).values():
            if ch.get("source"):
                ch["source"] = _abs(_resolve_placeholders(str(ch["source"]), mapping), root)

    # ENV overrides (soft): RUN_ID, LOG_LEVEL, MAX_EPOCHS
    rid = os.environ.get("RUN_ID")
    if rid:
        cfg["project"]["run_id"] = rid
    else:
        rid_yaml = cfg["project"].get("run_id")
        if not rid_yaml or str(rid_yaml).lower() == "null":
            new_rid = _make_run_id(cfg)
            cfg["project"]["run_id"] = new_rid
            if os.environ.get("CFG_DEBUG") == "1":
                print(f"[CFG ] generated RUN_ID={new_rid}")
        else:
            cfg["project"]["run_id"] = str(rid_yaml)
    me = os.environ.get("MAX_EPOCHS")
    if me:
        cfg["filter"]["max_epochs"] = int(me)
    ll = os.environ.get("LOG_LEVEL")
    if ll:
        cfg["logging"]["level"] = ll

    return cfg
