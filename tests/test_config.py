from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from config.loader import load_config
from config.validate_config import validate_config


def _write_cfg(tmp_path: Path, **over) -> Path:
    cfg = {
        "project": {"root": str(tmp_path), "run_id": None},
        "run_id": {"template": "{date}_{hash}", "date_format": "%Y%m%d"},
        "paths": {"data_root": "data", "exports_root": "exports",
                  "tracks_out": "{exports_root}/estimates", "plots_out": "{exports_root}/plots"},
        "logging": {"level": "INFO"},
        "filter": {"time_step_s": 0.1, "degenerate_policy": "raise"},
        "datasets": {"odometry": {
            "time": {"source": "{data_root}/time.csv"},
            "channels": {"wheel": {"source": "{data_root}/u_wheel.csv", "fallback_variance": 0.01,
                                   "initial_mean": 0.0, "initial_variance": 1.0}},
        }},
    }
    cfg.update(over)
    path = tmp_path / "pipeline.yaml"
    path.write_text(yaml.safe_dump(cfg, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in ("RUN_ID", "LOG_LEVEL", "MAX_EPOCHS", "PIPELINE_CFG", "PROJECT_ROOT"):
        monkeypatch.delenv(k, raising=False)


def test_paths_and_sources_resolved(tmp_path):
    cfg = load_config(_write_cfg(tmp_path))
    assert cfg["paths"]["tracks_out"] == str((tmp_path / "exports" / "estimates").resolve())
    ds = cfg["datasets"]["odometry"]
    assert ds["time"]["source"] == str((tmp_path / "data" / "time.csv").resolve())
    assert ds["channels"]["wheel"]["source"] == str((tmp_path / "data" / "u_wheel.csv").resolve())
    assert validate_config(cfg) == []


def test_run_id_generated_or_from_env(tmp_path, monkeypatch):
    path = _write_cfg(tmp_path)
    rid = load_config(path)["project"]["run_id"]
    assert rid and "{" not in rid
    monkeypatch.setenv("RUN_ID", "my_run")
    assert load_config(path)["project"]["run_id"] == "my_run"


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("MAX_EPOCHS", "7")
    cfg = load_config(_write_cfg(tmp_path))
    assert cfg["logging"]["level"] == "DEBUG"
    assert cfg["filter"]["max_epochs"] == 7


def test_pipeline_cfg_env(tmp_path, monkeypatch):
    monkeypatch.setenv("PIPELINE_CFG", str(_write_cfg(tmp_path)))
    assert load_config()["project"]["root"] == str(tmp_path.resolve())
    monkeypatch.setenv("PIPELINE_CFG", str(tmp_path / "missing.yaml"))
    with pytest.raises(FileNotFoundError):
        load_config()


def test_missing_explicit_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_shipped_config_is_valid():
    cfg = load_config(Path(__file__).resolve().parents[1] / "config" / "pipeline.yaml")
    assert validate_config(cfg) == []
    assert set(cfg["datasets"]) == {"bmp280", "odometry", "pose"}


def test_validation_catches_bad_values(tmp_path):
    cfg = load_config(_write_cfg(
        tmp_path,
        filter={"time_step_s": 0.0, "degenerate_policy": "nan"},
        datasets={"odometry": {
            "time": {"source": "t.csv"},
            "channels": {"wheel": {"source": "w.csv", "initial_mean": 0.0, "initial_variance": -1.0,
                                   "process_noise": -0.5}},
        }},
    ))
    problems = "\n".join(validate_config(cfg))
    assert "time_step_s" in problems
    assert "degenerate_policy" in problems
    assert "initial_variance" in problems
    assert "process_noise" in problems
    assert "fallback_variance" in problems
