# tools/logging_gate.py
"""
Level-gated console logger shared by the loader, the run driver and the
orchestrator. Threshold comes from config `logging.level` (or env LOG_LEVEL).
"""
from __future__ import annotations
import os

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}

LOG_LEVEL = str(os.environ.get("LOG_LEVEL", "INFO")).upper()


def set_log_level(level: str) -> None:
    global LOG_LEVEL
    lvl = str(level).upper()
    if lvl not in _LEVELS:
        raise ValueError(f"Unknown log level '{level}' (expected one of {list(_LEVELS)})")
    LOG_LEVEL = lvl


def _log(level: str, msg: str):
    if _LEVELS.get(level, 20) >= _LEVELS.get(LOG_LEVEL, 20):
        print(msg)
