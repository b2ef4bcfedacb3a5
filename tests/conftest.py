from __future__ import annotations
from pathlib import Path

import pytest


def write_lines(path: Path, lines) -> Path:
    path.write_text("\n".join(str(x) for x in lines) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def odometry_files(tmp_path):
    """Three headerless 3-row files: time, wheel speed, gyro rate."""
    return {
        "time": write_lines(tmp_path / "time.csv", [0.0, 0.1, 0.2]),
        "wheel": write_lines(tmp_path / "u_wheel.csv", [1.0, 1.1, 1.2]),
        "gyro": write_lines(tmp_path / "u_gyro.csv", [0.0, 0.01, 0.02]),
    }


@pytest.fixture
def bmp280_file(tmp_path):
    return write_lines(tmp_path / "BMP280_input.txt", [
        "# simulated log",
        "pressure,p_std,temp,t_std",
        "101325.0,0.81,23.2,0.000009",
        "# comment between rows",
        "101326.0,0.81,23.3,0.000009",
        "101324.0,0.81,23.1,0.000009",
    ])


@pytest.fixture
def write_csv(tmp_path):
    def _write(name: str, lines) -> Path:
        return write_lines(tmp_path / name, lines)
    return _write
