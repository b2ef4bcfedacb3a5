from __future__ import annotations

import pytest

from sensorfiltering.align import align
from sensorfiltering.errors import AlignmentError, OutOfRange
from sensorfiltering.models import Sample


def _samples(values, var=0.0, dt=1.0):
    return [Sample(time=i * dt, value=v, variance=var) for i, v in enumerate(values)]


def _odometry(n_gyro=3):
    return {
        "time": _samples([0.0, 0.1, 0.2]),
        "wheel": _samples([1.0, 1.1, 1.2], var=0.01),
        "gyro": _samples([0.0, 0.01, 0.02][:n_gyro], var=1e-4),
    }


def test_equal_lengths_join_by_index():
    series = align(_odometry(), time_channel="time")
    assert len(series) == 3
    assert series.channels == ("wheel", "gyro")
    for i, rec in enumerate(series):
        assert rec.channel_values["wheel"].value == [1.0, 1.1, 1.2][i]
        assert rec.channel_values["gyro"].value == [0.0, 0.01, 0.02][i]


def test_record_time_comes_from_time_channel_value():
    rec = align(_odometry(), time_channel="time").record(1)
    assert rec.time == 0.1
    assert set(rec.channel_values) == {"wheel", "gyro"}
    assert rec.channel_values["wheel"].value == 1.1
    assert rec.channel_values["gyro"].value == 0.01


def test_mismatch_reports_every_channel():
    with pytest.raises(AlignmentError) as ei:
        align(_odometry(n_gyro=2), time_channel="time")
    assert ei.value.counts == {"time": 3, "wheel": 3, "gyro": 2}
    assert "time=3, wheel=3, gyro=2" in str(ei.value)


def test_mismatch_with_several_channels_off():
    chans = {"a": _samples([1, 2, 3]), "b": _samples([1]), "c": _samples([1, 2, 3, 4])}
    with pytest.raises(AlignmentError) as ei:
        align(chans)
    assert ei.value.counts == {"a": 3, "b": 1, "c": 4}


def test_without_time_channel_uses_sample_time():
    chans = {"pressure": _samples([1.0, 2.0], dt=0.1), "temp": _samples([20.0, 21.0], dt=0.1)}
    series = align(chans)
    assert series.times() == pytest.approx([0.0, 0.1])


def test_record_accessor_bounds():
    series = align(_odometry(), time_channel="time")
    assert series.first().time == 0.0
    assert series.last().time == 0.2
    with pytest.raises(OutOfRange) as ei:
        series.record(3)
    assert ei.value.index == 3 and ei.value.length == 3
    with pytest.raises(OutOfRange):
        series.record(-1)


def test_empty_channels_give_empty_series():
    series = align({"time": [], "wheel": []}, time_channel="time")
    assert len(series) == 0
    with pytest.raises(OutOfRange):
        series.first()


def test_needs_a_measurement_channel():
    with pytest.raises(ValueError):
        align({"time": _samples([0.0])}, time_channel="time")
    with pytest.raises(ValueError):
        align({"wheel": _samples([0.0])}, time_channel="time")


def test_records_are_read_only():
    rec = align(_odometry(), time_channel="time").record(0)
    with pytest.raises(TypeError):
        rec.channel_values["wheel"] = Sample(0.0, 9.9, 0.0)


def test_truncate():
    series = align(_odometry(), time_channel="time").truncate(2)
    assert len(series) == 2
    assert series.last().time == 0.1
