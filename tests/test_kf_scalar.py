from __future__ import annotations

import pytest

from sensorfiltering.errors import DegenerateUpdate
from sensorfiltering.kf_scalar import INITIALIZED, STEADY, ScalarKalmanFilter, predict, update
from sensorfiltering.models import Belief


def test_predict_adds_process_noise():
    assert predict(Belief(3.0, 2.0), 0.5) == Belief(3.0, 2.5)
    assert predict(Belief(3.0, 2.0)) == Belief(3.0, 2.0)
    with pytest.raises(ValueError):
        predict(Belief(3.0, 2.0), -0.1)


def test_update_equal_variances_halves():
    post, k = update(predict(Belief(0.0, 1.0), 0.0), 10.0, 1.0)
    assert k == 0.5
    assert post.mean == 5.0
    assert post.variance == 0.5


def test_huge_measurement_variance_keeps_prior():
    post, k = update(Belief(3.0, 2.0), 100.0, 1e15)
    assert k == pytest.approx(0.0, abs=1e-12)
    assert post.mean == pytest.approx(3.0, abs=1e-9)
    assert post.variance == pytest.approx(2.0)


def test_exact_measurement_is_taken_exactly():
    post, k = update(Belief(0.1, 4.0), 0.3, 0.0)
    assert k == 1.0
    assert post.mean == 0.3
    assert post.variance == 0.0


def test_degenerate_update_raises_by_default():
    with pytest.raises(DegenerateUpdate) as ei:
        update(Belief(1.0, 0.0), 2.0, 0.0, channel="pressure", time=0.3)
    assert ei.value.channel == "pressure"
    assert ei.value.time == 0.3


def test_degenerate_update_propagate_policy():
    post, k = update(Belief(1.0, 0.0), 2.0, 0.0, policy="propagate")
    assert (post.mean, post.variance, k) == (2.0, 0.0, 1.0)


def test_zero_prior_variance_ignores_measurement():
    post, k = update(Belief(1.0, 0.0), 2.0, 0.5)
    assert k == 0.0
    assert post == Belief(1.0, 0.0)


def test_update_argument_checks():
    with pytest.raises(ValueError):
        update(Belief(0.0, 1.0), 1.0, -1.0)
    with pytest.raises(ValueError):
        update(Belief(0.0, 1.0), 1.0, 1.0, policy="nan")


def test_belief_rejects_negative_variance():
    with pytest.raises(ValueError):
        Belief(0.0, -1e-9)


def test_constant_stream_converges_monotonically():
    kf = ScalarKalmanFilter("level", Belief(0.0, 10.0), process_noise=0.0)
    for i in range(50):
        kf.step(i * 0.1, 5.0, 1.0)
    var = [e.variance for e in kf.estimates]
    err = [abs(5.0 - e.mean) for e in kf.estimates]
    assert all(b < a for a, b in zip(var, var[1:]))
    assert all(b <= a for a, b in zip(err, err[1:]))
    assert all(e.mean <= 5.0 for e in kf.estimates)
    assert kf.belief.mean == pytest.approx(5.0, abs=0.2)


def test_filter_state_and_history():
    kf = ScalarKalmanFilter("temp", Belief(20.0, 25.0), process_noise=0.1)
    assert kf.state == INITIALIZED
    assert kf.estimates == [] and kf.gains == []
    post = kf.step(0.0, 23.0, 1.0)
    assert kf.state == STEADY
    assert len(kf.estimates) == 1 and len(kf.gains) == 1
    k = 25.1 / 26.1
    assert kf.gains[0].gain == pytest.approx(k)
    assert post.mean == pytest.approx(20.0 + k * 3.0)
    assert post.variance == pytest.approx((1 - k) * 25.1)
    assert kf.estimates[0].time == 0.0


def test_filter_rejects_bad_config():
    with pytest.raises(ValueError):
        ScalarKalmanFilter("x", Belief(0.0, 1.0), process_noise=-1.0)
    with pytest.raises(ValueError):
        ScalarKalmanFilter("x", Belief(0.0, 1.0), policy="whatever")


def test_gain_stays_in_unit_interval():
    kf = ScalarKalmanFilter("x", Belief(0.0, 1e6), process_noise=0.01)
    for i, z in enumerate([1.0, 1e3, -5.0, 0.0]):
        kf.step(float(i), z, [1e-6, 1.0, 1e6, 0.0][i])
    assert all(0.0 <= g.gain <= 1.0 for g in kf.gains)
