"""
sensorfiltering/kf_scalar.py

Scalar Kalman filter core: one independent (mean, variance) belief per
channel, random-walk transition (identity, no control input).

    predict:  m- = m,            v- = v + q
    update:   k  = v- / (v- + r)
              m+ = m- + k (z - m-)
              v+ = (1 - k) v-

Degenerate update (v- + r == 0): the gain is undefined. Policy "raise"
(default) raises DegenerateUpdate; policy "propagate" takes the measurement
exactly (k = 1). A NaN is never produced.
"""

from __future__ import annotations
from typing import List, Optional, Tuple

from sensorfiltering.errors import DegenerateUpdate
from sensorfiltering.models import Belief, Estimate, Gain

POLICIES = ("raise", "propagate")

INITIALIZED = "initialized"
STEADY = "steady"


def predict(belief: Belief, q: float = 0.0) -> Belief:
    """KF predict step (identity transition)."""
    if not q >= 0.0:
        raise ValueError(f"process noise must be >= 0, got {q}")
    return Belief(belief.mean, belief.variance + q)


def update(belief: Belief, z: float, r: float, policy: str = "raise",
           channel: Optional[str] = None, time: Optional[float] = None) -> Tuple[Belief, float]:
    """KF update step. Returns (posterior, gain)."""
    if policy not in POLICIES:
        raise ValueError(f"unknown degenerate-update policy '{policy}' (expected one of {POLICIES})")
    if not r >= 0.0:
        raise ValueError(f"measurement variance must be >= 0, got {r}")

    m_pred, v_pred = belief.mean, belief.variance
    s = v_pred + r
    if s == 0.0:
        if policy == "raise":
            raise DegenerateUpdate(channel, time, v_pred, r)
        return Belief(float(z), 0.0), 1.0

    if r == 0.0:
        # certain measurement: take it exactly, no round-off from m + (z - m)
        return Belief(float(z), 0.0), 1.0

    k = v_pred / s
    mean = m_pred + k * (z - m_pred)
    var = (1.0 - k) * v_pred
    return Belief(mean, max(var, 0.0)), k


class ScalarKalmanFilter:
    """Per-channel filter. States: initialized -> steady after the first step.

    step() is the only mutator; it appends one Estimate and one Gain.
    """

    def __init__(self, name: str, initial: Belief, process_noise: float = 0.0, policy: str = "raise"):
        if not process_noise >= 0.0:
            raise ValueError(f"channel '{name}': process noise must be >= 0, got {process_noise}")
        if policy not in POLICIES:
            raise ValueError(f"unknown degenerate-update policy '{policy}' (expected one of {POLICIES})")
        self.name = name
        self.q = float(process_noise)
        self.policy = policy
        self.belief = initial
        self.state = INITIALIZED
        self.estimates: List[Estimate] = []
        self.gains: List[Gain] = []

    def step(self, time: float, z: float, r: float) -> Belief:
        prior = predict(self.belief, self.q)
        post, k = update(prior, z, r, self.policy, channel=self.name, time=time)
        self.belief = post
        self.state = STEADY
        self.estimates.append(Estimate(time, post.mean, post.variance))
        self.gains.append(Gain(time, k))
        return post

    def __repr__(self) -> str:
        return f"ScalarKalmanFilter({self.name!r}, state={self.state}, belief={self.belief})"
