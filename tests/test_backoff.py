"""Tests for inter-batch delay policies and retry delays."""

from __future__ import annotations

import unittest
from unittest.mock import patch

import pytest

from sitegrip.core.backoff import (
    BackoffPolicy,
    ExponentialBackoff,
    FixedDelayBackoff,
    NoDelayBackoff,
    build_backoff_policy,
    calculate_retry_delay,
)


class TestPolicies(unittest.TestCase):
    def test_fixed_delay_is_constant(self):
        policy = FixedDelayBackoff(1.0)
        assert [policy.wait(i) for i in range(3)] == [1.0, 1.0, 1.0]

    def test_negative_fixed_delay_rejected(self):
        with pytest.raises(ValueError):
            FixedDelayBackoff(-1)

    def test_no_delay(self):
        assert NoDelayBackoff().wait(5) == 0.0

    def test_exponential_without_jitter(self):
        policy = ExponentialBackoff(base=1.0, max_delay=5.0, jitter=0)
        assert [policy.wait(i) for i in range(5)] == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_exponential_jitter_stays_in_bounds(self):
        policy = ExponentialBackoff(base=2.0, max_delay=30.0, jitter=0.1)
        for _ in range(50):
            assert 1.8 <= policy.wait(0) <= 2.2

    def test_invalid_jitter(self):
        with pytest.raises(ValueError):
            ExponentialBackoff(jitter=1.5)

    def test_policies_satisfy_protocol(self):
        for policy in (FixedDelayBackoff(), NoDelayBackoff(), ExponentialBackoff()):
            assert isinstance(policy, BackoffPolicy)


class TestBuildBackoffPolicy(unittest.TestCase):
    def test_known_names(self):
        assert isinstance(build_backoff_policy("fixed", 2.0), FixedDelayBackoff)
        assert isinstance(build_backoff_policy("NONE"), NoDelayBackoff)
        assert isinstance(build_backoff_policy("exponential"), ExponentialBackoff)

    def test_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown backoff policy"):
            build_backoff_policy("linear")


class TestCalculateRetryDelay(unittest.TestCase):
    def test_exponential_growth_without_jitter(self):
        with patch("sitegrip.core.backoff.random.uniform", return_value=0.0):
            assert calculate_retry_delay(0, 0.5) == 0.5
            assert calculate_retry_delay(2, 0.5) == 2.0

    def test_capped_by_max_delay(self):
        with patch("sitegrip.core.backoff.random.uniform", return_value=0.0):
            assert calculate_retry_delay(10, 1.0, max_delay=5.0) == 5.0
