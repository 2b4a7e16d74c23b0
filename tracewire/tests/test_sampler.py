"""Tests for the deterministic trace-id sampler."""

import random

import pytest

from tracewire.processors.sampler import Sampler, SamplingResult
from tracewire.utils.helpers import MAX_ID


def test_rate_bounds_validated():
    with pytest.raises(ValueError):
        Sampler(-0.1)
    with pytest.raises(ValueError):
        Sampler(1.5)


def test_always_and_never():
    ids = [1, 2, 0xFFFFFFFFFFFFFFFE, MAX_ID] + [random.getrandbits(64) or 1 for _ in range(200)]
    always = Sampler(1.0)
    never = Sampler(0.0)
    assert all(always.is_sample(i) for i in ids)
    assert not any(never.is_sample(i) for i in ids)


def test_decision_is_deterministic():
    sampler = Sampler(0.3)
    rng = random.Random(1234)
    for _ in range(500):
        trace_id = rng.getrandbits(64) or 1
        first = sampler.is_sample(trace_id)
        assert all(sampler.is_sample(trace_id) == first for _ in range(5))


def test_two_samplers_with_same_rate_agree():
    rng = random.Random(99)
    a, b = Sampler(0.5), Sampler(0.5)
    for _ in range(500):
        trace_id = rng.getrandbits(64) or 1
        assert a.is_sample(trace_id) == b.is_sample(trace_id)


def test_rate_convergence():
    sampler = Sampler(0.5)
    rng = random.Random(20240101)
    total = 100_000
    sampled = sum(sampler.is_sample(rng.getrandbits(64) or 1) for _ in range(total))
    assert abs(sampled / total - 0.5) <= 0.02


def test_sequential_ids_are_spread():
    """Hashing keeps small consecutive ids from all landing on one side."""
    sampler = Sampler(0.5)
    sampled = sum(sampler.is_sample(i) for i in range(1, 10_001))
    assert 4_500 <= sampled <= 5_500


def test_should_sample_wraps_decision():
    sampler = Sampler(1.0)
    assert sampler.should_sample(7) == SamplingResult(sampled=True)
    assert sampler.sample_rate == 1.0
