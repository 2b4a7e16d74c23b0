"""Sampling and queue overflow policies."""

from tracewire.processors.drop_policy import (
    DROP_POLICIES,
    DropNewestPolicy,
    DropOldestPolicy,
    DropPolicy,
    drop_policy_for,
)
from tracewire.processors.sampler import Sampler, SamplingResult, SupportsSampling

__all__ = [
    "DropPolicy",
    "DropOldestPolicy",
    "DropNewestPolicy",
    "DROP_POLICIES",
    "drop_policy_for",
    "Sampler",
    "SamplingResult",
    "SupportsSampling",
]
