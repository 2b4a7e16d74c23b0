"""Sampling decisions for traces."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Protocol

_ID_SPACE = 1 << 64


@dataclass
class SamplingResult:
    sampled: bool


class SupportsSampling(Protocol):
    def is_sample(self, trace_id: int) -> bool:
        ...


class Sampler:
    """
    Head-based sampler using a fixed probability.

    The decision is a pure function of the trace id: the id is hashed into
    a uniform value in [0, 2**64) and sampled iff that value falls below
    ``sample_rate * 2**64``. Repeated calls for one trace id always agree.
    """

    def __init__(self, sample_rate: float = 1.0) -> None:
        if not 0.0 <= sample_rate <= 1.0:
            raise ValueError("sample_rate must be between 0.0 and 1.0")
        self._sample_rate = float(sample_rate)
        self._bound = int(self._sample_rate * _ID_SPACE)

    @property
    def sample_rate(self) -> float:
        return self._sample_rate

    def is_sample(self, trace_id: int) -> bool:
        return _hash_trace_id(trace_id) < self._bound

    def should_sample(self, trace_id: int) -> SamplingResult:
        return SamplingResult(sampled=self.is_sample(trace_id))

    def __repr__(self) -> str:
        return f"Sampler(sample_rate={self._sample_rate})"


def _hash_trace_id(trace_id: int) -> int:
    digest = hashlib.blake2b(trace_id.to_bytes(8, "big"), digest_size=8).digest()
    return int.from_bytes(digest, "big")
