"""Delay policies between status-check batches and between HTTP retries.

The reconciler asks a ``BackoffPolicy`` how long to pause after each batch
except the last. Tests inject ``NoDelayBackoff`` instead of waiting on real
timers.
"""

from __future__ import annotations

import random
from typing import Protocol, runtime_checkable


@runtime_checkable
class BackoffPolicy(Protocol):
    def wait(self, batch_index: int) -> float:
        """Return the pause in seconds after the batch at *batch_index* (0-indexed)."""
        ...


class FixedDelayBackoff:
    """Static pause after every batch."""

    def __init__(self, seconds: float = 1.0) -> None:
        if seconds < 0:
            msg = "Delay must not be negative"
            raise ValueError(msg)
        self.seconds = seconds

    def wait(self, batch_index: int) -> float:
        return self.seconds

    def __repr__(self) -> str:
        return f"FixedDelayBackoff(seconds={self.seconds})"


class NoDelayBackoff:
    """Issue the next batch immediately."""

    def wait(self, batch_index: int) -> float:
        return 0.0

    def __repr__(self) -> str:
        return "NoDelayBackoff()"


class ExponentialBackoff:
    """Growing pause: ``min(max_delay, base * 2^batch_index)`` with +/- jitter."""

    def __init__(self, base: float = 1.0, max_delay: float = 30.0, jitter: float = 0.1) -> None:
        if base < 0 or max_delay < 0:
            msg = "Backoff delays must not be negative"
            raise ValueError(msg)
        if not 0 <= jitter < 1:
            msg = "Jitter must be in [0, 1)"
            raise ValueError(msg)
        self.base = base
        self.max_delay = max_delay
        self.jitter = jitter

    def wait(self, batch_index: int) -> float:
        delay = min(self.max_delay, self.base * (2 ** max(0, batch_index)))
        if self.jitter:
            delay *= 1.0 + random.uniform(-self.jitter, self.jitter)
        return max(0.0, delay)

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoff(base={self.base}, max_delay={self.max_delay}, "
            f"jitter={self.jitter})"
        )


BACKOFF_POLICIES = ("fixed", "none", "exponential")


def build_backoff_policy(name: str, delay: float = 1.0) -> BackoffPolicy:
    """Build a policy from its configuration name.

    Args:
        name: One of ``fixed``, ``none`` or ``exponential``
        delay: Fixed delay, or the exponential base, in seconds

    Raises:
        ValueError: If the name is unknown
    """
    normalized = str(name or "fixed").strip().lower()
    if normalized == "fixed":
        return FixedDelayBackoff(delay)
    if normalized == "none":
        return NoDelayBackoff()
    if normalized == "exponential":
        return ExponentialBackoff(base=delay)
    msg = f"Unknown backoff policy: {name}. Must be one of {BACKOFF_POLICIES}"
    raise ValueError(msg)


def calculate_retry_delay(
    attempt: int,
    backoff_base: float = 0.5,
    max_delay: float = 30.0,
) -> float:
    """Delay before HTTP retry *attempt* (0-indexed).

    Delay formula: ``min(max_delay, max(0, backoff_base * 2^attempt)) * (1 + uniform(-0.25, 0.25))``
    """
    base_delay = min(max_delay, max(0.0, backoff_base * (2**attempt)))
    jitter = 1.0 + random.uniform(-0.25, 0.25)
    return base_delay * jitter

