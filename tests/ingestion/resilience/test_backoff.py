"""
Unit Tests: Exponential Backoff

**Test Coverage:**
- Exponential growth for 1-indexed attempts
- Cap at max_delay before jitter
- Jitter bounds
- Invalid attempt numbers
"""

import random

import pytest

from ingestion.resilience.backoff import calculate_backoff_delay


def test_delay_doubles_per_attempt_without_jitter():
    """Attempt k waits base * 2^k."""
    assert calculate_backoff_delay(1, base_delay=1.0, jitter_max=0) == 2.0
    assert calculate_backoff_delay(2, base_delay=1.0, jitter_max=0) == 4.0
    assert calculate_backoff_delay(3, base_delay=1.0, jitter_max=0) == 8.0


def test_delay_respects_base_delay():
    assert calculate_backoff_delay(2, base_delay=0.5, jitter_max=0) == 2.0


def test_delay_is_capped_at_max_delay():
    assert calculate_backoff_delay(10, base_delay=1.0, max_delay=30.0, jitter_max=0) == 30.0


def test_jitter_is_added_on_top_of_cap():
    """Jitter is added after capping, so the total may exceed max_delay."""
    rng = random.Random(7)
    delay = calculate_backoff_delay(10, base_delay=1.0, max_delay=30.0, jitter_max=1.0, rng=rng)
    
    assert 30.0 <= delay <= 31.0


def test_jitter_uses_injected_rng():
    first = calculate_backoff_delay(1, jitter_max=1.0, rng=random.Random(42))
    second = calculate_backoff_delay(1, jitter_max=1.0, rng=random.Random(42))
    
    assert first == second


def test_huge_attempt_does_not_overflow():
    assert calculate_backoff_delay(5000, base_delay=1.0, max_delay=30.0, jitter_max=0) == 30.0


@pytest.mark.parametrize("attempt", [0, -1])
def test_attempt_must_be_positive(attempt):
    with pytest.raises(ValueError):
        calculate_backoff_delay(attempt)
