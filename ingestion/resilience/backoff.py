"""
Exponential Backoff with Jitter

Delay for retry attempt k (1-indexed):

    min(max_delay, base_delay * 2 ** k) + uniform(0, jitter_max)
"""

import random
from typing import Optional


def calculate_backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter_max: float = 1.0,
    rng: Optional[random.Random] = None
) -> float:
    """Calculate the delay before a retry attempt.
    
    - Attempt 1: 2s (+ jitter)
    - Attempt 2: 4s (+ jitter)
    - Attempt 3: 8s (+ jitter)
    
    Args:
        attempt: Retry attempt number (1-indexed)
        base_delay: Base delay in seconds
        max_delay: Upper bound for the exponential part
        jitter_max: Upper bound for the random jitter added on top
        rng: Random source, defaults to the module-level generator
        
    Returns:
        Delay in seconds
        
    Raises:
        ValueError: If attempt is less than 1
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    
    # Cap the exponent so huge attempt numbers never overflow
    exponential = base_delay * (2 ** min(attempt, 62))
    capped = min(max_delay, exponential)
    
    jitter = 0.0
    if jitter_max > 0:
        jitter = (rng or random).uniform(0, jitter_max)
    
    return capped + jitter
