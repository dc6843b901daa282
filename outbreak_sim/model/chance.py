"""Percentage dice rolls shared by every stochastic rule."""

import numpy as np

# Draw ranges saturate at the largest 32-bit int
MAX_DRAW_RANGE = 2**31 - 1


def should_happen(chance: float, rng: np.random.Generator) -> bool:
    """
    Roll for an event with `chance` percent probability.

    Above 1% the roll is an integer in [0, 100] compared against the
    chance. At or below 1% the roll is an integer in [0, int(100 / chance))
    and only 0 fires. The two branches do not agree exactly at 1%.
    Vanishingly small chances clamp the range to MAX_DRAW_RANGE.
    """
    if chance > 1:
        return int(rng.integers(0, 101)) <= chance
    if chance <= 0:
        return False
    # Truncating loses a little precision for odd fractions
    scaled = 100 / chance
    draw_range = MAX_DRAW_RANGE if scaled >= MAX_DRAW_RANGE else int(scaled)
    return int(rng.integers(0, draw_range)) == 0
