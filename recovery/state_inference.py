"""
State Inference Engine
======================

Direct state reconstruction for generators whose output transform can be
reversed. The first window_size(prng) observations rebuild the state; every
observation after the window must then be reproduced exactly by the
recovered state, otherwise the inference is rejected.

This is deterministic reconstruction, not a search: there is no confidence
percentage, only success or an error.
"""

import logging
from typing import Sequence

import prng_registry
from prng_registry import RecoveredState
from recovery.errors import InferenceMismatch, InputError

logger = logging.getLogger(__name__)


def infer(prng: str, observed: Sequence[int]) -> RecoveredState:
    """
    Recover the internal state of `prng` from `observed`.

    The returned state is positioned after the last observation, so
    generate_from_state() on it predicts the outputs nobody has seen yet.

    Raises:
        InputError: no observations
        UnsupportedOperation: `prng` cannot be inverted
        InsufficientWindow: fewer observations than the state window
        InferenceMismatch: the recovered state does not reproduce the
            observations that follow the window
    """
    if len(observed) == 0:
        raise InputError("No observed outputs to infer state from")

    window = prng_registry.window_size(prng)
    state = prng_registry.invert_state(prng, observed)
    logger.debug("Rebuilt %s state from %d outputs", prng, window)

    held_out = [value & prng_registry.MASK32 for value in observed[window:]]
    if not held_out:
        logger.info("Recovered %s state (no held-out outputs to verify against)", prng)
        return state

    predicted = prng_registry.generate_from_state(state, len(held_out))
    for offset, (actual, expected) in enumerate(zip(predicted, held_out)):
        if actual != expected:
            raise InferenceMismatch(prng, window + offset, expected, actual)

    logger.info("Recovered %s state verified against %d held-out output(s)", prng, len(held_out))
    return prng_registry.advance_state(state, len(held_out))
