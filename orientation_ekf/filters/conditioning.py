"""
Post-update conditioning of the quaternion state.

Runs after every predict and every correct:

1. Normalization back onto the unit sphere.
2. Shortest-path sign correction. q and -q encode the same rotation, and an
   unconstrained linear update can flip between them; the new state is
   negated whenever it points away from the previous snapshot of the same
   filter stage.
"""

import numpy as np

from ..util.angles import quaternion_normalize
from .ekf import State


def shortest_path(prev_quat: np.ndarray, quat: np.ndarray) -> np.ndarray:
    """Return ``quat`` or ``-quat``, whichever has a non-negative dot product with ``prev_quat``."""
    if float(np.dot(prev_quat, quat)) < 0.0:
        return -quat
    return quat


def condition_state(state: State, stage: str, eps: float) -> np.ndarray:
    """
    Normalize ``state.x`` and align its sign with the snapshot of ``stage``.

    Args:
        state: Filter state, mutated in place.
        stage: "pre" after a prediction, "post" after a correction.
        eps: Norm below which DegenerateStateError is raised.

    Returns:
        The conditioned quaternion (also stored as the new snapshot).
    """
    if stage not in ("pre", "post"):
        raise ValueError(f"Unknown filter stage: {stage}")
    q = quaternion_normalize(state.x, eps=eps)
    if stage == "pre":
        q = shortest_path(state.x_pre, q)
        state.x_pre = q.copy()
    else:
        q = shortest_path(state.x_post, q)
        state.x_post = q.copy()
    state.x = q
    return q
