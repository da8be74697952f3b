"""Accept/reject policy for tracker results."""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from facefit.pts import PointsLike, as_shape
from facefit.tracking import TrackingSession


@dataclass(frozen=True)
class Decision:
    """Outcome of comparing a confidence score with the threshold."""

    accepted: bool
    confidence: int
    threshold: int

    @property
    def rejected(self) -> bool:
        return not self.accepted


def decide(confidence: int, threshold: int) -> Decision:
    """Accept iff ``confidence >= threshold`` (the threshold is inclusive)."""
    return Decision(
        accepted=confidence >= threshold,
        confidence=confidence,
        threshold=threshold,
    )


def resolve(session: TrackingSession, confidence: int, shape: PointsLike, threshold: int,
            reset_on_reject: bool = True) -> Tuple[Decision, np.ndarray]:
    """Apply the policy to one frame's result.

    On accept the tracker's shape is kept. On reject the shape is
    discarded and, unless *reset_on_reject* is False, ``session.reset()``
    is called so the next frame starts from a cold state.

    Returns:
        ``(decision, shape)`` where *shape* is empty when rejected.
    """
    decision = decide(confidence, threshold)
    if decision.accepted:
        return decision, as_shape(shape)
    if reset_on_reject:
        session.reset()
    return decision, as_shape([])
