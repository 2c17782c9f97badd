"""
Debounce of the per-frame letter stream into confirmed letters.
"""
import logging
import math
from typing import Optional

from .config import StabilizerConfig
from .types import GesturePrediction, StabilizerStep, Streak

logger = logging.getLogger(__name__)


DEFAULT_CONFIDENCE_THRESHOLD = 0.6
DEFAULT_FRAMES_TO_CONFIRM = 12


def advance(streak: Streak, prediction: Optional[GesturePrediction],
            confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
            frames_to_confirm: int = DEFAULT_FRAMES_TO_CONFIRM) -> StabilizerStep:
    """
    Feed one prediction to the streak.

    Args:
        streak: Current streak
        prediction: Prediction for this frame, None when no hand was classified
        confidence_threshold: Minimum confidence for a frame to count
        frames_to_confirm: Consecutive qualifying frames needed to confirm

    Returns:
        New streak and the confirmed letter, if this frame completed one
    """
    if (prediction is None or prediction.letter is None
            or not math.isfinite(prediction.confidence)
            or prediction.confidence < confidence_threshold):
        return StabilizerStep(streak=Streak())

    letter = prediction.letter
    if letter != streak.letter:
        return StabilizerStep(streak=Streak(letter, 1))

    count = streak.count + 1
    if count >= frames_to_confirm:
        # Held pose keeps counting toward the next confirmation
        return StabilizerStep(streak=Streak(letter, 0), confirmed=letter)
    return StabilizerStep(streak=Streak(letter, count))


class Stabilizer:
    """
    Holds the streak of one pipeline session.

    Emits a letter once it has been predicted with enough confidence for
    frames_to_confirm consecutive frames.
    """

    def __init__(self, confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
                 frames_to_confirm: int = DEFAULT_FRAMES_TO_CONFIRM):
        self.confidence_threshold = confidence_threshold
        self.frames_to_confirm = frames_to_confirm
        self.streak = Streak()

    @classmethod
    def from_config(cls, cfg: StabilizerConfig) -> "Stabilizer":
        return cls(cfg.confidence_threshold, cfg.frames_to_confirm)

    def update(self, prediction: Optional[GesturePrediction]) -> Optional[str]:
        """Advance the streak and return the confirmed letter, if any."""
        step = advance(self.streak, prediction, self.confidence_threshold, self.frames_to_confirm)
        self.streak = step.streak
        if step.confirmed is not None:
            logger.info(f"Confirmed letter {step.confirmed}")
        return step.confirmed

    def reset(self) -> None:
        self.streak = Streak()

    @property
    def progress(self) -> float:
        """Fraction of the way to the next confirmation, in [0, 1]."""
        if self.streak.letter is None:
            return 0.0
        return min(self.streak.count / self.frames_to_confirm, 1.0)

    def describe(self) -> str:
        if self.streak.letter is not None:
            return f"Confirming {self.streak.letter} ({self.streak.count}/{self.frames_to_confirm})"
        return f"Hold a gesture steady for {self.frames_to_confirm} frames"
