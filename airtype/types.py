"""
Type definitions for the gesture typing pipeline.
"""
from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


PredictionSource = Literal["prototype", "asl-model"]


@dataclass
class Landmark:
    """Normalized hand keypoint. x, y in [0..1], z is relative depth."""
    x: float
    y: float
    z: float = 0.0


# Ordered landmarks for one hand: 0 = wrist, 4/8/12/16/20 = fingertips
HandObservation = Sequence[Landmark]


@dataclass
class GesturePrediction:
    """Per-frame classifier output."""
    letter: Optional[str]
    confidence: float
    vector: np.ndarray  # feature vector the prediction was computed from
    source: PredictionSource


@dataclass(frozen=True)
class Streak:
    """Consecutive qualifying frames seen for the same letter."""
    letter: Optional[str] = None
    count: int = 0


@dataclass(frozen=True)
class StabilizerStep:
    """Result of feeding one prediction to the stabilizer."""
    streak: Streak
    confirmed: Optional[str] = None


@dataclass
class FrameResult:
    """What the pipeline reports for one submitted observation."""
    prediction: Optional[GesturePrediction] = None
    confirmed: Optional[str] = None
    dropped: bool = False


@runtime_checkable
class ModelHandle(Protocol):
    """A loaded learned model that scores model feature vectors."""

    def predict_scores(self, vector: np.ndarray) -> Sequence[float]:
        """Return one score per class label."""
        ...


@runtime_checkable
class TextSinkProto(Protocol):
    """Collaborator that receives confirmed letters."""

    async def append(self, letter: str) -> None:
        """Append a single confirmed character."""
        ...


@runtime_checkable
class StatusSinkProto(Protocol):
    """Collaborator that shows live, unstabilized feedback."""

    async def show(self, prediction: Optional[GesturePrediction], streak: Streak) -> None:
        """Display the raw prediction for the current frame."""
        ...
