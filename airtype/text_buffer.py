"""
In-memory collaborators for confirmed letters and live status.
"""
import logging
from typing import Optional

from .types import GesturePrediction, Streak

logger = logging.getLogger(__name__)


class TextBuffer:
    """Text sink that keeps the typed text in memory."""

    def __init__(self):
        """Initialize an empty buffer."""
        self.text = ""
        self.append_count = 0

    async def append(self, letter: str) -> None:
        """Append a confirmed letter."""
        self.text += letter
        self.append_count += 1
        logger.info(f"[TextBuffer] Append: {letter!r} -> {self.text!r} (call #{self.append_count})")


class LoggingStatusSink:
    """Status sink that logs every raw prediction."""

    def __init__(self):
        self.last_prediction: Optional[GesturePrediction] = None
        self.frames_shown = 0

    async def show(self, prediction: Optional[GesturePrediction], streak: Streak) -> None:
        self.last_prediction = prediction
        self.frames_shown += 1
        if prediction is None:
            logger.debug("[Status] No hand detected")
            return
        logger.debug(
            f"[Status] {prediction.letter or '-'} {prediction.confidence:.0%} "
            f"({prediction.source}) streak={streak.letter}:{streak.count}"
        )
