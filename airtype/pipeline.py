"""
Gesture pipeline session: landmarks -> classifier -> stabilizer -> text sink.
"""
import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, Optional, Union

from .classifier import GestureClassifier
from .config import Cfg
from .stabilizer import Stabilizer
from .types import FrameResult, HandObservation, StatusSinkProto, TextSinkProto

logger = logging.getLogger(__name__)


Observations = Union[Iterable[Optional[HandObservation]], AsyncIterable[Optional[HandObservation]]]


async def _iterate(observations: Observations) -> AsyncIterator[Optional[HandObservation]]:
    if hasattr(observations, "__aiter__"):
        async for landmarks in observations:
            yield landmarks
    else:
        for landmarks in observations:
            yield landmarks
            # Let a background model load make progress between frames
            await asyncio.sleep(0)


class GesturePipeline:
    """
    One active gesture typing session.

    Frames are processed one at a time. A frame submitted while another is
    still in progress is dropped, not queued.
    """

    def __init__(self, classifier: GestureClassifier, stabilizer: Stabilizer,
                 text_sink: TextSinkProto, status_sink: Optional[StatusSinkProto] = None):
        """
        Initialize the session.

        Args:
            classifier: Classifier owned by this session, disposed on close
            stabilizer: Streak state owned by this session
            text_sink: Receives confirmed letters
            status_sink: Receives every raw prediction, if given
        """
        self.classifier = classifier
        self.stabilizer = stabilizer
        self.text_sink = text_sink
        self.status_sink = status_sink

        self.frames_processed = 0
        self.frames_dropped = 0
        self._busy = False
        self._closed = False
        self._run_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(cls, cfg: Cfg, text_sink: TextSinkProto,
                    status_sink: Optional[StatusSinkProto] = None) -> "GesturePipeline":
        return cls(
            classifier=GestureClassifier.from_config(cfg.classifier),
            stabilizer=Stabilizer.from_config(cfg.stabilizer),
            text_sink=text_sink,
            status_sink=status_sink,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Kick off a non-blocking model load."""
        if not self._closed:
            self.classifier.ensure_model()

    async def process_frame(self, landmarks: Optional[HandObservation]) -> FrameResult:
        """
        Run one observation through the pipeline.

        Args:
            landmarks: Hand landmarks, or None if no hand was detected

        Returns:
            Raw prediction, confirmed letter (if any) and whether the frame was dropped
        """
        if self._closed:
            return FrameResult(dropped=True)
        if self._busy:
            self.frames_dropped += 1
            logger.debug("Dropping frame, previous frame still in progress")
            return FrameResult(dropped=True)

        self._busy = True
        try:
            prediction = self.classifier.classify(landmarks)
            confirmed = self.stabilizer.update(prediction)
            self.frames_processed += 1

            if self.status_sink is not None:
                await self.status_sink.show(prediction, self.stabilizer.streak)
            if confirmed is not None and not self._closed:
                await self.text_sink.append(confirmed)

            return FrameResult(prediction=prediction, confirmed=confirmed)
        finally:
            self._busy = False

    async def run(self, observations: Observations, frame_interval_s: float = 0.0) -> None:
        """
        Process observations until they run out or the session is closed.

        Args:
            observations: Sync or async iterable of observations (None = no hand)
            frame_interval_s: Pause between frames
        """
        self._run_task = asyncio.current_task()
        self.start()
        try:
            async for landmarks in _iterate(observations):
                if self._closed:
                    break
                await self.process_frame(landmarks)
                if frame_interval_s > 0:
                    await asyncio.sleep(frame_interval_s)
        except asyncio.CancelledError:
            if not self._closed:
                raise
        finally:
            self._run_task = None

    async def close(self) -> None:
        """Stop the frame loop and release the classifier."""
        if self._closed:
            return
        self._closed = True
        task = self._run_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
        self.classifier.dispose()
        self.stabilizer.reset()
        logger.info(f"Pipeline closed after {self.frames_processed} frames ({self.frames_dropped} dropped)")

    async def __aenter__(self) -> "GesturePipeline":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
