"""
Test cases for the gesture pipeline session.
"""
import asyncio
import threading
import unittest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from airtype.classifier import GestureClassifier
from airtype.pipeline import GesturePipeline
from airtype.stabilizer import Stabilizer
from airtype.text_buffer import TextBuffer, LoggingStatusSink
from airtype.types import Landmark, Streak, TextSinkProto, StatusSinkProto


HAND = [Landmark(0.5 + 0.01 * i, 0.5 - 0.01 * i, 0.0) for i in range(21)]


class FakeHandle:
    """Always predicts the same letter."""

    def __init__(self, index=1, score=0.9):
        self.scores = [0.0] * 26
        self.scores[index] = score

    def predict_scores(self, vector):
        return self.scores


class BlockingStatusSink:
    """Status sink that holds the frame until released."""

    def __init__(self):
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def show(self, prediction, streak):
        self.entered.set()
        await self.release.wait()


def make_pipeline(handle=None, status_sink=None, model_loader=None):
    classifier = GestureClassifier(model=handle, model_loader=model_loader)
    text = TextBuffer()
    pipeline = GesturePipeline(classifier, Stabilizer(), text, status_sink)
    return pipeline, text


class TestGesturePipeline(unittest.IsolatedAsyncioTestCase):
    """Test frame flow, contention and teardown."""

    async def test_collaborators_match_protocols(self):
        self.assertIsInstance(TextBuffer(), TextSinkProto)
        self.assertIsInstance(LoggingStatusSink(), StatusSinkProto)

    async def test_held_letter_is_typed(self):
        pipeline, text = make_pipeline(FakeHandle(index=1))

        results = [await pipeline.process_frame(HAND) for _ in range(12)]

        self.assertEqual(text.text, "B")
        self.assertEqual(text.append_count, 1)
        self.assertEqual(results[-1].confirmed, "B")
        self.assertTrue(all(r.confirmed is None for r in results[:-1]))
        self.assertEqual(pipeline.stabilizer.streak, Streak("B", 0))

    async def test_raw_prediction_reported_every_frame(self):
        status = LoggingStatusSink()
        pipeline, _ = make_pipeline(FakeHandle(index=0, score=0.3), status_sink=status)

        result = await pipeline.process_frame(HAND)

        self.assertEqual(result.prediction.letter, "A")
        self.assertIs(status.last_prediction, result.prediction)
        self.assertEqual(pipeline.stabilizer.streak, Streak())

    async def test_no_hand(self):
        status = LoggingStatusSink()
        pipeline, text = make_pipeline(FakeHandle(), status_sink=status)

        result = await pipeline.process_frame(None)

        self.assertIsNone(result.prediction)
        self.assertFalse(result.dropped)
        self.assertEqual(status.frames_shown, 1)
        self.assertEqual(text.text, "")

    async def test_busy_frame_is_dropped(self):
        status = BlockingStatusSink()
        pipeline, _ = make_pipeline(FakeHandle(), status_sink=status)

        first = asyncio.create_task(pipeline.process_frame(HAND))
        await status.entered.wait()
        second = await pipeline.process_frame(HAND)
        status.release.set()
        first_result = await first

        self.assertTrue(second.dropped)
        self.assertFalse(first_result.dropped)
        self.assertEqual(pipeline.frames_dropped, 1)
        self.assertEqual(pipeline.stabilizer.streak, Streak("B", 1))

    async def test_run_over_observations(self):
        pipeline, text = make_pipeline(FakeHandle(index=2))
        observations = [HAND] * 12 + [None] + [HAND] * 12

        await pipeline.run(observations)

        self.assertEqual(text.text, "CC")
        self.assertEqual(pipeline.frames_processed, 25)

    async def test_close_stops_run_loop(self):
        pipeline, text = make_pipeline(FakeHandle())

        async def endless():
            while True:
                yield HAND
                await asyncio.sleep(0.001)

        runner = asyncio.create_task(pipeline.run(endless(), frame_interval_s=0.001))
        await asyncio.sleep(0.02)
        await pipeline.close()
        await asyncio.wait_for(runner, timeout=1.0)

        self.assertTrue(pipeline.closed)
        self.assertTrue(pipeline.classifier.disposed)
        frames = pipeline.frames_processed
        result = await pipeline.process_frame(HAND)
        self.assertTrue(result.dropped)
        self.assertEqual(pipeline.frames_processed, frames)
        self.assertEqual(pipeline.stabilizer.streak, Streak())

    async def test_model_loaded_during_session(self):
        release = threading.Event()

        def loader():
            release.wait(5.0)
            return FakeHandle(index=3)

        pipeline, _ = make_pipeline(model_loader=loader)
        pipeline.start()

        while_loading = await pipeline.process_frame(HAND)
        self.assertEqual(while_loading.prediction.source, "prototype")

        release.set()
        await pipeline.classifier.load_model()
        loaded = await pipeline.process_frame(HAND)
        self.assertEqual(loaded.prediction.source, "asl-model")
        self.assertEqual(loaded.prediction.letter, "D")
        await pipeline.close()

    async def test_model_arriving_after_close_is_discarded(self):
        release = threading.Event()

        def loader():
            release.wait(5.0)
            return FakeHandle()

        async with make_pipeline(model_loader=loader)[0] as pipeline:
            await asyncio.sleep(0.01)

        release.set()
        await asyncio.sleep(0.05)
        self.assertFalse(pipeline.classifier.model_loaded)


if __name__ == '__main__':
    unittest.main()
