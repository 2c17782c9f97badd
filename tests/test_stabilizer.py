"""
Test cases for letter stabilization with synthetic prediction streams.
"""
import unittest
import sys
from pathlib import Path
from typing import Optional

import numpy as np

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from airtype.stabilizer import Stabilizer, advance
from airtype.types import GesturePrediction, Streak


def prediction(letter: Optional[str], confidence: float = 0.9) -> GesturePrediction:
    return GesturePrediction(letter=letter, confidence=confidence, vector=np.zeros(5), source="prototype")


class TestAdvance(unittest.TestCase):
    """Test the pure transition function."""

    def test_none_prediction_resets(self):
        step = advance(Streak("A", 7), None)
        self.assertEqual(step.streak, Streak(None, 0))
        self.assertIsNone(step.confirmed)

    def test_null_letter_resets(self):
        step = advance(Streak("A", 7), prediction(None, 0.99))
        self.assertEqual(step.streak, Streak(None, 0))

    def test_low_confidence_resets(self):
        step = advance(Streak("A", 11), prediction("A", 0.59))
        self.assertEqual(step.streak, Streak(None, 0))
        self.assertIsNone(step.confirmed)

    def test_nan_confidence_resets(self):
        step = advance(Streak("A", 11), prediction("A", float("nan")))
        self.assertIsNone(step.confirmed)
        self.assertEqual(step.streak, Streak(None, 0))

    def test_threshold_is_inclusive(self):
        step = advance(Streak("A", 3), prediction("A", 0.6))
        self.assertEqual(step.streak, Streak("A", 4))

    def test_new_letter_starts_at_one(self):
        step = advance(Streak(), prediction("A"))
        self.assertEqual(step.streak, Streak("A", 1))

    def test_confirmation_keeps_letter(self):
        step = advance(Streak("A", 11), prediction("A"))
        self.assertEqual(step.confirmed, "A")
        self.assertEqual(step.streak, Streak("A", 0))

    def test_custom_thresholds(self):
        step = advance(Streak("B", 2), prediction("B", 0.5), confidence_threshold=0.4, frames_to_confirm=3)
        self.assertEqual(step.confirmed, "B")

    def test_does_not_mutate_input(self):
        streak = Streak("A", 5)
        advance(streak, prediction("A"))
        self.assertEqual(streak, Streak("A", 5))


class TestStabilizer(unittest.TestCase):
    """Test the stateful stabilizer with the default T=0.6, N=12."""

    def setUp(self):
        self.stabilizer = Stabilizer()

    def test_eleven_frames_then_confirmation(self):
        for _ in range(11):
            self.assertIsNone(self.stabilizer.update(prediction("A", 0.9)))
        self.assertEqual(self.stabilizer.streak, Streak("A", 11))

        self.assertEqual(self.stabilizer.update(prediction("A", 0.9)), "A")
        self.assertEqual(self.stabilizer.streak, Streak("A", 0))

    def test_exactly_one_emission_per_streak(self):
        emissions = [self.stabilizer.update(prediction("X")) for _ in range(12)]
        self.assertEqual([e for e in emissions if e is not None], ["X"])
        self.assertEqual(emissions[-1], "X")

    def test_held_pose_confirms_again(self):
        emissions = [self.stabilizer.update(prediction("A")) for _ in range(24)]
        self.assertEqual(emissions.count("A"), 2)
        self.assertEqual(emissions[11], "A")
        self.assertEqual(emissions[23], "A")

    def test_letter_switch(self):
        self.assertIsNone(self.stabilizer.update(prediction("A", 0.9)))
        self.assertIsNone(self.stabilizer.update(prediction("B", 0.9)))
        self.assertEqual(self.stabilizer.streak, Streak("B", 1))

    def test_low_confidence_interrupts_streak(self):
        for _ in range(10):
            self.stabilizer.update(prediction("A"))
        self.stabilizer.update(prediction("A", 0.2))
        self.assertEqual(self.stabilizer.streak, Streak(None, 0))

        emissions = [self.stabilizer.update(prediction("A")) for _ in range(11)]
        self.assertTrue(all(e is None for e in emissions))

    def test_progress_and_description(self):
        self.assertEqual(self.stabilizer.progress, 0.0)
        self.assertEqual(self.stabilizer.describe(), "Hold a gesture steady for 12 frames")

        for _ in range(3):
            self.stabilizer.update(prediction("C"))
        self.assertAlmostEqual(self.stabilizer.progress, 0.25)
        self.assertEqual(self.stabilizer.describe(), "Confirming C (3/12)")

    def test_reset(self):
        self.stabilizer.update(prediction("A"))
        self.stabilizer.reset()
        self.assertEqual(self.stabilizer.streak, Streak())


if __name__ == '__main__':
    unittest.main()
