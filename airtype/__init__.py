"""
Gesture Typing Pipeline

Turns a stream of hand landmarks into typed text: each frame is classified as
a letter and a letter is confirmed once it has been held steadily.
"""

__version__ = "0.1.0"
__author__ = "AirType Team"

from .types import Landmark, GesturePrediction, Streak, FrameResult, TextSinkProto, StatusSinkProto
from .config import load_config, Cfg
from .features import heuristic_features, model_features, MODEL_FEATURE_LENGTH
from .classifier import GestureClassifier, ModelState, ModelLoadError, load_xgboost_model
from .stabilizer import Stabilizer, advance
from .pipeline import GesturePipeline
from .text_buffer import TextBuffer, LoggingStatusSink

__all__ = [
    "Landmark",
    "GesturePrediction",
    "Streak",
    "FrameResult",
    "TextSinkProto",
    "StatusSinkProto",
    "load_config",
    "Cfg",
    "heuristic_features",
    "model_features",
    "MODEL_FEATURE_LENGTH",
    "GestureClassifier",
    "ModelState",
    "ModelLoadError",
    "load_xgboost_model",
    "Stabilizer",
    "advance",
    "GesturePipeline",
    "TextBuffer",
    "LoggingStatusSink",
]
