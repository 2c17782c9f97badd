"""
Letter classification from hand landmarks.

Two strategies share one output type:
- PrototypeMatcher: nearest hand-authored heuristic prototype, always available
- ModelMatcher: learned multi-class model over the 68-value model features

GestureClassifier picks the model when one is loaded and falls back to the
prototypes otherwise. Model loading runs in a worker thread and never raises
into the caller.
"""
import asyncio
import logging
import math
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

import numpy as np
import xgboost as xgb

from .config import ClassifierConfig
from .features import NUM_LANDMARKS, heuristic_features, model_features, safe_value
from .types import GesturePrediction, HandObservation, ModelHandle

logger = logging.getLogger(__name__)


ASL_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

DEFAULT_PROTOTYPES: Dict[str, Sequence[float]] = {
    "A": [0.08, 0.12, 0.1, 0.03, 0.004],  # closed fist
    "B": [0.32, 0.4, 0.35, 0.14, 0.02],   # open palm
    "C": [0.22, 0.24, 0.3, 0.2, 0.01],    # curved "C"
}

DEFAULT_CONFIDENCE_SCALE = 5.0


class ModelLoadError(RuntimeError):
    """Raised by model loaders when the model artifact cannot be used."""


class ModelState(Enum):
    NOT_LOADED = "not_loaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class PrototypeMatcher:
    """Nearest-prototype matcher over the 5 heuristic features."""

    def __init__(self, prototypes: Optional[Dict[str, Sequence[float]]] = None,
                 confidence_scale: float = DEFAULT_CONFIDENCE_SCALE):
        table = prototypes if prototypes else DEFAULT_PROTOTYPES
        self.letters = tuple(table.keys())
        self.confidence_scale = confidence_scale
        self._table = np.array(
            [[safe_value(v) for v in table[letter]] for letter in self.letters],
            dtype=np.float64,
        )
        self._table.setflags(write=False)

    @property
    def prototypes(self) -> Dict[str, np.ndarray]:
        return {letter: self._table[i].copy() for i, letter in enumerate(self.letters)}

    def predict(self, vector: np.ndarray) -> GesturePrediction:
        """
        Match a heuristic feature vector against the prototype table.

        Ties go to the first letter in table order. Confidence is
        max(0, 1 - distance * confidence_scale) and is not capped above.
        """
        vector = np.nan_to_num(np.asarray(vector, dtype=np.float64), nan=0.0, posinf=0.0, neginf=0.0)
        distances = np.sqrt(((self._table - vector) ** 2).sum(axis=1))
        index = int(np.argmin(distances))
        confidence = max(0.0, 1.0 - float(distances[index]) * self.confidence_scale)
        return GesturePrediction(
            letter=self.letters[index],
            confidence=confidence,
            vector=vector,
            source="prototype",
        )

    def classify(self, landmarks: HandObservation) -> GesturePrediction:
        return self.predict(heuristic_features(landmarks))


class ModelMatcher:
    """Arg-max over the scores of a loaded model."""

    def __init__(self, handle: ModelHandle, labels: Sequence[str] = ASL_LETTERS):
        self.handle = handle
        self.labels = tuple(labels)

    def predict(self, vector: np.ndarray) -> GesturePrediction:
        """
        Score a model feature vector.

        A class index with no label yields letter None, a non-finite best
        score yields confidence 0.
        """
        scores = np.asarray(self.handle.predict_scores(vector), dtype=np.float64).reshape(-1)
        if scores.size == 0:
            return GesturePrediction(letter=None, confidence=0.0, vector=vector, source="asl-model")

        index = int(np.argmax(np.where(np.isfinite(scores), scores, -np.inf)))
        best = float(scores[index])
        return GesturePrediction(
            letter=self.labels[index] if index < len(self.labels) else None,
            confidence=best if math.isfinite(best) else 0.0,
            vector=vector,
            source="asl-model",
        )

    def classify(self, landmarks: HandObservation) -> GesturePrediction:
        return self.predict(model_features(landmarks))


class XGBoostModelHandle:
    """ModelHandle backed by a trained xgboost classifier."""

    def __init__(self, model: xgb.XGBClassifier):
        self.model = model

    def predict_scores(self, vector: np.ndarray) -> Sequence[float]:
        batch = np.asarray(vector, dtype=np.float32).reshape(1, -1)
        return self.model.predict_proba(batch)[0]


def load_xgboost_model(path: str) -> XGBoostModelHandle:
    """
    Load a saved XGBClassifier (JSON or UBJSON).

    Raises:
        ModelLoadError: if the file is missing or cannot be read as a model
    """
    model_path = Path(path)
    if not model_path.exists():
        raise ModelLoadError(f"Model file not found: {model_path}")

    model = xgb.XGBClassifier()
    try:
        model.load_model(str(model_path))
    except (xgb.core.XGBoostError, ValueError, TypeError) as e:
        raise ModelLoadError(f"Unable to read model {model_path}: {e}") from e
    return XGBoostModelHandle(model)


class GestureClassifier:
    """
    Owned classifier instance for one pipeline session.

    Lifecycle: create -> (optional) load_model -> classify* -> dispose
    """

    def __init__(self,
                 prototypes: Optional[Dict[str, Sequence[float]]] = None,
                 confidence_scale: float = DEFAULT_CONFIDENCE_SCALE,
                 model_loader: Optional[Callable[[], ModelHandle]] = None,
                 model_labels: Sequence[str] = ASL_LETTERS,
                 load_retry_interval_s: float = 5.0,
                 model: Optional[ModelHandle] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the classifier.

        Args:
            prototypes: Letter -> heuristic prototype table, defaults to A/B/C
            confidence_scale: Distance multiplier of the prototype confidence
            model_loader: Blocking callable returning a ModelHandle, run in a worker thread
            model_labels: Class index -> letter of the learned model
            load_retry_interval_s: Minimum delay before retrying a failed load
            model: Already loaded model handle
            clock: Monotonic time source
        """
        self.prototype_matcher = PrototypeMatcher(prototypes, confidence_scale)
        self.model_labels = tuple(model_labels)
        self.load_retry_interval_s = load_retry_interval_s
        self._model_loader = model_loader
        self._clock = clock

        self._model_matcher: Optional[ModelMatcher] = None
        self._state = ModelState.NOT_LOADED
        self._load_task: Optional[asyncio.Task] = None
        self._failed_at: Optional[float] = None
        self._disposed = False
        self.load_attempts = 0

        if model is not None:
            self._model_matcher = ModelMatcher(model, self.model_labels)
            self._state = ModelState.LOADED

    @classmethod
    def from_config(cls, cfg: ClassifierConfig) -> "GestureClassifier":
        """Build a classifier, loading the xgboost model at cfg.model_path if set."""
        model_loader = None
        if cfg.model_path:
            model_path = cfg.model_path
            model_loader = lambda: load_xgboost_model(model_path)
        return cls(
            prototypes=cfg.prototypes,
            confidence_scale=cfg.confidence_scale,
            model_loader=model_loader,
            model_labels=cfg.model_labels,
            load_retry_interval_s=cfg.load_retry_interval_s,
        )

    @property
    def model_state(self) -> ModelState:
        return self._state

    @property
    def model_loaded(self) -> bool:
        return self._model_matcher is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def classify(self, landmarks: Optional[HandObservation]) -> Optional[GesturePrediction]:
        """
        Classify one hand observation.

        Args:
            landmarks: Ordered hand landmarks, or None when no hand is visible

        Returns:
            Prediction from the model if loaded, else from the prototypes.
            None if fewer than 21 landmarks are given.
        """
        if landmarks is None or len(landmarks) < NUM_LANDMARKS:
            return None

        if self._model_matcher is not None:
            try:
                return self._model_matcher.classify(landmarks)
            except Exception as e:
                logger.warning(f"Model prediction failed, using prototypes: {e}")
                return self.prototype_matcher.classify(landmarks)

        self.ensure_model()
        return self.prototype_matcher.classify(landmarks)

    def ensure_model(self) -> Optional[asyncio.Task]:
        """
        Start a background model load if one is due.

        Never blocks. Does nothing without a loader, outside a running event
        loop, after dispose, or while a failed load is inside its retry interval.

        Returns:
            The in-flight load task, if any
        """
        if self._disposed or self._model_loader is None:
            return None
        if self._state in (ModelState.LOADED, ModelState.LOADING):
            return self._load_task
        if (self._state is ModelState.FAILED and self._failed_at is not None
                and self._clock() - self._failed_at < self.load_retry_interval_s):
            return None

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, model load not scheduled")
            return None
        return self._start_load()

    async def load_model(self) -> bool:
        """
        Load the model now, or join the load already in flight.

        Returns:
            True if a model is loaded afterwards
        """
        if self._disposed or self._model_loader is None:
            return self.model_loaded
        if self._state is ModelState.LOADED:
            return True

        task = self._load_task if self._load_task is not None else self._start_load()
        try:
            return await task
        except asyncio.CancelledError:
            if self._disposed:
                return False
            raise

    def _start_load(self) -> asyncio.Task:
        self._state = ModelState.LOADING
        self._load_task = asyncio.create_task(self._load())
        return self._load_task

    async def _load(self) -> bool:
        self.load_attempts += 1
        try:
            handle = await asyncio.to_thread(self._model_loader)
        except asyncio.CancelledError:
            if not self._disposed:
                self._state = ModelState.NOT_LOADED
            raise
        except Exception as e:
            if self._disposed:
                return False
            self._state = ModelState.FAILED
            self._failed_at = self._clock()
            logger.warning(f"⚠️ Unable to load letter model, falling back to prototypes: {e}")
            return False
        finally:
            self._load_task = None

        if self._disposed:
            logger.debug("Discarding model that finished loading after dispose")
            return False

        self._model_matcher = ModelMatcher(handle, self.model_labels)
        self._state = ModelState.LOADED
        self._failed_at = None
        logger.info("✅ Letter model loaded")
        return True

    def dispose(self) -> None:
        """Drop the model and abandon any in-flight load."""
        self._disposed = True
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        self._load_task = None
        self._model_matcher = None
        self._state = ModelState.NOT_LOADED
