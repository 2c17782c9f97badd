"""
Configuration management for the gesture typing pipeline.
"""
import os
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass

from dotenv import load_dotenv


MODEL_PATH_ENV = "AIRTYPE_MODEL_PATH"
LOG_LEVEL_ENV = "AIRTYPE_LOG_LEVEL"


@dataclass
class ClassifierConfig:
    """Letter classifier configuration."""
    model_path: Optional[str]
    model_labels: str
    confidence_scale: float
    load_retry_interval_s: float
    prototypes: Dict[str, List[float]]


@dataclass
class StabilizerConfig:
    """Letter confirmation configuration."""
    confidence_threshold: float
    frames_to_confirm: int


@dataclass
class PipelineConfig:
    """Frame loop configuration."""
    frame_interval_ms: int


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass
class Cfg:
    """Main configuration class."""
    classifier: ClassifierConfig
    stabilizer: StabilizerConfig
    pipeline: PipelineConfig
    logging: LoggingConfig


def load_config(path: Optional[str] = None) -> Cfg:
    """
    Load configuration from YAML file.

    Environment variables (also read from a .env file) override the model
    path and the log level.

    Args:
        path: Path to config file. If None, uses config.default.yaml

    Returns:
        Configuration object with all settings
    """
    if path is None:
        # Use default config file in project root
        project_root = Path(__file__).parent.parent
        path = project_root / "config.default.yaml"

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f)

    try:
        cfg = _dict_to_config(data)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed config {config_path}: {e!r}") from e

    # Relative model paths in the file are relative to the file itself
    if cfg.classifier.model_path and not Path(cfg.classifier.model_path).is_absolute():
        cfg.classifier.model_path = str(config_path.parent / cfg.classifier.model_path)

    load_dotenv()
    model_path = os.getenv(MODEL_PATH_ENV)
    if model_path:
        cfg.classifier.model_path = model_path
    log_level = os.getenv(LOG_LEVEL_ENV)
    if log_level:
        cfg.logging.level = log_level.upper()

    return cfg


def _dict_to_config(data: Dict[str, Any]) -> Cfg:
    """Convert dictionary to configuration object."""
    clf_data = data['classifier']
    classifier = ClassifierConfig(
        model_path=clf_data.get('model_path'),
        model_labels=str(clf_data.get('model_labels', "ABCDEFGHIJKLMNOPQRSTUVWXYZ")),
        confidence_scale=float(clf_data.get('confidence_scale', 5.0)),
        load_retry_interval_s=float(clf_data.get('load_retry_interval_s', 5.0)),
        prototypes={
            str(letter): [float(v) for v in vector]
            for letter, vector in clf_data['prototypes'].items()
        }
    )

    stab_data = data['stabilizer']
    stabilizer = StabilizerConfig(
        confidence_threshold=float(stab_data['confidence_threshold']),
        frames_to_confirm=int(stab_data['frames_to_confirm'])
    )

    pipeline = PipelineConfig(
        frame_interval_ms=int(data['pipeline']['frame_interval_ms'])
    )

    log_data = data.get('logging') or {}
    logging_cfg = LoggingConfig(level=str(log_data.get('level', "INFO")).upper())

    cfg = Cfg(
        classifier=classifier,
        stabilizer=stabilizer,
        pipeline=pipeline,
        logging=logging_cfg
    )
    _validate(cfg)
    return cfg


def _validate(cfg: Cfg) -> None:
    """Raise ValueError for settings the pipeline cannot run with."""
    if not cfg.classifier.prototypes:
        raise ValueError("classifier.prototypes must define at least one letter")
    for letter, vector in cfg.classifier.prototypes.items():
        if len(letter) != 1 or not letter.isupper():
            raise ValueError(f"Prototype key must be a single uppercase letter: {letter!r}")
        if len(vector) != 5:
            raise ValueError(f"Prototype {letter} must have 5 features, got {len(vector)}")
    if not cfg.classifier.model_labels:
        raise ValueError("classifier.model_labels must not be empty")
    if cfg.classifier.load_retry_interval_s < 0:
        raise ValueError("classifier.load_retry_interval_s must be >= 0")
    if not 0.0 <= cfg.stabilizer.confidence_threshold <= 1.0:
        raise ValueError("stabilizer.confidence_threshold must be within [0, 1]")
    if cfg.stabilizer.frames_to_confirm < 1:
        raise ValueError("stabilizer.frames_to_confirm must be >= 1")
    if cfg.pipeline.frame_interval_ms < 0:
        raise ValueError("pipeline.frame_interval_ms must be >= 0")
