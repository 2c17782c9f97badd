"""
Replay recorded hand observations through the gesture typing pipeline.

Each line of the input file is a JSON list of 21 landmarks ({"x", "y", "z"}
objects or [x, y, z] lists) or null when no hand was detected.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional

from .config import load_config
from .features import landmark_coords
from .pipeline import GesturePipeline
from .text_buffer import LoggingStatusSink, TextBuffer
from .types import Landmark

logger = logging.getLogger(__name__)


def _to_landmark(point) -> Landmark:
    x, y, z = landmark_coords(point)
    return Landmark(x=x, y=y, z=z)


def read_observations(path: Path) -> Iterator[Optional[List[Landmark]]]:
    """Yield one observation per non-empty line of a JSON lines file."""
    with open(path, 'r') as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping line {line_no}: {e}")
                continue
            if data is None or data == []:
                yield None
                continue
            if not isinstance(data, list):
                logger.warning(f"Skipping line {line_no}: expected a list of landmarks or null")
                continue
            yield [_to_landmark(point) for point in data]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Type text from recorded hand landmarks")
    parser.add_argument("observations", type=Path, help="JSON lines file of hand observations")
    parser.add_argument("--config", default=None, help="Path to YAML config (default: config.default.yaml)")
    parser.add_argument("--model", default=None, help="Saved xgboost letter model, overrides the config")
    parser.add_argument("--no-model", action="store_true", help="Use the prototype matcher only")
    parser.add_argument("--interval-ms", type=int, default=None, help="Pause between frames")
    return parser


async def run_replay(args: argparse.Namespace) -> str:
    """Run the replay and return the typed text."""
    cfg = load_config(args.config)
    if args.model:
        cfg.classifier.model_path = args.model
    if args.no_model:
        cfg.classifier.model_path = None
    interval_ms = args.interval_ms if args.interval_ms is not None else cfg.pipeline.frame_interval_ms

    logging.getLogger().setLevel(cfg.logging.level)

    text_buffer = TextBuffer()
    status = LoggingStatusSink()
    pipeline = GesturePipeline.from_config(cfg, text_buffer, status)

    logger.info(f"▶️ Replaying {args.observations}")
    async with pipeline:
        await pipeline.run(read_observations(args.observations), frame_interval_s=interval_ms / 1000.0)

    return text_buffer.text


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the replay runner."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)

    if not args.observations.exists():
        logger.error(f"❌ Observation file not found: {args.observations}")
        return 1

    try:
        text = asyncio.run(run_replay(args))
    except KeyboardInterrupt:
        logger.info("Replay interrupted by user")
        return 130
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 1

    print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
