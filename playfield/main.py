"""Command-line preview runner: start an activity preview and optionally hand out items."""

from __future__ import annotations

import argparse
import json
import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from playfield.schemas.distribution import DistributionMode
from playfield.services.distribution import DistributionEngine, default_distribution_config
from playfield.services.handout import assign_handout
from playfield.services.preview_engine import PreviewActivity, PreviewExecutionEngine
from playfield.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def load_activity(path: Path) -> PreviewActivity:
    """Read a YAML (or JSON) activity definition."""
    with Path(path).open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Activity file {path} must contain a mapping")
    return PreviewActivity.from_payload(data)


def run_preview(
    activity: PreviewActivity,
    *,
    source: Optional[str] = None,
    target_slide: Optional[str] = None,
    mode: Optional[str] = None,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    engine = PreviewExecutionEngine(activity)
    engine.start()
    result: Dict[str, Any] = {"success": True, "warnings": [], "errors": []}

    if source:
        slide_id = target_slide or (activity.slides[-1].id if activity.slides else "")
        if not slide_id:
            raise ValueError("A target slide is required when the activity has no slides")
        overrides = {"mode": mode} if mode else {}
        handout = assign_handout(
            engine,
            slide_id,
            source,
            default_distribution_config(**overrides),
            engine.get_mock_participants(),
            distribution=DistributionEngine(rng=random.Random(seed)),
        )
        result.update(
            success=handout.success,
            warnings=list(handout.warnings),
            errors=list(handout.errors),
        )

    result["state"] = engine.get_state()
    result["events"] = [entry.event for entry in engine.get_event_log()]
    return result


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a playfield activity preview.")
    parser.add_argument("activity", type=Path, help="Path to the activity YAML/JSON file")
    parser.add_argument("--source", help="Data source to hand out, e.g. 'slide-1.responses'")
    parser.add_argument("--slide", help="Slide that receives the assignments (default: last slide)")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in DistributionMode],
        help="Distribution mode (default: from config)",
    )
    parser.add_argument("--seed", type=int, help="Seed for randomized distribution modes")
    parser.add_argument("--log-dir", type=Path, help="Log directory (default: $PLAYFIELD_LOG_DIR or ./logs)")
    args = parser.parse_args(argv)

    setup_logging(args.log_dir)

    try:
        activity = load_activity(args.activity)
        result = run_preview(
            activity,
            source=args.source,
            target_slide=args.slide,
            mode=args.mode,
            seed=args.seed,
        )
    except (OSError, yaml.YAMLError, ValueError) as exc:
        logger.error("Preview failed for %s: %s", args.activity, exc)
        raise SystemExit(1) from exc

    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
