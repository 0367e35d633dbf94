#!/usr/bin/env python3
"""Grade one keypoint file against a reference keypoint file."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "embedded"))

from posemirror.vision.evaluator import ScoringCalibration, evaluate  # noqa: E402
from posemirror.vision.keypoints import load_keypoints  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compare a pose against a reference pose")
    parser.add_argument("current", type=Path, help="JSON file with the current keypoints")
    parser.add_argument("reference", type=Path, help="JSON file with the reference keypoints")
    parser.add_argument("--silhouette-weight", type=float, default=0.7)
    parser.add_argument("--joint-angle-weight", type=float, default=0.3)
    parser.add_argument("--scale-px", type=float, default=100.0, help="Distance (px) at which point similarity reaches zero")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    current = load_keypoints(args.current)
    reference = load_keypoints(args.reference)
    calibration = ScoringCalibration(
        silhouette_weight=args.silhouette_weight,
        joint_angle_weight=args.joint_angle_weight,
        silhouette_scale_px=args.scale_px,
    )
    score = evaluate(current, reference, calibration)
    print(json.dumps(score.to_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
