import argparse
import logging
import os

import numpy as np

from ar_measure.box_measure import fit_depth_box
from ar_measure.config import load_config
from ar_measure.io_utils import ensure_dir, load_points
from ar_measure.studies import (
    FULL_CAP_VALUES,
    FULL_NOISE_VALUES,
    SCENARIOS,
    run_iteration_cap_study,
    run_policy_comparison,
    save_obb_visualization,
    synthetic_box_points,
)


def _parse_floats(text):
    return tuple(float(x.strip()) for x in text.split(",") if x.strip())


def _parse_ints(text):
    return tuple(int(x.strip()) for x in text.split(",") if x.strip())


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run OBB fitting studies on synthetic or recorded point clouds")
    parser.add_argument("--mode", choices=["all", "caps", "compare", "viz"], default="all")
    parser.add_argument("--out_dir", type=str, default="results")
    parser.add_argument("--config", type=str, default="ar_measure.json")
    parser.add_argument("--caps", type=str, default=",".join(str(c) for c in FULL_CAP_VALUES))
    parser.add_argument("--noise", type=str, default=",".join(str(n) for n in FULL_NOISE_VALUES))
    parser.add_argument("--n_points", type=int, default=1000)
    parser.add_argument("--scenario", choices=sorted(SCENARIOS), default="shoebox_tilted")
    parser.add_argument("--points", type=str, default="", help=".npy/.csv/.txt/.mat point cloud to visualize")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("matplotlib").setLevel(logging.WARNING)

    config = load_config(args.config)
    if args.n_points < config.min_points:
        parser.error(f"--n_points must be >= {config.min_points}")
    ensure_dir(args.out_dir)

    if args.mode in ("all", "caps"):
        sweep_csv, summary_csv = run_iteration_cap_study(
            out_dir=args.out_dir,
            caps=_parse_ints(args.caps),
            noise_values=_parse_floats(args.noise),
            n_points=args.n_points,
            seed=args.seed,
            config=config,
        )
        print(f"[CAPS] sweep:   {sweep_csv}")
        print(f"[CAPS] summary: {summary_csv}")

    if args.mode in ("all", "compare"):
        compare_csv = run_policy_comparison(
            out_dir=args.out_dir, n_points=args.n_points, seed=args.seed, config=config
        )
        print(f"[COMPARE] {compare_csv}")

    if args.mode in ("all", "viz"):
        if args.points:
            pts = load_points(args.points)
            name = os.path.splitext(os.path.basename(args.points))[0]
        else:
            dims, angles = SCENARIOS[args.scenario]
            pts = synthetic_box_points(
                dims, angles, n=args.n_points, noise=0.002, rng=np.random.default_rng(args.seed)
            )
            name = args.scenario
        box = fit_depth_box(pts, config)
        out_png = os.path.join(args.out_dir, f"obb_{name}.png")
        print(f"[VIZ] {save_obb_visualization(pts, out_png, box=box, title=name)}")
