import csv
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
from scipy.spatial.transform import Rotation

from .box_measure import fit_anchor_box, fit_depth_box, measurement_confidence
from .config import DEFAULT_CONFIG, MeasureConfig
from .io_utils import ensure_dir
from .obb import OrientedBox, as_point_cloud, fit_obb

FULL_CAP_VALUES = (1, 2, 5, 10, 20, 50)
FULL_NOISE_VALUES = (0.0, 0.002, 0.005)

# name -> (dimensions in meters, xyz euler angles in degrees)
SCENARIOS: Dict[str, Tuple[Tuple[float, float, float], Tuple[float, float, float]]] = {
    "shoebox": ((0.33, 0.20, 0.12), (0.0, 0.0, 0.0)),
    "shoebox_tilted": ((0.33, 0.20, 0.12), (15.0, 30.0, 60.0)),
    "mug": ((0.12, 0.09, 0.085), (0.0, 40.0, 0.0)),
    "near_cube": ((0.25, 0.24, 0.235), (10.0, 20.0, 30.0)),
    "flat_panel": ((0.60, 0.40, 0.01), (30.0, 0.0, 45.0)),
}

# The eight box corners, each coordinate +-1/2.
_CORNER_SIGNS = np.array(
    [[sx, sy, sz] for sx in (-0.5, 0.5) for sy in (-0.5, 0.5) for sz in (-0.5, 0.5)],
    dtype=np.float64,
)


@dataclass
class EstimateResult:
    scenario: str
    method: str
    max_iters: int
    noise: float
    runtime_sec: float
    width: float
    height: float
    depth: float
    is_stable: bool
    confidence: float
    point_count: int


def box_corner_points(dims, angles_deg=(0.0, 0.0, 0.0), center=(0.0, 0.0, 0.0)) -> np.ndarray:
    R = Rotation.from_euler("xyz", angles_deg, degrees=True).as_matrix()
    local = _CORNER_SIGNS * np.asarray(dims, dtype=np.float64)
    return local @ R.T + np.asarray(center, dtype=np.float64)


def synthetic_box_points(
    dims,
    angles_deg=(0.0, 0.0, 0.0),
    n: int = 1000,
    noise: float = 0.0,
    center=(0.0, 0.0, 0.0),
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """
    Points scattered over the surface of a rotated box, with optional Gaussian
    noise, standing in for depth samples of a real object.
    """
    if rng is None:
        rng = np.random.default_rng(42)
    if n < 1:
        raise ValueError("n must be a positive integer")
    dims = np.asarray(dims, dtype=np.float64)

    # pick a face axis proportional to face area, then a side
    areas = np.array([dims[1] * dims[2], dims[0] * dims[2], dims[0] * dims[1]])
    total = areas.sum()
    probs = areas / total if total > 0 else np.full(3, 1.0 / 3.0)
    face_axis = rng.choice(3, size=n, p=probs)
    local = rng.uniform(-0.5, 0.5, size=(n, 3))
    side = rng.choice((-0.5, 0.5), size=n)
    local[np.arange(n), face_axis] = side
    local *= dims

    if noise > 0:
        local += rng.normal(scale=noise, size=local.shape)
    R = Rotation.from_euler("xyz", angles_deg, degrees=True).as_matrix()
    return local @ R.T + np.asarray(center, dtype=np.float64)


def estimate_dimensions(
    points,
    scenario: str,
    method: str,
    max_iters: int,
    noise: float = 0.0,
    config: MeasureConfig = DEFAULT_CONFIG,
) -> Optional[EstimateResult]:
    if method not in ("anchor", "depth"):
        raise ValueError("method must be 'anchor' or 'depth'")
    pts = as_point_cloud(points)

    t0 = time.perf_counter()
    if method == "anchor":
        box = fit_anchor_box(pts, config.with_overrides(anchor_max_iters=max_iters))
    else:
        box = fit_depth_box(pts, config.with_overrides(depth_max_iters=max_iters))
    runtime = time.perf_counter() - t0
    if box is None:
        return None

    w, h, d = (float(e) for e in box.extents)
    return EstimateResult(
        scenario=scenario,
        method=method,
        max_iters=max_iters,
        noise=noise,
        runtime_sec=runtime,
        width=w,
        height=h,
        depth=d,
        is_stable=box.is_stable,
        confidence=measurement_confidence(
            box.point_count,
            box.total_variance,
            config.confidence_full_points,
            config.confidence_full_variance,
        ),
        point_count=box.point_count,
    )


def _write_csv(path: str, rows: Iterable[Dict[str, object]]) -> None:
    rows = list(rows)
    if not rows:
        return
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
        writer.writeheader()
        writer.writerows(rows)


def _sorted_error(result: EstimateResult, true_dims) -> np.ndarray:
    est = np.sort([result.width, result.height, result.depth])[::-1]
    ref = np.sort(np.asarray(true_dims, dtype=float))[::-1]
    return np.abs(est - ref)


def run_iteration_cap_study(
    out_dir: str,
    caps: Iterable[int] = FULL_CAP_VALUES,
    noise_values: Iterable[float] = FULL_NOISE_VALUES,
    n_points: int = 1000,
    seed: int = 42,
    config: MeasureConfig = DEFAULT_CONFIG,
) -> Tuple[str, str]:
    """
    Depth-policy fits of every scenario for each iteration cap and noise level.
    Writes the full sweep and a per-cap summary; returns both CSV paths.
    """
    if n_points < config.min_points:
        raise ValueError(f"n_points must be >= {config.min_points}, got {n_points}")
    ensure_dir(out_dir)
    caps = list(caps)
    noise_values = list(noise_values)
    if not caps:
        raise ValueError("at least one iteration cap is required")

    rows: List[Dict[str, object]] = []
    for noise in noise_values:
        for name, (dims, angles) in SCENARIOS.items():
            rng = np.random.default_rng(seed)
            pts = synthetic_box_points(dims, angles, n=n_points, noise=noise, rng=rng)
            for cap in caps:
                r = estimate_dimensions(pts, name, "depth", cap, noise=noise, config=config)
                err = _sorted_error(r, dims)
                rows.append(
                    {
                        "scenario": r.scenario,
                        "max_iters": r.max_iters,
                        "noise_m": r.noise,
                        "runtime_sec": round(r.runtime_sec, 6),
                        "width_m": round(r.width, 4),
                        "height_m": round(r.height, 4),
                        "depth_m": round(r.depth, 4),
                        "max_abs_err_m": round(float(err.max()), 5),
                        "stable": int(r.is_stable),
                        "confidence": round(r.confidence, 4),
                    }
                )

    csv_path = str(Path(out_dir) / "iteration_cap_sweep.csv")
    _write_csv(csv_path, rows)

    by_cap: Dict[int, List[Dict[str, object]]] = {}
    for row in rows:
        by_cap.setdefault(int(row["max_iters"]), []).append(row)

    summary_rows: List[Dict[str, object]] = []
    for cap, vals in sorted(by_cap.items()):
        err = np.array([float(v["max_abs_err_m"]) for v in vals], dtype=float)
        st = np.array([float(v["stable"]) for v in vals], dtype=float)
        rt = np.array([float(v["runtime_sec"]) for v in vals], dtype=float)
        summary_rows.append(
            {
                "max_iters": cap,
                "mean_max_abs_err_m": round(float(err.mean()), 5),
                "worst_abs_err_m": round(float(err.max()), 5),
                "stable_rate": round(float(st.mean()), 3),
                "mean_runtime_sec": round(float(rt.mean()), 6),
            }
        )

    summary_csv = str(Path(out_dir) / "iteration_cap_summary.csv")
    _write_csv(summary_csv, summary_rows)
    return csv_path, summary_csv


def run_policy_comparison(
    out_dir: str,
    n_points: int = 1000,
    noise: float = 0.002,
    seed: int = 42,
    config: MeasureConfig = DEFAULT_CONFIG,
) -> str:
    """
    Fit the same clouds with the anchor convention (cross-product third axis,
    unsorted sizes) and the depth convention (iterated third axis, sorted
    sizes) and record how far apart they land.
    """
    if n_points < config.min_points:
        raise ValueError(f"n_points must be >= {config.min_points}, got {n_points}")
    ensure_dir(out_dir)
    rows: List[Dict[str, object]] = []
    for name, (dims, angles) in SCENARIOS.items():
        rng = np.random.default_rng(seed)
        pts = synthetic_box_points(dims, angles, n=n_points, noise=noise, rng=rng)
        a = fit_anchor_box(pts, config)
        d = fit_depth_box(pts, config)
        sorted_a = np.sort(a.extents)[::-1]
        sorted_d = np.sort(d.extents)[::-1]
        alignment = np.abs(np.sum(a.axes * d.axes, axis=1))
        rows.append(
            {
                "scenario": name,
                "anchor_dims_m": " ".join(f"{v:.4f}" for v in a.extents),
                "depth_dims_sorted_m": " ".join(f"{v:.4f}" for v in sorted_d),
                "max_dim_diff_m": round(float(np.abs(sorted_a - sorted_d).max()), 6),
                "center_diff_m": round(float(np.linalg.norm(a.center - d.center)), 6),
                "min_axis_alignment": round(float(alignment.min()), 6),
                "anchor_stable": int(a.is_stable),
                "depth_stable": int(d.is_stable),
            }
        )

    csv_path = str(Path(out_dir) / "policy_comparison.csv")
    _write_csv(csv_path, rows)
    return csv_path


# corner index pairs differing in exactly one sign bit
_BOX_EDGES = [(i, j) for i in range(8) for j in range(i + 1, 8) if bin(i ^ j).count("1") == 1]


def save_obb_visualization(points, out_path: str, box: Optional[OrientedBox] = None, title: str = "") -> str:
    pts = as_point_cloud(points)
    if box is None:
        box = fit_obb(pts)

    fig = plt.figure(figsize=(6.0, 5.5))
    ax = fig.add_subplot(projection="3d")
    ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], s=2, c="tab:blue", alpha=0.5)
    if box is not None:
        c = box.corners()
        for i, j in _BOX_EDGES:
            ax.plot(*zip(c[i], c[j]), color="tab:red", linewidth=1.2)
        for axis, ext, color in zip(box.axes, box.extents, ("r", "g", "b")):
            tip = box.center + axis * ext / 2.0
            ax.plot(*zip(box.center, tip), color=color, linewidth=2.0)
        dims = " x ".join(f"{e * 100:.1f}" for e in box.extents)
        ax.set_title(f"{title}\n{dims} cm, stable={box.is_stable}".strip())
    else:
        ax.set_title(f"{title}\nnot enough points".strip())
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.set_zlabel("z")

    fig.tight_layout()
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path


def run_full_study(out_dir: str) -> Dict[str, str]:
    sweep_csv, summary_csv = run_iteration_cap_study(out_dir)
    compare_csv = run_policy_comparison(out_dir)
    return {
        "cap_sweep_csv": sweep_csv,
        "cap_summary_csv": summary_csv,
        "policy_compare_csv": compare_csv,
    }
