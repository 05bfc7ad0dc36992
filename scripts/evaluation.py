"""Run, score, save and tune the impulse-noise filters on dataset items.

Dataset items are dicts with keys ``name``, ``noisy``, optionally ``clean``
and ``noise_type``. Items are never mutated: filters run on a copy of
``item["noisy"]``.
"""
from pathlib import Path
import itertools
import logging
import math
import time

import numpy as np
import pandas as pd

from denoisers.adaptive_median import AdaptiveMedianConfig
from denoisers.alpha_trimmed import AlphaTrimConfig
from denoisers.dispatch import FilterMethod, apply, resolve_method
from scripts.utils import save_image, compute_metrics

logger = logging.getLogger(__name__)

METHOD_LABELS = {
    FilterMethod.ALPHA_TRIMMED_MEAN: "alpha_trim",
    FilterMethod.ADAPTIVE_MEDIAN: "adaptive_median",
}


def method_label(method) -> str:
    """Short name used in file names and CSV rows."""
    return METHOD_LABELS.get(resolve_method(method), str(method))


def filter_config(method, params: dict = None):
    """Build the config object the selected filter expects from plain params."""
    selected = resolve_method(method)
    if selected is FilterMethod.ALPHA_TRIMMED_MEAN:
        return AlphaTrimConfig.from_dict(params)
    if selected is FilterMethod.ADAPTIVE_MEDIAN:
        return AdaptiveMedianConfig.from_dict(params)
    return None


def run_filter(item: dict, method, params: dict = None):
    """Run the selected filter on a copy of the item's noisy grid.

    Parameters
    ----------
    item: dict
        Dataset item with keys: name, noisy, and optionally clean
    method: int or str
        1 / 'alpha_trim' or 2 / 'adaptive_median'
    params: dict
        Config fields for the selected filter (e.g. radius, trim, max_radius)

    Returns
    -------
    denoised: np.ndarray (uint8 [0,255])
    metrics: dict (mse, psnr, ssim), empty without a clean reference
    elapsed: float (seconds)
    """
    config = filter_config(method, params)
    grid = np.array(item["noisy"], dtype=np.uint8, copy=True)

    t0 = time.perf_counter()
    apply(grid, method,
          alpha_trim_config=config if isinstance(config, AlphaTrimConfig) else None,
          adaptive_median_config=config if isinstance(config, AdaptiveMedianConfig) else None)
    elapsed = time.perf_counter() - t0

    clean = item.get("clean")
    metrics = compute_metrics(clean, grid) if clean is not None else {}
    logger.info("%s on %s took %.3fs", method_label(method), item.get("name"), elapsed)
    return grid, metrics, elapsed


def save_run(item: dict, denoised, method, params: dict = None, output_root: str = "results",
             metrics: dict = None, elapsed: float = None):
    """Save the filtered grid as gray RGB and add a row to the per-noise CSV.

    Rows from different filters carry different ``param_*`` columns, so the
    CSV is rewritten with the union of columns rather than appended blindly.

    Returns
    -------
    image_path: Path
    csv_path: Path
    record: dict (the CSV row)
    """
    params = params or {}
    label = method_label(method)
    noise_type = item.get("noise_type", "unknown")
    out_dir = Path(output_root) / noise_type
    out_dir.mkdir(parents=True, exist_ok=True)

    name = item.get("name")
    image_path = out_dir / f"{name}_{label}.png"
    save_image(denoised, image_path, rgb=True)

    if metrics is None:
        clean = item.get("clean")
        metrics = compute_metrics(clean, denoised) if clean is not None else {}
    record = {**metrics, "image": name, "algorithm": label, "noise_type": noise_type}
    if elapsed is not None:
        record["time_s"] = elapsed
    record.update({f"param_{k}": v for k, v in params.items()})

    csv_path = out_dir / "results_summary.csv"
    df = pd.DataFrame([record])
    if csv_path.exists():
        df = pd.concat([pd.read_csv(csv_path), df], ignore_index=True)
    df.to_csv(csv_path, index=False)
    return image_path, csv_path, record


def parameter_search(item: dict, method, grid: dict, balance_weight=0.6):
    """Try every combination in ``grid`` and keep the best-scoring one.

    score = balance_weight * SSIM + (1 - balance_weight) * min(PSNR / 50, 1).
    Combinations the filter config rejects (e.g. max_radius < initial_radius)
    are skipped.

    Returns
    -------
    best_params: dict (None if nothing could run)
    best_image: ndarray
    results_df: pandas.DataFrame (one row per tried combination, with 'score')
    """
    if item.get("clean") is None:
        raise ValueError("parameter_search needs an item with a clean reference")

    keys = list(grid)
    best = (-math.inf, None, None)
    rows = []
    for combo in itertools.product(*(grid[k] for k in keys)):
        params = dict(zip(keys, combo))
        try:
            denoised, metrics, elapsed = run_filter(item, method, params)
        except ValueError as exc:
            logger.info("Skipping %s: %s", params, exc)
            continue
        score = (balance_weight * metrics["ssim"]
                 + (1.0 - balance_weight) * min(max(metrics["psnr"], 0.0) / 50.0, 1.0))
        rows.append({**metrics, "time_s": elapsed, "score": score,
                     **{f"param_{k}": v for k, v in params.items()}})
        if score > best[0]:
            best = (score, params, denoised)

    return best[1], best[2], pd.DataFrame.from_records(rows)
