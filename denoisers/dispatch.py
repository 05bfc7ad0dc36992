"""Select an impulse-noise filter by method id and apply it in place."""
from enum import IntEnum
import logging

import numpy as np

from denoisers.adaptive_median import AdaptiveMedianConfig, adaptive_median
from denoisers.alpha_trimmed import AlphaTrimConfig, alpha_trim
from denoisers.neighbors import validate_grid

logger = logging.getLogger(__name__)


class FilterMethod(IntEnum):
    ALPHA_TRIMMED_MEAN = 1
    ADAPTIVE_MEDIAN = 2


METHOD_NAMES = {
    "alpha_trim": FilterMethod.ALPHA_TRIMMED_MEAN,
    "alpha_trimmed_mean": FilterMethod.ALPHA_TRIMMED_MEAN,
    "adaptive_median": FilterMethod.ADAPTIVE_MEDIAN,
}


def resolve_method(method):
    """Map a method id or name to a ``FilterMethod``; ``None`` if unknown."""
    if isinstance(method, str):
        key = method.strip().lower()
        if key.isdigit():
            method = int(key)
        else:
            return METHOD_NAMES.get(key)
    try:
        return FilterMethod(method)
    except ValueError:
        return None


def apply(grid: np.ndarray, method, alpha_trim_config: AlphaTrimConfig = None,
          adaptive_median_config: AdaptiveMedianConfig = None) -> None:
    """Filter ``grid`` in place with the selected method.

    Parameters
    ----------
    grid: np.ndarray
        2D uint8 grid, mutated in place
    method: int or str
        1 / 'alpha_trim' or 2 / 'adaptive_median'. Anything else leaves the
        grid untouched.
    """
    validate_grid(grid)
    selected = resolve_method(method)
    if selected is FilterMethod.ALPHA_TRIMMED_MEAN:
        alpha_trim(grid, alpha_trim_config)
    elif selected is FilterMethod.ADAPTIVE_MEDIAN:
        adaptive_median(grid, adaptive_median_config)
    else:
        logger.warning("Unknown filter method %r, grid left unchanged", method)
