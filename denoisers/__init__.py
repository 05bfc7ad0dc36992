"""Impulse-noise denoisers for 8-bit grayscale grids."""
from denoisers.adaptive_median import AdaptiveMedianConfig, adaptive_median
from denoisers.alpha_trimmed import AlphaTrimConfig, alpha_trim
from denoisers.dispatch import FilterMethod, apply
from denoisers.neighbors import collect_neighbors

__all__ = [
    "AdaptiveMedianConfig",
    "AlphaTrimConfig",
    "FilterMethod",
    "adaptive_median",
    "alpha_trim",
    "apply",
    "collect_neighbors",
]
