"""Input coercion shared by the denoise wrappers and filter configs."""
import numbers

import numpy as np


def to_uint8(image) -> np.ndarray:
    """Copy ``image`` into a uint8 grid.

    Float input in [0,1] is rescaled to [0,255]; other values are clipped.
    Integer input is only clipped, so a 0/1 mask stays 0/1.
    """
    img = np.asarray(image)
    if img.dtype == np.uint8:
        return img.copy()
    if np.issubdtype(img.dtype, np.floating):
        img = img.astype(np.float64)
        if img.size and img.max() <= 1.0:
            img = img * 255.0
    return np.clip(img, 0, 255).astype(np.uint8)


def as_int(name: str, value) -> int:
    """Return ``value`` as an int, or raise ``ValueError`` if it is not integral."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if int(value) != value:
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)
