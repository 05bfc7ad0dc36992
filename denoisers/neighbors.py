"""Neighborhood collection shared by the impulse-noise filters.

A neighborhood is the square window of a given radius around a pixel with the
pixel itself left out. Positions outside the grid are dropped rather than
padded, so border and corner pixels have fewer neighbors than interior ones.
"""
import numpy as np
from skimage.util import view_as_windows

# Fill value for out-of-bounds window positions; sorts after every uint8 sample.
MISSING = np.iinfo(np.int16).max

# Target size of one banded neighborhood stack (about 8 MB of int16).
BAND_ELEMENTS = 1 << 22


def validate_grid(grid) -> None:
    """Raise ``ValueError`` unless ``grid`` is a non-empty 2D uint8 array."""
    if not isinstance(grid, np.ndarray):
        raise ValueError(f"Grid must be a numpy array, got {type(grid).__name__}")
    if grid.ndim != 2:
        raise ValueError(f"Grid must be 2D, got shape {grid.shape}")
    if grid.shape[0] == 0 or grid.shape[1] == 0:
        raise ValueError(f"Grid must not be empty, got shape {grid.shape}")
    if grid.dtype != np.uint8:
        raise ValueError(f"Grid must be uint8, got {grid.dtype}")


def collect_neighbors(grid: np.ndarray, row: int, col: int, radius: int) -> list:
    """Return the in-bounds neighbors of ``(row, col)`` sorted ascending.

    Parameters
    ----------
    grid: np.ndarray
        2D uint8 grid
    row, col: int
        Center coordinate, must lie inside the grid
    radius: int
        Half-width of the square window (1 -> 3x3, 2 -> 5x5, ...)

    Returns
    -------
    list of int
        Neighbor samples, center excluded. Empty only for a 1x1 grid.
    """
    height, width = grid.shape
    neighbors = []
    for dr in range(-radius, radius + 1):
        r = row + dr
        if r < 0 or r >= height:
            continue
        for dc in range(-radius, radius + 1):
            c = col + dc
            if c < 0 or c >= width:
                continue
            if dr == 0 and dc == 0:
                continue
            neighbors.append(int(grid[r, c]))
    neighbors.sort()
    return neighbors


def neighbor_stack(grid: np.ndarray, radius: int):
    """Collect the sorted neighborhood of every pixel in one vectorized pass.

    Returns
    -------
    values: np.ndarray
        int16 array of shape (H, W, (2*radius+1)**2 - 1). Each row along the
        last axis is sorted ascending; out-of-bounds slots hold ``MISSING``
        and therefore sit at the end.
    counts: np.ndarray
        int array of shape (H, W) with the number of real neighbors per pixel.
    """
    size = 2 * radius + 1
    padded = np.pad(grid.astype(np.int16), radius,
                    mode="constant", constant_values=MISSING)
    windows = view_as_windows(padded, (size, size))
    flat = windows.reshape(grid.shape[0], grid.shape[1], size * size)
    # drop the center sample
    values = np.delete(flat, (size * size) // 2, axis=-1)
    values.sort(axis=-1)
    counts = np.count_nonzero(values != MISSING, axis=-1)
    return values, counts


def take_sorted(values: np.ndarray, index: np.ndarray) -> np.ndarray:
    """Pick ``values[..., index]`` per pixel, with ``index`` clipped to range."""
    index = np.clip(index, 0, values.shape[-1] - 1)
    return np.take_along_axis(values, index[..., None], axis=-1)[..., 0].astype(np.int32)


def row_bands(height: int, width: int, radius: int, band_rows: int = None):
    """Split ``height`` rows into bands for per-band neighborhood stacks.

    Yields ``(start, stop, lo, hi)``: rows ``start:stop`` are the band's own
    rows and ``lo:hi`` adds a ``radius``-row halo clipped to the grid, which
    is all a window of that radius ever reads. Without ``band_rows`` the band
    height keeps each stack near ``BAND_ELEMENTS`` entries.
    """
    if band_rows is None:
        window = (2 * radius + 1) ** 2 - 1
        band_rows = BAND_ELEMENTS // max(1, width * window)
    band_rows = max(1, int(band_rows))
    for start in range(0, height, band_rows):
        stop = min(start + band_rows, height)
        yield start, stop, max(0, start - radius), min(height, stop + radius)
