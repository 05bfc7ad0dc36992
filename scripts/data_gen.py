"""Synthetic salt-and-pepper dataset generator for uint8 grayscale grids.

This module provides a small demo generator that returns a list of dicts with keys:
- name: str
- clean: numpy array (uint8, 0-255)
- noisy: numpy array (uint8, 0-255)
- noise_type: str

The generator does not save files; `main.py` handles saving.
"""
from skimage import data
import numpy as np

from scripts.utils import to_grayscale


def add_salt_pepper(image, amount=0.05, seed=0, salt_ratio=0.5):
    """Return a copy of ``image`` with ``amount`` of its pixels set to 0 or 255.

    Parameters
    ----------
    image: np.ndarray
        uint8 grid
    amount: float
        Fraction of pixels hit by impulses
    seed: int
        Random seed
    salt_ratio: float
        Fraction of the impulses that are salt (255); the rest are pepper (0)
    """
    rng = np.random.RandomState(seed)
    out = np.array(image, dtype=np.uint8, copy=True)
    num_pixels = int(amount * out.size)
    # distinct positions so the requested amount is exact
    flat_idx = rng.choice(out.size, size=num_pixels, replace=False)
    n_salt = int(round(num_pixels * salt_ratio))
    out.flat[flat_idx[:n_salt]] = 255
    out.flat[flat_idx[n_salt:]] = 0
    return out


def make_bars(size=256, num_bars=8, low=40, high=200):
    x = np.full((size, size), low, dtype=np.uint8)
    bar_w = size // (2 * num_bars)
    for i in range(num_bars):
        start = i * 2 * bar_w
        x[:, start:start + bar_w] = high
    return x


def make_circles(size=256, num_circles=8):
    Y, X = np.ogrid[:size, :size]
    center = (size // 2, size // 2)
    R = np.sqrt((Y - center[0]) ** 2 + (X - center[1]) ** 2)
    img_c = np.full((size, size), 30, dtype=np.uint8)
    max_r = size // 2
    for i in range(num_circles):
        r0 = (i / num_circles) * max_r
        r1 = ((i + 0.5) / num_circles) * max_r
        img_c[(R >= r0) & (R < r1)] = 220 if i % 2 == 0 else 128
    return img_c


def generate_demo_dataset(amounts=(0.05, 0.2)):
    """Return a small dataset list of dicts with clean and noisy grids.

    Parameters
    ----------
    amounts: sequence of float
        Impulse densities; one noisy variant per image and amount.

    Returns
    -------
    list of dict
    """
    images = {
        "astronaut": to_grayscale(data.astronaut()),
        "bars": make_bars(256, num_bars=8),
        "circles": make_circles(256, num_circles=8),
    }

    dataset = []
    for seed, (name, clean) in enumerate(images.items()):
        for amount in amounts:
            pct = int(round(amount * 100))
            dataset.append({
                "name": f"{name}_sp{pct}",
                "clean": clean,
                "noisy": add_salt_pepper(clean, amount=amount, seed=seed * 10 + pct),
                "noise_type": "sp",
            })
    return dataset
