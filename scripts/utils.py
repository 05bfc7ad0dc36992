"""Utility functions: grayscale decode/render, metrics and IO helpers."""
import numpy as np
from PIL import Image
from skimage.metrics import peak_signal_noise_ratio, structural_similarity
from skimage.io import imsave


def to_grayscale(pixels) -> np.ndarray:
    """Reduce decoded pixels to a uint8 grid.

    Single-channel input is taken as-is. Multi-channel input uses the
    truncating mean of the first three channels, (R + G + B) // 3; alpha is
    ignored.
    """
    arr = np.asarray(pixels)
    if arr.ndim == 2:
        return arr.astype(np.uint8)
    if arr.ndim == 3 and arr.shape[2] >= 3:
        rgb = arr[..., :3].astype(np.int32)
        return (rgb.sum(axis=-1) // 3).astype(np.uint8)
    raise ValueError(f"Unsupported pixel layout with shape {arr.shape}")


def load_grayscale(path) -> np.ndarray:
    """Decode an image file into a uint8 grid.

    Palette and 8-bit gray images keep their raw index/intensity values;
    everything else is converted to RGB and averaged.
    """
    with Image.open(path) as img:
        if img.mode in ("P", "L"):
            return np.array(img, dtype=np.uint8)
        return to_grayscale(np.array(img.convert("RGB")))


def to_rgb(grid: np.ndarray) -> np.ndarray:
    """Render a grid as a gray RGB image (all three channels equal)."""
    grid = np.asarray(grid, dtype=np.uint8)
    return np.repeat(grid[..., None], 3, axis=-1)


def _normalize_to_float(img):
    """Normalize image to [0,1] float for metric computation."""
    if img.dtype == np.uint8:
        return img.astype(np.float32) / 255.0
    img = img.astype(np.float32)
    if img.max() > 1.0:
        return img / 255.0
    return img


def mse(a: np.ndarray, b: np.ndarray) -> float:
    a = _normalize_to_float(a)
    b = _normalize_to_float(b)
    return float(np.mean((a - b) ** 2))


def psnr(a: np.ndarray, b: np.ndarray) -> float:
    a = _normalize_to_float(a)
    b = _normalize_to_float(b)
    return float(peak_signal_noise_ratio(a, b, data_range=1.0))


def ssim(a: np.ndarray, b: np.ndarray) -> float:
    a = _normalize_to_float(a)
    b = _normalize_to_float(b)
    return float(structural_similarity(a, b, data_range=1.0))


def compute_metrics(clean: np.ndarray, denoised: np.ndarray) -> dict:
    return {"mse": mse(clean, denoised), "psnr": psnr(clean, denoised), "ssim": ssim(clean, denoised)}


def save_image(img: np.ndarray, path, rgb: bool = False):
    """Save image to file. Grids can be written as gray RGB with ``rgb=True``."""
    if img.dtype != np.uint8:
        img = (_normalize_to_float(img) * 255).astype('uint8')
    if rgb:
        img = to_rgb(img)
    imsave(str(path), img, check_contrast=False)
