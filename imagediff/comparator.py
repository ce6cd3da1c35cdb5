# imagediff/comparator.py
"""
Per-pixel perceptual comparison with optional flexible (context-aware) matching.
"""

from typing import Tuple

import cv2
import numpy as np

from imagediff.color import perceptual_delta
from imagediff.progress import ProgressCallback, report, row_bands

# Alpha differences above this bypass the color metric.
ALPHA_TOLERANCE = 1
# A difference this many times the threshold saturates the magnitude at 255.
MAGNITUDE_SATURATION_RATIO = 4.0

_WINDOW_KERNEL = np.ones((3, 3), dtype=np.float64)


def encode_magnitude(delta, threshold: float) -> np.ndarray:
    """
    Map perceptual distances to uint8 magnitudes. Distances at or below the
    threshold encode to 0; above it the value grows with delta/threshold and
    is never 0, so the mask stays nonzero exactly where a difference was found.
    """
    delta = np.asarray(delta, dtype=np.float64)
    ratio = delta / threshold
    scaled = np.floor(255.0 * ratio / MAGNITUDE_SATURATION_RATIO)
    magnitude = np.clip(scaled, 1, 255).astype(np.uint8)
    return np.where(delta > threshold, magnitude, 0).astype(np.uint8)


def neighbour_average(delta: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Mean of each pixel's 3x3 window (centre included), clipped to the image
    bounds. Returns (average, sample_count); counts are always at least 1.
    """
    ones = np.ones_like(delta)
    sums = cv2.filter2D(delta, cv2.CV_64F, _WINDOW_KERNEL, borderType=cv2.BORDER_CONSTANT)
    counts = cv2.filter2D(ones, cv2.CV_64F, _WINDOW_KERNEL, borderType=cv2.BORDER_CONSTANT)
    counts = np.rint(counts)
    average = sums / counts
    return average, counts


def flexible_delta(delta: np.ndarray, threshold: float, sensitivity: float) -> np.ndarray:
    """
    Dampen differences whose neighbourhood is similar:
    w = max(0, 1 - avg/(threshold*sensitivity)), delta' = delta*(1 - 0.5*w).
    """
    average, _ = neighbour_average(delta)
    weight = np.maximum(0.0, 1.0 - average / (threshold * sensitivity))
    return delta * (1.0 - 0.5 * weight)


def compare_pixels(
    before: np.ndarray,
    after: np.ndarray,
    threshold: float = 0.1,
    use_flexible_matching: bool = False,
    flexible_sensitivity: float = 0.8,
    progress: ProgressCallback = None,
) -> Tuple[np.ndarray, int]:
    """
    Compare two (H, W, 4) RGBA arrays pixel by pixel.

    Returns the raw magnitude mask and the number of differing pixels.
    """
    height, width = before.shape[:2]
    delta = perceptual_delta(before[..., :3], after[..., :3])
    if use_flexible_matching:
        delta = flexible_delta(delta, threshold, flexible_sensitivity)
    alpha_diff = np.abs(before[..., 3].astype(np.int16) - after[..., 3].astype(np.int16)) > ALPHA_TOLERANCE

    mask = np.zeros((height, width), dtype=np.uint8)
    diff = 0
    for start, stop in row_bands(height):
        band_alpha = alpha_diff[start:stop]
        band_delta = delta[start:stop]
        band_mask = encode_magnitude(band_delta, threshold)
        band_mask[band_alpha] = 255
        mask[start:stop] = band_mask
        diff += int(np.count_nonzero(band_alpha | (band_delta > threshold)))
        report(progress, "pixel-comparison", stop / height * 100)
    return mask, diff
