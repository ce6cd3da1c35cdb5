# imagediff/block_compare.py
"""
Coarse comparison on block-averaged colors, for textured surfaces where
per-pixel comparison is too noisy.
"""

import math
from typing import Tuple

import numpy as np

from imagediff.color import perceptual_delta
from imagediff.comparator import encode_magnitude
from imagediff.progress import PROGRESS_INTERVAL, ProgressCallback, report


def block_mean_rgb(pixels: np.ndarray) -> np.ndarray:
    return pixels[..., :3].reshape(-1, 3).astype(np.float64).mean(axis=0)


def compare_blocks(
    before: np.ndarray,
    after: np.ndarray,
    block_size: int = 16,
    threshold: float = 0.1,
    progress: ProgressCallback = None,
) -> Tuple[np.ndarray, int]:
    """
    Classify each block_size x block_size block (clipped at the right and
    bottom edges) by the YIQ distance between its mean colors in both images.

    Returns the mask and the total pixel area of differing blocks.
    """
    height, width = before.shape[:2]
    total_blocks = math.ceil(height / block_size) * math.ceil(width / block_size)
    mask = np.zeros((height, width), dtype=np.uint8)
    diff = 0
    processed = 0
    for by in range(0, height, block_size):
        for bx in range(0, width, block_size):
            rows = slice(by, min(by + block_size, height))
            cols = slice(bx, min(bx + block_size, width))
            block_a = before[rows, cols]
            block_b = after[rows, cols]
            delta = float(perceptual_delta(block_mean_rgb(block_a), block_mean_rgb(block_b)))
            if delta > threshold:
                mask[rows, cols] = encode_magnitude(delta, threshold)
                diff += block_a.shape[0] * block_a.shape[1]
            processed += 1
            if processed % PROGRESS_INTERVAL == 0:
                report(progress, "block-comparison", processed / total_blocks * 100)
    return mask, diff
