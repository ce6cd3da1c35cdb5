# imagediff/morphology.py
"""
Morphological post-filter: 3x3 dilation, 4-connected component labeling and
suppression of regions smaller than a minimum size.
"""

from typing import Dict, Tuple

import cv2
import numpy as np

from imagediff.progress import ProgressCallback, report, row_bands

_KERNEL = np.ones((3, 3), dtype=np.uint8)


def dilate(mask: np.ndarray, dilate_border: bool = False, progress: ProgressCallback = None) -> np.ndarray:
    """
    Replace each pixel by the maximum of its 3x3 neighbourhood.

    Unless `dilate_border` is set, only interior pixels are processed and the
    outermost rows and columns of the result stay 0 whatever the input holds
    there, so differences touching the image edge can be lost.
    """
    height, width = mask.shape
    dilated = np.zeros_like(mask, dtype=np.uint8)
    if dilate_border:
        first, last = 0, height
    else:
        first, last = 1, height - 1
        if height < 3 or width < 3:
            return dilated
    rows = last - first
    for start, stop in row_bands(rows):
        y0, y1 = first + start, first + stop
        # One row of context on each side, clipped to the image.
        lo, hi = max(y0 - 1, 0), min(y1 + 1, height)
        slab = cv2.dilate(mask[lo:hi], _KERNEL, borderType=cv2.BORDER_CONSTANT, borderValue=0)
        dilated[y0:y1] = slab[y0 - lo:y1 - lo]
        report(progress, "morphology", stop / rows * 100)
    if not dilate_border:
        dilated[:, 0] = 0
        dilated[:, -1] = 0
    return dilated


def flood_fill(foreground, labels, width: int, height: int, start: int, label: int) -> int:
    """
    Label the 4-connected foreground component containing `start`. Uses an
    explicit stack so large regions do not hit the recursion limit.
    Returns the number of pixels labeled.
    """
    stack = [start]
    size = 0
    while stack:
        idx = stack.pop()
        if labels[idx] != 0 or not foreground[idx]:
            continue
        labels[idx] = label
        size += 1
        x = idx % width
        y = idx // width
        if x > 0:
            stack.append(idx - 1)
        if x < width - 1:
            stack.append(idx + 1)
        if y > 0:
            stack.append(idx - width)
        if y < height - 1:
            stack.append(idx + width)
    return size


def label_regions(mask: np.ndarray) -> Tuple[np.ndarray, Dict[int, int]]:
    """
    Label 4-connected groups of nonzero pixels in scan order starting at 1.
    Returns the (H, W) uint32 label map and a label -> pixel count mapping.
    """
    height, width = mask.shape
    foreground = (mask.ravel() > 0).tolist()
    labels = [0] * (height * width)
    sizes = {}
    next_label = 1
    for i, is_set in enumerate(foreground):
        if is_set and labels[i] == 0:
            sizes[next_label] = flood_fill(foreground, labels, width, height, i, next_label)
            next_label += 1
    return np.array(labels, dtype=np.uint32).reshape(height, width), sizes


def filter_regions(
    mask: np.ndarray,
    min_region_size: int,
    dilate_border: bool = False,
    progress: ProgressCallback = None,
) -> np.ndarray:
    """
    Turn a raw (binary or graded) mask into a cleaned 0/255 mask: dilate,
    label, and keep only regions of at least `min_region_size` pixels.
    """
    dilated = dilate(mask, dilate_border=dilate_border, progress=progress)
    labels, sizes = label_regions(dilated)
    keep = np.zeros(len(sizes) + 1, dtype=bool)
    for label, size in sizes.items():
        keep[label] = size >= min_region_size
    return np.where(keep[labels], 255, 0).astype(np.uint8)
