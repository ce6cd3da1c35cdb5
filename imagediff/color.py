# imagediff/color.py
"""
YIQ perceptual color model.
"""

import numpy as np

# Rows produce Y, I, Q from (R, G, B).
YIQ_MATRIX = np.array([
    [0.29889531, 0.58662247, 0.11448223],
    [0.59597799, -0.27417610, -0.32180189],
    [0.21147017, -0.52261711, 0.31114694],
])


def rgb_to_y(r, g, b):
    return r * 0.29889531 + g * 0.58662247 + b * 0.11448223


def rgb_to_i(r, g, b):
    return r * 0.59597799 - g * 0.27417610 - b * 0.32180189


def rgb_to_q(r, g, b):
    return r * 0.21147017 - g * 0.52261711 + b * 0.31114694


def rgb_to_yiq(rgb: np.ndarray) -> np.ndarray:
    """Convert (..., 3) RGB values in 0-255 to (..., 3) YIQ as float64."""
    return np.asarray(rgb, dtype=np.float64) @ YIQ_MATRIX.T


def perceptual_delta(rgb_a: np.ndarray, rgb_b: np.ndarray) -> np.ndarray:
    """
    Euclidean distance in YIQ space between two RGB arrays of the same shape.
    The transform is linear, so the difference is converted once.
    """
    diff = np.asarray(rgb_a, dtype=np.float64) - np.asarray(rgb_b, dtype=np.float64)
    yiq = rgb_to_yiq(diff)
    return np.sqrt(np.sum(yiq * yiq, axis=-1))
