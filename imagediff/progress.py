# imagediff/progress.py
"""
Progress reporting shared by the pipeline stages.
"""

from typing import Callable, Optional

ProgressCallback = Optional[Callable[[str, float], None]]

# Stages report after every this many rows (or blocks).
PROGRESS_INTERVAL = 10


def report(progress: ProgressCallback, stage: str, value: float) -> None:
    if progress is not None:
        progress(stage, float(value))


def row_bands(height: int, band: int = PROGRESS_INTERVAL):
    """Yield (start, stop) row ranges of at most `band` rows covering [0, height)."""
    for start in range(0, height, band):
        yield start, min(start + band, height)
