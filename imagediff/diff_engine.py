# imagediff/diff_engine.py
"""
Difference pipeline: optional smoothing, pixel or block comparison, then
morphological clean-up.
"""

from typing import Optional
import logging

from imagediff.block_compare import compare_blocks
from imagediff.buffers import DiffResult, PixelBuffer, check_same_dimensions
from imagediff.comparator import compare_pixels
from imagediff.config import DiffConfig
from imagediff.errors import ConfigurationError, DimensionMismatchError, ImageDiffError, InternalError
from imagediff.morphology import filter_regions
from imagediff.progress import ProgressCallback, report
from imagediff.smoothing import box_blur

logging.basicConfig(level=logging.INFO)


class DiffEngine:
    def __init__(self, config: Optional[DiffConfig] = None):
        self.config = config if config is not None else DiffConfig()

    def compute_diff(
        self,
        before: PixelBuffer,
        after: PixelBuffer,
        progress: ProgressCallback = None,
    ) -> DiffResult:
        """
        Run the pipeline on two RGBA buffers of the same size.

        Configuration and dimensions are checked before any stage runs, so a
        rejected request emits no progress. Failures other than
        ConfigurationError / DimensionMismatchError surface as InternalError.
        """
        if not isinstance(self.config, DiffConfig):
            raise ConfigurationError(f"Expected a DiffConfig, got {type(self.config).__name__}")
        config = self.config.validate()
        for name, buffer in (("before", before), ("after", after)):
            if not isinstance(buffer, PixelBuffer):
                raise DimensionMismatchError(f"{name} must be a PixelBuffer, got {type(buffer).__name__}")
        check_same_dimensions(before, after)
        try:
            return self._run(before.pixels, after.pixels, config, progress)
        except ImageDiffError:
            raise
        except Exception as e:
            logging.error(f"Exception during diff computation: {e}")
            raise InternalError(f"Diff computation failed: {e}") from e

    def _run(self, before, after, config: DiffConfig, progress: ProgressCallback) -> DiffResult:
        if config.blur_radius > 0:
            report(progress, "blur-before", 0)
            before = box_blur(before, config.blur_radius, progress, stage="blur-before")
            report(progress, "blur-after", 50)
            after = box_blur(after, config.blur_radius, progress, stage="blur-after")

        if config.use_block_comparison:
            report(progress, "block-comparison", 0)
            raw_mask, count = compare_blocks(
                before, after, config.block_size, config.threshold, progress=progress
            )
        else:
            report(progress, "pixel-comparison", 0)
            raw_mask, count = compare_pixels(
                before,
                after,
                config.threshold,
                use_flexible_matching=config.use_flexible_matching,
                flexible_sensitivity=config.flexible_sensitivity,
                progress=progress,
            )

        report(progress, "morphology", 0)
        cleaned = filter_regions(
            raw_mask, config.min_region_size, dilate_border=config.dilate_border, progress=progress
        )
        logging.info(
            f"Diff computed: {count} differing pixels of {raw_mask.size} "
            f"({'block' if config.use_block_comparison else 'pixel'} comparison)"
        )
        return DiffResult(cleaned_mask=cleaned, raw_mask=raw_mask, differing_count=int(count))
