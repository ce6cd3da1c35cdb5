import unittest
from unittest import mock
import numpy as np
from imagediff.buffers import PixelBuffer
from imagediff.config import DiffConfig
from imagediff.diff_engine import DiffEngine
from imagediff.errors import ConfigurationError, DimensionMismatchError, InternalError

def solid(width, height, rgba=(90, 140, 200, 255)):
    return PixelBuffer.from_array(np.full((height, width, 4), rgba, dtype=np.uint8))

class TestDiffEngine(unittest.TestCase):
    def setUp(self):
        self.engine = DiffEngine()
        self.imgA = solid(100, 100, (0, 0, 0, 255))
        pixels = self.imgA.pixels.copy()
        pixels[50:60, 50:60, :3] = 255
        self.imgB = PixelBuffer.from_array(pixels)

    def test_diff(self):
        result = self.engine.compute_diff(self.imgA, self.imgB)
        self.assertEqual(result.cleaned_mask.shape, (100, 100))
        self.assertEqual(result.raw_mask.shape, (100, 100))
        self.assertEqual(result.differing_count, 100)
        self.assertTrue(np.all(result.cleaned_mask[50:60, 50:60] == 255))
        self.assertEqual(np.count_nonzero(result.cleaned_mask), 144)

    def test_identical_images(self):
        for threshold in (0.1, 5.0, 100.0):
            result = DiffEngine(DiffConfig(threshold=threshold)).compute_diff(self.imgA, solid(100, 100, (0, 0, 0, 255)))
            self.assertEqual(result.differing_count, 0)
            self.assertFalse(np.any(result.cleaned_mask))

    def test_single_pixel_scenario(self):
        imgA = solid(4, 4)
        pixels = imgA.pixels.copy()
        pixels[2, 2, 0] += 100
        imgB = PixelBuffer.from_array(pixels)
        config = DiffConfig(threshold=0.1, min_region_size=1)
        result = DiffEngine(config).compute_diff(imgA, imgB)
        self.assertEqual(result.differing_count, 1)
        self.assertEqual(result.raw_mask[2, 2], 255)
        expected = np.zeros((4, 4), dtype=np.uint8)
        expected[1:3, 1:3] = 255  # edge rows/columns are not dilated
        np.testing.assert_array_equal(result.cleaned_mask, expected)

        result = DiffEngine(DiffConfig(threshold=0.1, min_region_size=1, dilate_border=True)).compute_diff(imgA, imgB)
        expected[1:4, 1:4] = 255
        np.testing.assert_array_equal(result.cleaned_mask, expected)

    def test_alpha_only_difference(self):
        pixels = self.imgA.pixels.copy()
        pixels[10, 10, 3] = 0
        pixels[70, 20, 3] = 100
        result = DiffEngine(DiffConfig(threshold=500.0)).compute_diff(self.imgA, PixelBuffer.from_array(pixels))
        self.assertEqual(result.differing_count, 2)
        self.assertEqual(np.count_nonzero(result.raw_mask == 255), 2)
        self.assertEqual(result.raw_mask[10, 10], 255)

    def test_dimension_mismatch_emits_no_progress(self):
        calls = []
        with self.assertRaises(DimensionMismatchError):
            self.engine.compute_diff(solid(4, 4), solid(4, 5), progress=lambda s, p: calls.append(s))
        self.assertEqual(calls, [])

    def test_non_buffer_input_rejected(self):
        calls = []
        with self.assertRaises(DimensionMismatchError):
            self.engine.compute_diff(self.imgA, self.imgB.pixels, progress=lambda s, p: calls.append(s))
        self.assertEqual(calls, [])

    def test_configuration_errors(self):
        bad = [
            DiffConfig(threshold=0),
            DiffConfig(threshold=-1.0),
            DiffConfig(blur_radius=-1),
            DiffConfig(use_block_comparison=True, block_size=0),
            DiffConfig(min_region_size=-3),
            DiffConfig(use_flexible_matching=True, flexible_sensitivity=0),
        ]
        for config in bad:
            calls = []
            with self.assertRaises(ConfigurationError):
                DiffEngine(config).compute_diff(solid(4, 4), solid(4, 4), progress=lambda s, p: calls.append(s))
            self.assertEqual(calls, [])

    def test_block_size_ignored_without_block_comparison(self):
        result = DiffEngine(DiffConfig(block_size=0)).compute_diff(solid(4, 4), solid(4, 4))
        self.assertEqual(result.differing_count, 0)

    def test_blur_radius_zero_matches_no_blur(self):
        plain = DiffEngine(DiffConfig()).compute_diff(self.imgA, self.imgB)
        zero = DiffEngine(DiffConfig(blur_radius=0)).compute_diff(self.imgA, self.imgB)
        np.testing.assert_array_equal(plain.cleaned_mask, zero.cleaned_mask)
        np.testing.assert_array_equal(plain.raw_mask, zero.raw_mask)
        self.assertEqual(plain.differing_count, zero.differing_count)

    def test_stage_order(self):
        stages = []
        config = DiffConfig(blur_radius=1, use_block_comparison=True, block_size=4)
        DiffEngine(config).compute_diff(self.imgA, self.imgB, progress=lambda s, p: stages.append(s))
        order = []
        for stage in stages:
            if not order or order[-1] != stage:
                order.append(stage)
        self.assertEqual(order, ["blur-before", "blur-after", "block-comparison", "morphology"])

    def test_block_pipeline(self):
        config = DiffConfig(use_block_comparison=True, block_size=10, threshold=1.0)
        result = DiffEngine(config).compute_diff(self.imgA, self.imgB)
        self.assertEqual(result.differing_count, 100)
        self.assertTrue(np.all(result.raw_mask[50:60, 50:60] > 0))

    def test_unexpected_failure_is_internal_error(self):
        with mock.patch("imagediff.diff_engine.compare_pixels", side_effect=ValueError("boom")):
            with self.assertRaises(InternalError):
                self.engine.compute_diff(self.imgA, self.imgB)

    def test_inputs_not_modified(self):
        before = self.imgA.pixels.copy()
        DiffEngine(DiffConfig(blur_radius=2)).compute_diff(self.imgA, self.imgB)
        np.testing.assert_array_equal(self.imgA.pixels, before)

if __name__ == "__main__":
    unittest.main()
