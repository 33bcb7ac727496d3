"""Unit tests for the numerical helpers of corner detection."""
import unittest

import numpy as np

import cornerdet.utils.features as feature_utils


class TestFeatureUtils(unittest.TestCase):
    def test_harris_response(self):
        tensor = np.zeros((1, 3, 3), dtype=np.float32)
        tensor[0, 0] = [2.0, 3.0, 1.0]  # (6 - 1) / 5
        tensor[0, 1] = [4.0, 0.0, 0.0]  # edge
        # tensor[0, 2] is flat

        response = feature_utils.harris_response(tensor)

        np.testing.assert_allclose(response, [[1.0, 0.0, 0.0]], atol=1e-7)
        self.assertTrue(np.all(np.isfinite(response)))

    def test_harris_response_out_buffer(self):
        tensor = np.ones((2, 2, 3), dtype=np.float32)
        out = np.full((2, 2), -1.0, dtype=np.float32)

        response = feature_utils.harris_response(tensor, out=out)

        self.assertIs(response, out)
        np.testing.assert_allclose(out, 0.0, atol=1e-7)

    def test_derive_top_k_threshold(self):
        response = np.arange(10, dtype=np.float32).reshape(2, 5)

        for k in [1, 3, 7]:
            threshold = feature_utils.derive_top_k_threshold(response, k)
            self.assertEqual(threshold, 9 - k)
            self.assertEqual(np.count_nonzero(response > threshold), k)

    def test_derive_top_k_threshold_bounds(self):
        response = np.arange(10, dtype=np.float32).reshape(2, 5)

        self.assertEqual(feature_utils.derive_top_k_threshold(response, 0), 9.0)
        self.assertEqual(feature_utils.derive_top_k_threshold(response, 9), 0.0)
        self.assertEqual(feature_utils.derive_top_k_threshold(response, 10), -np.inf)
        self.assertEqual(feature_utils.derive_top_k_threshold(response, 1000), -np.inf)

    def test_derive_top_k_threshold_ties(self):
        """Ensure at most k responses lie strictly above the threshold when values are tied."""
        response = np.array([0.0, 1.0, 1.0, 1.0, 2.0], dtype=np.float32)

        threshold = feature_utils.derive_top_k_threshold(response, 2)

        self.assertEqual(threshold, 1.0)
        self.assertEqual(np.count_nonzero(response > threshold), 1)

    def test_border_mask(self):
        mask = feature_utils.border_mask(4, 5)

        expected = np.zeros((4, 5), dtype=bool)
        expected[1:3, 1:4] = True
        np.testing.assert_array_equal(mask, expected)

    def test_refine_subpixel_parabola(self):
        """Ensure the extremum of a sampled parabola is recovered."""
        for vertex in [-0.4, -0.1, 0.0, 0.2, 0.45]:
            samples = [1.0 - (t - vertex) ** 2 for t in (-1.0, 0.0, 1.0)]
            offsets = feature_utils.refine_subpixel_parabola(
                np.array([samples[1]]), np.array([samples[0]]), np.array([samples[2]])
            )
            np.testing.assert_allclose(offsets, [vertex], atol=1e-12)

    def test_refine_subpixel_parabola_spacing(self):
        samples = [1.0 - (t - 0.3) ** 2 for t in (-1.0, 0.0, 1.0)]

        offsets = feature_utils.refine_subpixel_parabola(
            np.array([samples[1]]), np.array([samples[0]]), np.array([samples[2]]), spacing=2.0
        )

        np.testing.assert_allclose(offsets, [0.6], atol=1e-12)

    def test_refine_subpixel_parabola_degenerate(self):
        """Ensure collinear samples give a zero offset instead of a non-finite one."""
        center = np.array([1.0, 0.5, 0.0])
        minus = np.array([1.0, 0.0, 0.0])
        plus = np.array([1.0, 1.0, 0.0])

        offsets = feature_utils.refine_subpixel_parabola(center, minus, plus)

        np.testing.assert_array_equal(offsets, [0.0, 0.0, 0.0])

    def test_refine_subpixel_parabola_bound(self):
        """Ensure the offset of a local maximum is at most half a sample."""
        rng = np.random.default_rng(3)
        minus = rng.random(1000)
        plus = rng.random(1000)
        center = np.maximum(minus, plus) + rng.random(1000) * 0.1

        offsets = feature_utils.refine_subpixel_parabola(center, minus, plus)

        self.assertTrue(np.all(np.abs(offsets) <= 0.5 + 1e-12))


if __name__ == "__main__":
    unittest.main()
