"""Tests for the base detector class, run on the Harris detector.

Authors: Ayush Baid
"""
import pickle
import unittest

import numpy as np

from cornerdet.common.image import Image
from cornerdet.frontend.detector.harris import HarrisCornerDetector


def checkerboard_image(height: int = 64, width: int = 80, square_size: int = 8, rgb: bool = False) -> Image:
    """Checkerboard with mild deterministic noise, so that the corner responses are not tied."""
    rows, cols = np.mgrid[0:height, 0:width]
    board = (((rows // square_size) + (cols // square_size)) % 2).astype(np.float64)
    board += 0.05 * np.random.default_rng(0).random((height, width))

    if rgb:
        board = np.stack([board, 0.8 * board, 0.6 * board], axis=2)
    return Image(board)


class TestDetectorBase(unittest.TestCase):
    """Main test class for detector base class."""

    def setUp(self):
        super().setUp()
        self.detector = HarrisCornerDetector(max_keypoints=20)
        self.image = checkerboard_image()

    def test_number_of_detections(self):
        """Tests that the number of detections is less than the maximum number configured."""
        keypoints = self.detector.detect(self.image)

        self.assertGreater(len(keypoints), 0)
        if self.detector.max_keypoints is not None:
            self.assertLessEqual(len(keypoints), self.detector.max_keypoints)

    def test_coordinates_range(self):
        """Tests that each coordinate is within the image bounds."""
        keypoints = self.detector.detect(self.image)

        np.testing.assert_array_equal(keypoints.coordinates[:, 0] >= 0, True)
        np.testing.assert_array_equal(keypoints.coordinates[:, 0] <= self.image.width - 1, True)
        np.testing.assert_array_equal(keypoints.coordinates[:, 1] >= 0, True)
        np.testing.assert_array_equal(keypoints.coordinates[:, 1] <= self.image.height - 1, True)

    def test_responses_sorted(self):
        """Tests that the keypoints come best response first."""
        keypoints = self.detector.detect(self.image)

        self.assertTrue(np.all(np.diff(keypoints.responses) <= 0))

    def test_determinism(self):
        """Tests that repeated detections on the same image give the same keypoints."""
        keypoints1 = self.detector.detect(self.image)
        keypoints2 = self.detector.detect(self.image)

        self.assertEqual(keypoints1, keypoints2)

    def test_missing_image(self):
        """Tests that a missing image gives no keypoints."""
        keypoints = self.detector.detect(None)

        self.assertEqual(len(keypoints), 0)

    def test_execute(self):
        """Tests that execute replaces the content of the output list with the sorted corners."""
        corners = [(-1.0, -1.0, 100.0)]
        self.detector.execute(self.image, corners)

        self.assertEqual(corners, self.detector.detect(self.image).as_tuples())

    def test_execute_missing_inputs(self):
        """Tests that execute does nothing when the image or the output list is missing."""
        corners = [(-1.0, -1.0, 100.0)]
        self.detector.execute(None, corners)
        self.assertEqual(corners, [(-1.0, -1.0, 100.0)])

        # must not raise
        self.detector.execute(self.image, None)

    def test_pickleable(self):
        """Tests that the detector object is pickleable (required for dask)."""
        try:
            pickle.dumps(self.detector)
        except TypeError:
            self.fail("Cannot dump detector using pickle")


if __name__ == "__main__":
    unittest.main()
