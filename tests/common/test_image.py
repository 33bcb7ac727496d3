"""Unit tests for the image data structure.

Authors: Ayush Baid
"""
import unittest

import numpy as np

from cornerdet.common.image import Image


class TestImage(unittest.TestCase):
    """Unit tests for the image class."""

    def test_geometry_single_channel(self):
        image = Image(np.zeros((100, 120)))

        self.assertEqual(image.height, 100)
        self.assertEqual(image.width, 120)
        self.assertEqual(image.channels, 1)
        self.assertEqual(image.shape, (100, 120))

    def test_geometry_multi_channel(self):
        image = Image(np.random.randint(low=0, high=255, size=(100, 120, 3)), file_name="door.jpg")

        self.assertEqual(image.height, 100)
        self.assertEqual(image.width, 120)
        self.assertEqual(image.channels, 3)
        self.assertEqual(image.shape, (100, 120, 3))
        self.assertEqual(image.file_name, "door.jpg")
        self.assertIsNone(image.mask)


if __name__ == "__main__":
    unittest.main()
