"""Runs a corner detector over a collection of images, optionally in parallel with Dask."""

import copy
from typing import List, Optional, Sequence

import dask
from dask.delayed import Delayed, delayed
from dask.distributed import Client

import cornerdet.utils.logger as logger_utils
from cornerdet.common.image import Image
from cornerdet.common.keypoints import Keypoints
from cornerdet.frontend.detector.detector_base import DetectorBase

logger = logger_utils.get_logger()


def detect_with_private_copy(detector: DetectorBase, image: Image) -> Keypoints:
    """Runs detection on a copy of the detector, so that concurrent tasks never share scratch buffers."""
    return copy.deepcopy(detector).detect(image)


class BatchDetector:
    """Applies one detector configuration to many images.

    Sequential runs share the wrapped detector, so its buffers are reused across consecutive images of the same size.
    Parallel runs give every task its own copy of the detector.
    """

    def __init__(self, detector: DetectorBase) -> None:
        self.detector = detector

    def __repr__(self) -> str:
        return f"BatchDetector({self.detector})"

    def create_computation_graph(self, images: Sequence[Image]) -> List[Delayed]:
        """Creates one delayed detection per image.

        Args:
            images: input images.

        Returns:
            Delayed keypoints, one entry per image.
        """
        return [delayed(detect_with_private_copy)(self.detector, image) for image in images]

    def run(self, images: Sequence[Image], client: Optional[Client] = None, use_dask: bool = False) -> List[Keypoints]:
        """Detects the corners in every image.

        Args:
            images: input images.
            client: optional Dask client; the detections are submitted to its cluster as futures.
            use_dask: run the delayed graph on the default Dask scheduler when no client is given.

        Returns:
            Keypoints for each image, in the order of the input images.
        """
        if client is not None:
            detector_future = client.scatter(self.detector, broadcast=True)
            keypoint_futures = [client.submit(detect_with_private_copy, detector_future, image) for image in images]
            keypoints_list = client.gather(keypoint_futures)
        elif use_dask:
            keypoints_list = list(dask.compute(*self.create_computation_graph(images)))
        else:
            keypoints_list = [self.detector.detect(image) for image in images]

        logger.info(
            "Detected %d corners over %d images.", sum(len(keypoints) for keypoints in keypoints_list), len(images)
        )
        return keypoints_list
