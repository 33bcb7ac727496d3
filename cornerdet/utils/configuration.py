"""Utilities to build detectors from the Hydra configs shipped in `cornerdet.configs`."""

from typing import List, Optional

import hydra
from hydra.utils import instantiate

import cornerdet.utils.logger as logger_utils
from cornerdet.frontend.detector.detector_base import DetectorBase

logger = logger_utils.get_logger()

CONFIG_MODULE = "cornerdet.configs"
DEFAULT_CONFIG_NAME = "harris"


def load_detector(config_name: str = DEFAULT_CONFIG_NAME, overrides: Optional[List[str]] = None) -> DetectorBase:
    """Instantiates the detector described by the `Detector` node of a config.

    Args:
        config_name: name of the config in `cornerdet.configs`, with or without the ".yaml" extension.
        overrides: Hydra overrides, e.g. ["Detector.sigma=2.0", "Detector.threshold=-100"].

    Returns:
        The configured detector.
    """
    with hydra.initialize_config_module(config_module=CONFIG_MODULE, version_base=None):
        # config is relative to the cornerdet.configs module
        cfg = hydra.compose(config_name=config_name, overrides=overrides or [])
        detector: DetectorBase = instantiate(cfg.Detector)

    logger.info("Loaded %s from config %s.", detector, config_name)
    return detector
