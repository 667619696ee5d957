from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import torch

from image_folder_classifier.lib import setup_logger

logger = setup_logger(__name__)


class DatasetUsed(str, Enum):
    """Which split a set of bottleneck values or metrics belongs to."""

    TRAIN = "Train"
    VALIDATION = "Validation"


class BottleneckCache:
    """
    Stores computed bottleneck features for a split inside the workspace.

    Files live at `<workspace>/<arch>/<split>_set_bottlenecks.pt` and hold
    the image paths next to the feature tensor, so a cache is only reused for
    the exact rows it was computed from.
    """

    def __init__(self, workspace_path: Union[str, Path], arch: str):
        self.directory = Path(workspace_path) / arch

    def path(self, dataset_used: DatasetUsed) -> Path:
        return self.directory / f"{dataset_used.value.lower()}_set_bottlenecks.pt"

    def load(
        self, dataset_used: DatasetUsed, image_paths: List[str]
    ) -> Optional[torch.Tensor]:
        """Cached features for these images, or None when there is no usable cache."""
        cache_path = self.path(dataset_used)
        if not cache_path.exists():
            logger.info(f"No cached bottleneck values at {cache_path}")
            return None

        cached = torch.load(cache_path, map_location="cpu")
        if cached["image_paths"] != list(image_paths):
            logger.warning(
                f"Cached bottleneck values at {cache_path} were computed for other images, recomputing"
            )
            return None

        logger.info(f"Reusing {len(image_paths)} cached bottleneck values from {cache_path}")
        return cached["features"]

    def save(
        self, dataset_used: DatasetUsed, image_paths: List[str], features: torch.Tensor
    ) -> Path:
        cache_path = self.path(dataset_used)
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        torch.save({"image_paths": list(image_paths), "features": features}, cache_path)
        logger.debug(f"Bottleneck values saved to {cache_path}")
        return cache_path
