from enum import Enum
import logging
from typing import Optional, Protocol

import torch
from transformers import AutoImageProcessor, AutoModel
from PIL import Image

from image_folder_classifier.lib import setup_logger

logger = setup_logger(__name__, level=logging.INFO)


class Architecture(str, Enum):
    """Pretrained backbones available for transfer learning."""

    RESNET_V2_50 = "resnet_v2_50"
    RESNET_V2_101 = "resnet_v2_101"
    MOBILENET_V2 = "mobilenet_v2"
    DINO_V2_BASE = "dinov2_base"


MODEL_NAMES = {
    Architecture.RESNET_V2_50: "microsoft/resnet-50",
    Architecture.RESNET_V2_101: "microsoft/resnet-101",
    Architecture.MOBILENET_V2: "google/mobilenet_v2_1.0_224",
    Architecture.DINO_V2_BASE: "facebook/dinov2-base",
}


class FeatureExtractor(Protocol):
    """Anything that turns one image into a (1, feature_dim) tensor."""

    def extract_features(self, image: Image.Image) -> torch.Tensor: ...


class BackboneFeatureExtractor:
    """Extracts bottleneck features from images with a frozen pretrained model."""

    def __init__(
        self,
        arch: Architecture = Architecture.RESNET_V2_50,
        device: Optional[torch.device] = None,
    ):
        self.arch = Architecture(arch)
        self.model_name = MODEL_NAMES[self.arch]
        self.device = device or torch.device("cpu")

        logger.info(f"Loading pretrained backbone {self.model_name}")
        self.processor = AutoImageProcessor.from_pretrained(self.model_name)
        self.model = AutoModel.from_pretrained(self.model_name)
        self.model.to(self.device)
        self.model.eval()

    def _normalise_image(self, image: Image.Image):
        """
        Resizes and normalises the image as expected by the backbone.

        Remarks:
        AutoImageProcessor already handles normalisation, so we don't need to do anything here.
        """
        return self.processor(images=image, return_tensors="pt")

    @torch.no_grad()
    def extract_features(self, image: Image.Image) -> torch.Tensor:
        """
        Takes an image and returns the pooled features of the backbone.
        """
        inputs = self._normalise_image(image).to(self.device)
        outputs = self.model(**inputs)

        # ResNet pools to (1, C, 1, 1), MobileNet and DINO to (1, C)
        features: torch.Tensor = outputs.pooler_output.flatten(start_dim=1)
        logger.debug(f"Features shape: {features.shape}")

        return features.cpu()
