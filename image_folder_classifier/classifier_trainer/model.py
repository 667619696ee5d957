import torch
import torch.nn as nn

from image_folder_classifier.lib import setup_logger

logger = setup_logger(__name__)


class SimpleClassifierHead(nn.Module):
    """Linear softmax classification head over bottleneck features."""

    def __init__(self, input_dim: int, num_classes: int):
        super().__init__()
        if input_dim <= 0:
            raise ValueError("input_dim must be greater than 0")
        if num_classes <= 0:
            raise ValueError("num_classes must be greater than 0")
        self.fc = nn.Linear(input_dim, num_classes)
        logger.info(
            f"SimpleClassifierHead initialized with {input_dim} input dimensions and {num_classes} classes"
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.fc(x)
