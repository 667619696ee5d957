"""
Utility library for the image folder classifier.

This module provides common utilities used across the pipeline components.
"""

from .logger import setup_logger, set_log_level
from .errors import (
    ImageClassifierError,
    EmptyDatasetError,
    ImageDecodeError,
    TrainingError,
)
from .images import decode_image
from .models import (
    ImageFormat,
    ImageRecord,
    LabelKeyMapping,
    PreparedDataset,
    DatasetSplits,
    ModelOutput,
)

__all__ = [
    "setup_logger",
    "set_log_level",
    "ImageClassifierError",
    "EmptyDatasetError",
    "ImageDecodeError",
    "TrainingError",
    "decode_image",
    "ImageFormat",
    "ImageRecord",
    "LabelKeyMapping",
    "PreparedDataset",
    "DatasetSplits",
    "ModelOutput",
]
