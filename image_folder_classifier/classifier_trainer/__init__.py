"""
Image Classifier Training Component.

Fits a classification head over a pretrained backbone and returns a
pipeline that predicts label strings for rows of image bytes.
"""

from .config import (
    EarlyStopping,
    EarlyStoppingMetric,
    Hyperparameters,
    TrainerOptions,
    TrainingConfig,
)
from .metrics import BottleneckMetrics, ImageClassificationMetrics, TrainMetrics
from .pipeline import ImageClassificationPipeline
from .trainer import ImageClassificationTrainer

__all__ = [
    "EarlyStopping",
    "EarlyStoppingMetric",
    "Hyperparameters",
    "TrainerOptions",
    "TrainingConfig",
    "BottleneckMetrics",
    "ImageClassificationMetrics",
    "TrainMetrics",
    "ImageClassificationPipeline",
    "ImageClassificationTrainer",
]
