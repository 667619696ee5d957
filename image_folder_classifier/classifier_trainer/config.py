from enum import Enum
from typing import Callable, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field

from image_folder_classifier.feature_extractor import Architecture
from image_folder_classifier.lib.models import IMAGE_COLUMN, LABEL_KEY_COLUMN

from .metrics import ImageClassificationMetrics

DEFAULT_LEARNING_RATE = 0.01
DEFAULT_BATCH_SIZE = 10
DEFAULT_NUM_EPOCHS = 200
DEFAULT_DECAY_RATE = 0.94
DEFAULT_EPOCHS_PER_DECAY = 2
DEFAULT_SEED = 42


class EarlyStoppingMetric(str, Enum):
    """Validation metric watched by early stopping."""

    ACCURACY = "accuracy"  # Higher is better
    LOSS = "loss"  # Lower is better


class EarlyStopping(BaseModel):
    """Stop training once the validation metric stops improving."""

    metric: EarlyStoppingMetric = Field(
        EarlyStoppingMetric.ACCURACY, description="Metric to watch"
    )
    min_delta: float = Field(
        0.01, description="Smallest change that counts as an improvement", ge=0
    )
    patience: int = Field(
        20, description="Epochs without improvement before stopping", ge=1
    )


class Hyperparameters(BaseModel):
    """Hyperparameters for the training process."""

    learning_rate: float = Field(
        DEFAULT_LEARNING_RATE,
        description="Initial learning rate for the classification head",
        ge=0,
    )
    batch_size: int = Field(
        DEFAULT_BATCH_SIZE, description="Batch size for training", ge=1
    )
    num_epochs: int = Field(
        DEFAULT_NUM_EPOCHS, description="Number of epochs to train", ge=1
    )
    decay_rate: float = Field(
        DEFAULT_DECAY_RATE,
        description="Factor applied to the learning rate every decay step",
        gt=0,
        le=1,
    )
    epochs_per_decay: int = Field(
        DEFAULT_EPOCHS_PER_DECAY,
        description="Epochs between learning rate decays",
        ge=1,
    )


class TrainingConfig(BaseModel):
    """Configuration for training a classifier on a pretrained backbone."""

    arch: Architecture = Field(
        Architecture.RESNET_V2_50, description="Pretrained backbone architecture"
    )
    hyperparameters: Hyperparameters = Field(
        default_factory=Hyperparameters,
        description="Hyperparameters for the training process",
    )
    early_stopping: Optional[EarlyStopping] = Field(
        default_factory=EarlyStopping,
        description="Early stopping criteria; null trains for every epoch",
    )
    test_on_train_set: bool = Field(
        False,
        description="Evaluate on the train set each epoch when there is no validation set",
    )
    reuse_train_set_bottleneck_cached_values: bool = Field(
        False, description="Reuse train set bottleneck values cached in the workspace"
    )
    reuse_validation_set_bottleneck_cached_values: bool = Field(
        False,
        description="Reuse validation set bottleneck values cached in the workspace",
    )
    seed: int = Field(DEFAULT_SEED, description="Random seed for reproducibility")


class TrainerOptions(TrainingConfig):
    """Everything the trainer needs for one fit, including run-time inputs."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    feature_column: str = Field(IMAGE_COLUMN, description="Column with raw image bytes")
    label_column: str = Field(LABEL_KEY_COLUMN, description="Column with label keys")
    validation_set: Optional[pd.DataFrame] = Field(
        None, description="Rows evaluated after each epoch"
    )
    metrics_callback: Optional[Callable[[ImageClassificationMetrics], None]] = Field(
        None, description="Called with progress metrics during training"
    )
    workspace_path: str = Field(
        "workspace", description="Folder for cached bottleneck values and checkpoints"
    )
