from typing import Optional

from pydantic import BaseModel

from image_folder_classifier.feature_extractor import DatasetUsed


class BottleneckMetrics(BaseModel):
    """Progress of the bottleneck (feature) computation."""

    index: int
    name: str
    dataset_used: DatasetUsed

    def __str__(self) -> str:
        return (
            f"Phase: Bottleneck Computation, Dataset used: {self.dataset_used.value}, "
            f"Image Index: {self.index}, Image Name: {self.name}"
        )


class TrainMetrics(BaseModel):
    """Metrics of one epoch over one dataset."""

    epoch: int
    accuracy: float
    cross_entropy: float
    batch_processed_count: int
    learning_rate: float
    dataset_used: DatasetUsed

    def __str__(self) -> str:
        text = (
            f"Phase: Training, Dataset used: {self.dataset_used.value}, "
            f"Batch Processed Count: {self.batch_processed_count}, Epoch: {self.epoch}, "
            f"Accuracy: {self.accuracy:.4f}, Cross-Entropy: {self.cross_entropy:.4f}"
        )
        if self.dataset_used == DatasetUsed.TRAIN:
            text += f", Learning Rate: {self.learning_rate:.6f}"
        return text


class ImageClassificationMetrics(BaseModel):
    """A single progress report; exactly one of the phases is set."""

    bottleneck: Optional[BottleneckMetrics] = None
    train: Optional[TrainMetrics] = None

    def __str__(self) -> str:
        if self.bottleneck is not None:
            return str(self.bottleneck)
        if self.train is not None:
            return str(self.train)
        return ""
