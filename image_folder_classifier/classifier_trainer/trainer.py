from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import torch
from torch.utils.data import DataLoader
from tqdm import tqdm

from image_folder_classifier.classifier_trainer.config import (
    EarlyStoppingMetric,
    TrainerOptions,
)
from image_folder_classifier.classifier_trainer.dataset import BottleneckDataset
from image_folder_classifier.classifier_trainer.metrics import (
    BottleneckMetrics,
    ImageClassificationMetrics,
    TrainMetrics,
)
from image_folder_classifier.classifier_trainer.model import SimpleClassifierHead
from image_folder_classifier.classifier_trainer.pipeline import (
    ImageClassificationPipeline,
)
from image_folder_classifier.feature_extractor import (
    BackboneFeatureExtractor,
    BottleneckCache,
    DatasetUsed,
    FeatureExtractor,
)
from image_folder_classifier.lib import (
    LabelKeyMapping,
    TrainingError,
    decode_image,
    setup_logger,
)
from image_folder_classifier.lib.models import IMAGE_PATH_COLUMN, LABEL_COLUMN

logger = setup_logger(__name__)

BEST_MODEL_FILENAME = "best_model.pth"


class ImageClassificationTrainer:
    """
    Trains a classification head on top of a frozen pretrained backbone.

    The backbone turns every image into a bottleneck feature vector once;
    only the linear head is trained, over the cached vectors.
    """

    def __init__(
        self,
        options: TrainerOptions,
        feature_extractor: Optional[FeatureExtractor] = None,
    ):
        self.options = options
        self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        logger.info(f"Using device: {self.device}")

        self.feature_extractor = feature_extractor
        self.cache = BottleneckCache(options.workspace_path, options.arch.value)
        self.output_dir = self.cache.directory
        logger.info(f"Training workspace: {self.output_dir}")

        self.criterion = torch.nn.CrossEntropyLoss()
        self.model: Optional[SimpleClassifierHead] = None
        self.optimizer: Optional[torch.optim.Optimizer] = None

    def _report(self, metrics: ImageClassificationMetrics) -> None:
        if self.options.metrics_callback is not None:
            self.options.metrics_callback(metrics)

    def _load_feature_extractor(self) -> FeatureExtractor:
        if self.feature_extractor is None:
            try:
                self.feature_extractor = BackboneFeatureExtractor(
                    self.options.arch, device=self.device
                )
            except OSError as e:
                raise TrainingError(
                    f"Could not load the {self.options.arch.value} backbone: {e}"
                ) from e
        return self.feature_extractor

    def _validate_frame(self, frame: pd.DataFrame, num_classes: int, name: str) -> None:
        """Check that a split can be trained on."""
        if frame.empty:
            raise TrainingError(f"The {name} set is empty")

        for column in (self.options.feature_column, self.options.label_column):
            if column not in frame.columns:
                raise TrainingError(f"The {name} set has no '{column}' column")

        keys = frame[self.options.label_column]
        if keys.min() < 0 or keys.max() >= num_classes:
            raise TrainingError(
                f"The {name} set has label keys outside 0..{num_classes - 1}"
            )

    def _get_split_distribution(self, frame: pd.DataFrame) -> Dict[str, int]:
        """Get the distribution of classes in the split and warn on imbalance."""
        column = LABEL_COLUMN if LABEL_COLUMN in frame.columns else self.options.label_column
        labels = frame[column]
        distribution = {str(k): int(v) for k, v in labels.value_counts().items()}

        total_count = len(frame)
        ideal_percentage = 100 / len(distribution)
        for label, count in distribution.items():
            percentage = count / total_count * 100
            # Flag classes that deviate from an even split by more than 5%
            if abs(percentage - ideal_percentage) > 5:
                logger.warning(
                    f"Class '{label}' has {count} samples ({percentage:.1f}%), "
                    f"ideal is {ideal_percentage:.1f}% per class."
                )

        return distribution

    def _compute_bottlenecks(
        self, frame: pd.DataFrame, dataset_used: DatasetUsed, reuse: bool
    ) -> torch.Tensor:
        """Bottleneck features for every row, from the cache when allowed."""
        if IMAGE_PATH_COLUMN in frame.columns:
            image_paths: List[str] = [str(p) for p in frame[IMAGE_PATH_COLUMN]]
        else:
            image_paths = [str(i) for i in frame.index]

        if reuse:
            cached = self.cache.load(dataset_used, image_paths)
            if cached is not None:
                return cached

        feature_extractor = self._load_feature_extractor()
        features: List[torch.Tensor] = []
        for index, (image_path, image_bytes) in enumerate(
            tqdm(
                zip(image_paths, frame[self.options.feature_column]),
                total=len(frame),
                desc=f"Bottlenecks ({dataset_used.value})",
            )
        ):
            image = decode_image(image_bytes, image_path)
            features.append(feature_extractor.extract_features(image).flatten(start_dim=1))
            self._report(
                ImageClassificationMetrics(
                    bottleneck=BottleneckMetrics(
                        index=index,
                        name=Path(image_path).name,
                        dataset_used=dataset_used,
                    )
                )
            )

        stacked = torch.cat(features).to(torch.float32)
        self.cache.save(dataset_used, image_paths, stacked)
        return stacked

    def _make_loader(
        self, features: torch.Tensor, frame: pd.DataFrame, shuffle: bool
    ) -> DataLoader[Tuple[torch.Tensor, torch.Tensor]]:
        label_keys = torch.tensor(
            frame[self.options.label_column].to_numpy(dtype=np.int64)
        )
        return DataLoader(
            BottleneckDataset(features, label_keys),
            batch_size=self.options.hyperparameters.batch_size,
            shuffle=shuffle,
        )

    def _run_epoch(
        self,
        loader: DataLoader[Tuple[torch.Tensor, torch.Tensor]],
        is_training: bool = True,
    ) -> Dict[str, float]:
        """Runs a single epoch of training or evaluation."""
        assert self.model is not None and self.optimizer is not None
        if is_training:
            self.model.train()
            context = torch.enable_grad()
        else:
            self.model.eval()
            context = torch.no_grad()

        total_loss = 0.0
        total_correct = 0
        total_samples = 0
        num_batches = 0

        with context:
            for features, labels in loader:
                features, labels = features.to(self.device), labels.to(self.device)

                if is_training:
                    self.optimizer.zero_grad()

                logits = self.model(features)
                loss = self.criterion(logits, labels)

                if is_training:
                    loss.backward()
                    self.optimizer.step()

                total_loss += loss.item() * len(labels)
                total_correct += (torch.argmax(logits, dim=1) == labels).sum().item()
                total_samples += len(labels)
                num_batches += 1

        return {
            "loss": total_loss / total_samples,
            "accuracy": total_correct / total_samples,
            "batches": num_batches,
        }

    def _is_improvement(self, current: float, best: Optional[float]) -> bool:
        early_stopping = self.options.early_stopping
        min_delta = early_stopping.min_delta if early_stopping else 0.0
        if best is None:
            return True
        if early_stopping and early_stopping.metric == EarlyStoppingMetric.LOSS:
            return current < best - min_delta
        return current > best + min_delta

    def fit(
        self, train_set: pd.DataFrame, label_mapping: LabelKeyMapping
    ) -> ImageClassificationPipeline:
        """
        Train the classification head and return the fitted pipeline.

        Args:
            train_set: Rows with the feature and label columns
            label_mapping: Encoding used to decode predicted keys into labels

        Raises:
            TrainingError: If the data cannot be trained on or the backbone
                cannot be loaded
        """
        options = self.options
        num_classes = len(label_mapping)
        if num_classes == 0:
            raise TrainingError("The label mapping is empty")
        self._validate_frame(train_set, num_classes, "train")

        torch.manual_seed(options.seed)
        np.random.seed(options.seed)
        if torch.cuda.is_available():
            torch.cuda.manual_seed_all(options.seed)

        train_distribution = self._get_split_distribution(train_set)
        logger.info(f"Train distribution: {train_distribution}")

        # --- Bottlenecks ---
        train_features = self._compute_bottlenecks(
            train_set,
            DatasetUsed.TRAIN,
            options.reuse_train_set_bottleneck_cached_values,
        )
        train_loader = self._make_loader(train_features, train_set, shuffle=True)

        eval_loader: Optional[DataLoader[Tuple[torch.Tensor, torch.Tensor]]] = None
        eval_dataset_used = DatasetUsed.VALIDATION
        validation_set = options.validation_set
        if validation_set is not None and not validation_set.empty:
            self._validate_frame(validation_set, num_classes, "validation")
            validation_features = self._compute_bottlenecks(
                validation_set,
                DatasetUsed.VALIDATION,
                options.reuse_validation_set_bottleneck_cached_values,
            )
            eval_loader = self._make_loader(
                validation_features, validation_set, shuffle=False
            )
        elif options.test_on_train_set:
            eval_loader = self._make_loader(train_features, train_set, shuffle=False)
            eval_dataset_used = DatasetUsed.TRAIN
        else:
            logger.warning("No validation set given, training without evaluation.")

        # --- Model ---
        feature_dim = train_features.shape[1]
        logger.info(f"Detected Feature Dimension: {feature_dim}")
        self.model = SimpleClassifierHead(input_dim=feature_dim, num_classes=num_classes)
        self.model.to(self.device)
        self.criterion.to(self.device)

        hyperparameters = options.hyperparameters
        self.optimizer = torch.optim.AdamW(
            self.model.parameters(), lr=hyperparameters.learning_rate
        )
        scheduler = torch.optim.lr_scheduler.StepLR(
            self.optimizer,
            step_size=hyperparameters.epochs_per_decay,
            gamma=hyperparameters.decay_rate,
        )

        # --- Training loop ---
        best_metric: Optional[float] = None
        best_epoch = -1
        epochs_without_improvement = 0
        watched = (
            options.early_stopping.metric.value if options.early_stopping else "accuracy"
        )

        for epoch in range(hyperparameters.num_epochs):
            learning_rate = scheduler.get_last_lr()[0]
            train_metrics = self._run_epoch(train_loader, is_training=True)
            self._report(
                ImageClassificationMetrics(
                    train=TrainMetrics(
                        epoch=epoch,
                        accuracy=train_metrics["accuracy"],
                        cross_entropy=train_metrics["loss"],
                        batch_processed_count=int(train_metrics["batches"]),
                        learning_rate=learning_rate,
                        dataset_used=DatasetUsed.TRAIN,
                    )
                )
            )
            logger.debug(
                f"Epoch {epoch} Train | Loss: {train_metrics['loss']:.4f}, Acc: {train_metrics['accuracy']:.4f}"
            )
            scheduler.step()

            if eval_loader is None:
                continue

            eval_metrics = self._run_epoch(eval_loader, is_training=False)
            self._report(
                ImageClassificationMetrics(
                    train=TrainMetrics(
                        epoch=epoch,
                        accuracy=eval_metrics["accuracy"],
                        cross_entropy=eval_metrics["loss"],
                        batch_processed_count=int(eval_metrics["batches"]),
                        learning_rate=learning_rate,
                        dataset_used=eval_dataset_used,
                    )
                )
            )

            # --- Checkpointing ---
            current = eval_metrics[watched]
            if self._is_improvement(current, best_metric):
                best_metric = current
                best_epoch = epoch
                epochs_without_improvement = 0
                self.save(BEST_MODEL_FILENAME)
            else:
                epochs_without_improvement += 1

            if (
                options.early_stopping
                and epochs_without_improvement >= options.early_stopping.patience
            ):
                logger.info(
                    f"Early stopping at epoch {epoch}, no {watched} improvement for "
                    f"{epochs_without_improvement} epochs"
                )
                break

        if best_epoch >= 0:
            logger.info(
                f"Best validation {watched} ({best_metric:.4f}) achieved at epoch {best_epoch}"
            )
            self.model.load_state_dict(
                torch.load(self.output_dir / BEST_MODEL_FILENAME, map_location=self.device)
            )

        logger.info("Training finished.")
        return ImageClassificationPipeline(
            feature_extractor=self._load_feature_extractor(),
            head=self.model,
            label_mapping=label_mapping,
            feature_column=options.feature_column,
            device=self.device,
        )

    def save(self, filename: str = "model.pth") -> Path:
        """Saves the classification head state dictionary to the workspace."""
        assert self.model is not None
        save_path = self.output_dir / filename
        save_path.parent.mkdir(parents=True, exist_ok=True)
        torch.save(self.model.state_dict(), save_path)
        logger.debug(f"Model saved to {save_path}")
        return save_path
