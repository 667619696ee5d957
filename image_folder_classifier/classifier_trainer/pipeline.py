from typing import Any, List, Mapping

import pandas as pd
import torch

from image_folder_classifier.feature_extractor import FeatureExtractor
from image_folder_classifier.lib import (
    LabelKeyMapping,
    ModelOutput,
    decode_image,
    setup_logger,
)
from image_folder_classifier.lib.models import (
    IMAGE_PATH_COLUMN,
    LABEL_COLUMN,
    PREDICTED_LABEL_COLUMN,
    SCORE_COLUMN,
)

from .model import SimpleClassifierHead

logger = setup_logger(__name__)


class ImageClassificationPipeline:
    """
    A fitted transfer-learning classifier.

    Runs the backbone over the image bytes in the feature column, scores the
    features with the trained head and decodes the best label key back to its
    label string.
    """

    def __init__(
        self,
        feature_extractor: FeatureExtractor,
        head: SimpleClassifierHead,
        label_mapping: LabelKeyMapping,
        feature_column: str,
        device: torch.device,
    ):
        self.feature_extractor = feature_extractor
        self.head = head
        self.label_mapping = label_mapping
        self.feature_column = feature_column
        self.device = device
        self.head.eval()

    @torch.no_grad()
    def _score(self, image_bytes: bytes, image_path: str) -> List[float]:
        image = decode_image(image_bytes, image_path)
        features = self.feature_extractor.extract_features(image).flatten(start_dim=1)
        logits = self.head(features.to(self.device, dtype=torch.float32))
        return torch.softmax(logits, dim=1)[0].cpu().tolist()

    def _predict_label(self, score: List[float]) -> str:
        best_key = max(range(len(score)), key=lambda key: score[key])
        return self.label_mapping.decode(best_key)

    def predict(self, row: Mapping[str, Any]) -> ModelOutput:
        """Classify a single row holding the feature column."""
        if self.feature_column not in row:
            raise ValueError(f"Row has no '{self.feature_column}' column to classify")

        image_path = str(row.get(IMAGE_PATH_COLUMN, ""))
        score = self._score(row[self.feature_column], image_path)
        return ModelOutput(
            image_path=image_path,
            label=str(row.get(LABEL_COLUMN, "")),
            predicted_label=self._predict_label(score),
            score=score,
        )

    def transform(self, frame: pd.DataFrame) -> pd.DataFrame:
        """Return a copy of the frame with predicted_label and score columns appended."""
        if self.feature_column not in frame.columns:
            raise ValueError(f"Frame has no '{self.feature_column}' column to classify")

        scores = [
            self._score(image_bytes, str(image_path))
            for image_bytes, image_path in zip(
                frame[self.feature_column],
                frame.get(IMAGE_PATH_COLUMN, [""] * len(frame)),
            )
        ]
        logger.debug(f"Classified {len(scores)} rows")

        result = frame.copy()
        result[PREDICTED_LABEL_COLUMN] = [self._predict_label(s) for s in scores]
        result[SCORE_COLUMN] = scores
        return result
