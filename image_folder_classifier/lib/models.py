from enum import Enum
from typing import Dict, List

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Column names of the assembled dataset frame
IMAGE_PATH_COLUMN = "image_path"
LABEL_COLUMN = "label"
LABEL_KEY_COLUMN = "label_key"
IMAGE_COLUMN = "image"
PREDICTED_LABEL_COLUMN = "predicted_label"
SCORE_COLUMN = "score"


class ImageFormat(str, Enum):
    """Accepted image file extensions (matched case-sensitively)."""

    JPG = ".jpg"
    PNG = ".png"


class ImageRecord(BaseModel):
    """Represents a single scanned image with its label."""

    model_config = ConfigDict(frozen=True)

    image_path: str
    label: str = Field(..., min_length=1)


class LabelKeyMapping(BaseModel):
    """
    Dense encoding of label strings to integer keys.

    Keys run from 0 to len(keys) - 1 with no gaps, so a key is also the
    index of its label in `labels`.
    """

    keys: Dict[str, int]

    @field_validator("keys")
    @classmethod
    def validate_dense(cls, v: Dict[str, int]) -> Dict[str, int]:
        if sorted(v.values()) != list(range(len(v))):
            raise ValueError("label keys must be dense and start at 0")
        return v

    @classmethod
    def from_labels(cls, labels: List[str]) -> "LabelKeyMapping":
        """Build a mapping from distinct labels, keyed by list position."""
        return cls(keys={label: idx for idx, label in enumerate(labels)})

    @property
    def labels(self) -> List[str]:
        return sorted(self.keys, key=lambda label: self.keys[label])

    def encode(self, label: str) -> int:
        return self.keys[label]

    def decode(self, key: int) -> str:
        key = int(key)
        if key < 0 or key >= len(self.keys):
            raise KeyError(f"Label key {key} is outside the mapping")
        return self.labels[key]

    def __len__(self) -> int:
        return len(self.keys)


class PreparedDataset(BaseModel):
    """The shuffled, label-encoded dataset with image bytes loaded."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    frame: pd.DataFrame
    label_mapping: LabelKeyMapping


class DatasetSplits(BaseModel):
    """Disjoint train, validation and test partitions of a prepared dataset."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    train: pd.DataFrame
    validation: pd.DataFrame
    test: pd.DataFrame
    label_mapping: LabelKeyMapping

    def sizes(self) -> Dict[str, int]:
        return {
            "train": len(self.train),
            "validation": len(self.validation),
            "test": len(self.test),
        }


class ModelOutput(BaseModel):
    """Prediction for one row: where it came from, its label and the guess."""

    image_path: str
    label: str
    predicted_label: str
    score: List[float] = Field(default_factory=list)
