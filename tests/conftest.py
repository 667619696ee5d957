"""Shared fixtures: tiny image folders and a fake backbone."""

from pathlib import Path
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
import pytest
import torch
from PIL import Image

from image_folder_classifier.lib import LabelKeyMapping, PreparedDataset

COLORS: Dict[str, Tuple[int, int, int]] = {
    "cat": (220, 30, 30),
    "dog": (30, 30, 220),
    "bird": (30, 200, 30),
}


def make_image(path: Path, color: Tuple[int, int, int], size: int = 8) -> Path:
    """Write a solid color image; the format follows the extension."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fmt = "JPEG" if path.suffix.lower() == ".jpg" else "PNG"
    Image.new("RGB", (size, size), color).save(path, format=fmt)
    return path


class FakeFeatureExtractor:
    """Uses the mean RGB value of an image as its feature vector."""

    def __init__(self):
        self.calls = 0

    def extract_features(self, image: Image.Image) -> torch.Tensor:
        self.calls += 1
        pixels = np.asarray(image.convert("RGB"), dtype=np.float32) / 255.0
        return torch.tensor(pixels.mean(axis=(0, 1))).unsqueeze(0)


@pytest.fixture
def fake_extractor() -> FakeFeatureExtractor:
    return FakeFeatureExtractor()


@pytest.fixture
def pets_dir(tmp_path: Path) -> Path:
    """cat/ with 3 images, dog/ with 2 images and some files that must be ignored."""
    root = tmp_path / "assets"
    make_image(root / "cat" / "cat1.jpg", COLORS["cat"])
    make_image(root / "cat" / "cat2.png", COLORS["cat"])
    make_image(root / "cat" / "cat3.jpg", COLORS["cat"])
    make_image(root / "dog" / "dog1.png", COLORS["dog"])
    make_image(root / "dog" / "dog2.jpg", COLORS["dog"])
    (root / "cat" / "notes.txt").write_text("not an image")
    make_image(root / "dog" / "dog3.JPG", COLORS["dog"])
    make_image(root / "dog" / "dog4.jpeg", COLORS["dog"])
    return root


@pytest.fixture
def large_pets_dir(tmp_path: Path) -> Path:
    """Ten images per label for cat, dog and bird."""
    root = tmp_path / "large_assets"
    for label, color in COLORS.items():
        for i in range(10):
            ext = "png" if i % 2 else "jpg"
            make_image(root / label / f"{label}{i:02d}.{ext}", color)
    return root


def make_prepared(labels: List[str]) -> PreparedDataset:
    """A prepared dataset with one row per label and empty image bytes."""
    mapping = LabelKeyMapping.from_labels(list(dict.fromkeys(labels)))
    frame = pd.DataFrame(
        {
            "image_path": [f"img{i}.png" for i in range(len(labels))],
            "label": labels,
            "label_key": [mapping.encode(label) for label in labels],
            "image": [b""] * len(labels),
        }
    )
    return PreparedDataset(frame=frame, label_mapping=mapping)
