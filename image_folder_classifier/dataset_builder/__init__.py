"""
Dataset Construction Component for the image folder classifier.

This module provides functionality for:
- Scanning a folder for images and deriving labels from folder or file names
- Assembling a shuffled, label-encoded table with the raw image bytes
- Splitting the table into train, validation, and test sets
"""

from .assembler import assemble_dataset
from .config import DatasetConfig, SplitConfig
from .scanner import load_images_from_directory
from .splitter import split_dataset

__all__ = [
    "assemble_dataset",
    "DatasetConfig",
    "SplitConfig",
    "load_images_from_directory",
    "split_dataset",
]
