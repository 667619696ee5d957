import json
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import BaseModel, Field

from image_folder_classifier.classifier_trainer.config import TrainingConfig
from image_folder_classifier.dataset_builder.config import DatasetConfig
from image_folder_classifier.evaluator.reporter import DEFAULT_REPORT_COUNT


class RunConfig(BaseModel):
    """Configuration for one scan, train and report run."""

    dataset: DatasetConfig = Field(
        default_factory=DatasetConfig, description="Dataset scanning and splitting"
    )
    training: TrainingConfig = Field(
        default_factory=TrainingConfig, description="Transfer learning settings"
    )
    workspace_dir: str = Field(
        "workspace", description="Folder for cached bottleneck values and checkpoints"
    )
    report_count: int = Field(
        DEFAULT_REPORT_COUNT,
        description="Number of test predictions printed in batch mode",
        ge=1,
    )


def read_config_file(config_file: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML or JSON file into a dictionary."""
    config_path = Path(config_file)
    if config_path.suffix.lower() in [".yaml", ".yml"]:
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f)
    elif config_path.suffix.lower() == ".json":
        with open(config_path, "r") as f:
            config_data = json.load(f)
    else:
        raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    return config_data or {}


def load_config(config_file: Union[str, Path]) -> RunConfig:
    """Load and validate a run configuration file."""
    return RunConfig.model_validate(read_config_file(config_file))
