from pathlib import Path
from typing import Any, Dict, Optional

import typer

from image_folder_classifier.classifier_trainer import (
    ImageClassificationMetrics,
    ImageClassificationTrainer,
    TrainerOptions,
)
from image_folder_classifier.config import RunConfig
from image_folder_classifier.dataset_builder import (
    assemble_dataset,
    load_images_from_directory,
    split_dataset,
)
from image_folder_classifier.evaluator import (
    COMPLETE_BANNER,
    classify_images,
    classify_single_image,
    evaluate,
)
from image_folder_classifier.evaluator.reporter import Echo
from image_folder_classifier.feature_extractor import FeatureExtractor
from image_folder_classifier.lib import setup_logger

logger = setup_logger(__name__)


def run(
    config: RunConfig,
    echo: Echo = typer.echo,
    feature_extractor: Optional[FeatureExtractor] = None,
) -> Dict[str, Any]:
    """
    Scan, assemble, split, train, then classify and report the test rows.

    Args:
        config: Run configuration
        echo: Where console lines (metrics and predictions) are written
        feature_extractor: Backbone to use instead of the configured pretrained model

    Returns:
        Test accuracy and classification report
    """
    dataset_config = config.dataset
    assets_dir = Path(dataset_config.assets_dir).resolve()

    images = load_images_from_directory(
        assets_dir,
        use_folder_name_as_label=dataset_config.use_folder_name_as_label,
    )
    dataset = assemble_dataset(
        images,
        image_folder=assets_dir,
        seed=dataset_config.seed,
        skip_unreadable_images=dataset_config.skip_unreadable_images,
    )
    splits = split_dataset(dataset, dataset_config.split, seed=dataset_config.seed)

    def print_metrics(metrics: ImageClassificationMetrics) -> None:
        echo(str(metrics))

    options = TrainerOptions(
        **config.training.model_dump(),
        validation_set=splits.validation,
        metrics_callback=print_metrics,
        workspace_path=config.workspace_dir,
    )
    trainer = ImageClassificationTrainer(options, feature_extractor=feature_extractor)
    pipeline = trainer.fit(splits.train, splits.label_mapping)

    classify_single_image(splits.test, pipeline, echo=echo)
    predicted = classify_images(
        splits.test, pipeline, count=config.report_count, echo=echo
    )
    results = evaluate(predicted, splits.label_mapping.labels)

    echo("")
    echo(COMPLETE_BANNER)
    echo("")

    return results
