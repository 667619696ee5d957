from pathlib import Path
from typing import Any, Callable, Dict, List, cast

import pandas as pd
import typer
from sklearn.metrics import accuracy_score, classification_report

from image_folder_classifier.classifier_trainer import ImageClassificationPipeline
from image_folder_classifier.lib import EmptyDatasetError, ModelOutput, setup_logger
from image_folder_classifier.lib.models import (
    IMAGE_PATH_COLUMN,
    LABEL_COLUMN,
    PREDICTED_LABEL_COLUMN,
    SCORE_COLUMN,
)

logger = setup_logger(__name__)

Echo = Callable[[str], Any]

DEFAULT_REPORT_COUNT = 10

SINGLE_BANNER = "===========================Single Image Classification==============================="
MULTIPLE_BANNER = "===========================Multiple Image Classification============================="
COMPLETE_BANNER = "===========================Image Classification Complete============================="
BEGAN_SEPARATOR = "---------------------------Image Classification Began--------------------------------"
ENDED_SEPARATOR = "---------------------------Image Classification Ended--------------------------------"


def format_prediction(prediction: ModelOutput) -> str:
    image_name = Path(prediction.image_path).name
    return (
        f"Image: {image_name} | Actual Location: {prediction.label} "
        f"| Probable State: {prediction.predicted_label}"
    )


def output_prediction(prediction: ModelOutput, echo: Echo = typer.echo) -> None:
    echo(BEGAN_SEPARATOR)
    echo(format_prediction(prediction))
    echo(ENDED_SEPARATOR)


def _require_rows(test_set: pd.DataFrame) -> None:
    if test_set.empty:
        raise EmptyDatasetError("The test set is empty, nothing to classify")


def classify_single_image(
    test_set: pd.DataFrame,
    pipeline: ImageClassificationPipeline,
    echo: Echo = typer.echo,
) -> ModelOutput:
    """Classify the first test row and print the result."""
    _require_rows(test_set)
    prediction = pipeline.predict(test_set.iloc[0])

    echo("")
    echo(SINGLE_BANNER)
    echo("")
    output_prediction(prediction, echo)
    return prediction


def classify_images(
    test_set: pd.DataFrame,
    pipeline: ImageClassificationPipeline,
    count: int = DEFAULT_REPORT_COUNT,
    echo: Echo = typer.echo,
) -> pd.DataFrame:
    """
    Classify all test rows and print the first `count` results.

    Returns the test rows with the predicted_label and score columns added.
    """
    _require_rows(test_set)
    predicted = pipeline.transform(test_set)

    predictions = [
        ModelOutput(
            image_path=str(row[IMAGE_PATH_COLUMN]),
            label=str(row[LABEL_COLUMN]),
            predicted_label=str(row[PREDICTED_LABEL_COLUMN]),
            score=list(row[SCORE_COLUMN]),
        )
        for _, row in predicted.head(count).iterrows()
    ]

    echo("")
    echo(MULTIPLE_BANNER)
    echo("")
    for prediction in predictions:
        output_prediction(prediction, echo)
    return predicted


def evaluate(predicted: pd.DataFrame, labels: List[str]) -> Dict[str, Any]:
    """Accuracy and per-label precision/recall of rows already run through the pipeline."""
    _require_rows(predicted)
    actual_labels = predicted[LABEL_COLUMN].astype(str).tolist()
    predicted_labels = predicted[PREDICTED_LABEL_COLUMN].astype(str).tolist()

    test_accuracy = float(accuracy_score(actual_labels, predicted_labels))
    report = cast(
        Dict[str, Any],
        classification_report(
            actual_labels,
            predicted_labels,
            labels=labels,
            output_dict=True,
            zero_division=0,
        ),
    )

    logger.info(f"Test Accuracy: {test_accuracy:.4f}")
    return {"test_accuracy": test_accuracy, "classification_report": report}
