"""Tests for the evaluator and reporter."""

import pandas as pd
import pytest

from image_folder_classifier.evaluator import (
    classify_images,
    classify_single_image,
    evaluate,
    format_prediction,
)
from image_folder_classifier.lib import EmptyDatasetError, ModelOutput


class StubPipeline:
    """Predicts the same label for every row."""

    def __init__(self, predicted_label: str):
        self.predicted_label = predicted_label

    def predict(self, row) -> ModelOutput:
        return ModelOutput(
            image_path=row["image_path"],
            label=row["label"],
            predicted_label=self.predicted_label,
            score=[1.0, 0.0],
        )

    def transform(self, frame: pd.DataFrame) -> pd.DataFrame:
        result = frame.copy()
        result["predicted_label"] = self.predicted_label
        result["score"] = [[1.0, 0.0]] * len(frame)
        return result


def make_test_set(n: int) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "image_path": [f"/data/assets/{'cat' if i % 2 else 'dog'}/img{i}.jpg" for i in range(n)],
            "label": ["cat" if i % 2 else "dog" for i in range(n)],
            "label_key": [1 if i % 2 else 0 for i in range(n)],
            "image": [b""] * n,
        }
    )


class TestReporter:
    """Tests for the prediction reports."""

    def test_format_prediction(self):
        prediction = ModelOutput(
            image_path="/data/assets/cat/cat01.jpg", label="cat", predicted_label="dog"
        )

        assert (
            format_prediction(prediction)
            == "Image: cat01.jpg | Actual Location: cat | Probable State: dog"
        )

    def test_classify_single_image(self):
        lines = []

        prediction = classify_single_image(make_test_set(3), StubPipeline("dog"), echo=lines.append)

        assert prediction.image_path.endswith("img0.jpg")
        assert "Single Image Classification" in lines[1]
        assert lines[3].startswith("---------------------------Image Classification Began")
        assert lines[4] == "Image: img0.jpg | Actual Location: dog | Probable State: dog"
        assert lines[5].startswith("---------------------------Image Classification Ended")

    def test_classify_images_reports_first_ten(self):
        lines = []

        predicted = classify_images(make_test_set(15), StubPipeline("cat"), echo=lines.append)

        report_lines = [line for line in lines if line.startswith("Image: ")]
        assert len(report_lines) == 10
        assert report_lines[0] == "Image: img0.jpg | Actual Location: dog | Probable State: cat"
        assert len(predicted) == 15

    def test_classify_images_with_fewer_rows(self):
        lines = []

        classify_images(make_test_set(2), StubPipeline("cat"), count=10, echo=lines.append)

        assert len([line for line in lines if line.startswith("Image: ")]) == 2

    def test_empty_test_set(self):
        with pytest.raises(EmptyDatasetError):
            classify_single_image(make_test_set(0), StubPipeline("cat"), echo=print)
        with pytest.raises(EmptyDatasetError):
            classify_images(make_test_set(0), StubPipeline("cat"), echo=print)


class TestEvaluate:
    """Tests for test set metrics."""

    def test_accuracy(self):
        predicted = StubPipeline("cat").transform(make_test_set(4))

        results = evaluate(predicted, ["dog", "cat"])

        assert results["test_accuracy"] == pytest.approx(0.5)
        assert results["classification_report"]["cat"]["recall"] == pytest.approx(1.0)
        assert results["classification_report"]["dog"]["recall"] == pytest.approx(0.0)
