"""Tests for the train/validation/test splitter."""

import pytest
from pydantic import ValidationError

from image_folder_classifier.dataset_builder import SplitConfig, split_dataset
from image_folder_classifier.dataset_builder.splitter import split_sizes
from image_folder_classifier.lib import EmptyDatasetError

from .conftest import make_prepared


def _paths(frame):
    return set(frame["image_path"])


class TestSplitDataset:
    """Tests for split_dataset."""

    def test_five_rows(self):
        dataset = make_prepared(["cat"] * 3 + ["dog"] * 2)

        splits = split_dataset(
            dataset, SplitConfig(test_fraction=0.3, validation_test_fraction=0.5)
        )

        assert splits.sizes() == {"train": 3, "validation": 1, "test": 1}

    def test_partitions_are_disjoint_and_complete(self):
        dataset = make_prepared(["cat", "dog", "bird"] * 10)

        splits = split_dataset(dataset, seed=3)
        train, validation, test = (
            _paths(splits.train),
            _paths(splits.validation),
            _paths(splits.test),
        )

        assert len(splits.train) + len(splits.validation) + len(splits.test) == 30
        assert not train & validation
        assert not train & test
        assert not validation & test
        assert train | validation | test == _paths(dataset.frame)

    def test_default_fractions(self):
        dataset = make_prepared(["cat", "dog"] * 10)

        splits = split_dataset(dataset)

        # held out ceil(20 * 0.3) = 6, test ceil(6 * 0.1) = 1
        assert splits.sizes() == {"train": 14, "validation": 5, "test": 1}

    def test_split_is_seeded(self):
        dataset = make_prepared(["cat", "dog"] * 10)

        first = split_dataset(dataset, seed=5)
        second = split_dataset(dataset, seed=5)

        assert first.test["image_path"].tolist() == second.test["image_path"].tolist()

    def test_label_mapping_is_carried(self):
        dataset = make_prepared(["cat", "dog"] * 5)

        assert split_dataset(dataset).label_mapping == dataset.label_mapping

    def test_stratified_split(self):
        dataset = make_prepared(["cat"] * 10 + ["dog"] * 10)

        splits = split_dataset(
            dataset,
            SplitConfig(test_fraction=0.5, validation_test_fraction=0.5, stratify=True),
        )

        assert splits.train["label"].value_counts().to_dict() == {"cat": 5, "dog": 5}

    @pytest.mark.parametrize("labels", [["cat"], ["cat", "dog"]])
    def test_empty_partition_is_fatal(self, labels):
        with pytest.raises(EmptyDatasetError):
            split_dataset(make_prepared(labels))


class TestSplitConfig:
    """Tests for split configuration."""

    def test_split_sizes_round_held_out_up(self):
        assert split_sizes(5, 0.3) == (3, 2)
        assert split_sizes(2, 0.5) == (1, 1)
        assert split_sizes(10, 0.1) == (9, 1)

    @pytest.mark.parametrize("fraction", [0, 1, -0.1, 1.5])
    def test_fraction_bounds(self, fraction):
        with pytest.raises(ValidationError):
            SplitConfig(test_fraction=fraction)
