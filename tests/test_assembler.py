"""Tests for the dataset assembler."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from image_folder_classifier.dataset_builder import (
    assemble_dataset,
    load_images_from_directory,
)
from image_folder_classifier.lib import (
    EmptyDatasetError,
    ImageDecodeError,
    ImageRecord,
    LabelKeyMapping,
)

from .conftest import COLORS, make_image


class TestAssembleDataset:
    """Tests for assembling scanned records."""

    def test_columns_and_row_count(self, pets_dir):
        dataset = assemble_dataset(load_images_from_directory(pets_dir), pets_dir, seed=1)

        assert list(dataset.frame.columns) == ["image_path", "label", "label_key", "image"]
        assert len(dataset.frame) == 5

    def test_label_keys_are_consistent(self, pets_dir):
        dataset = assemble_dataset(load_images_from_directory(pets_dir), pets_dir, seed=1)
        frame = dataset.frame

        assert set(frame["label_key"]) == {0, 1}
        for label, group in frame.groupby("label"):
            assert group["label_key"].nunique() == 1
            assert dataset.label_mapping.encode(label) == group["label_key"].iloc[0]

    def test_label_keys_round_trip(self, pets_dir):
        dataset = assemble_dataset(load_images_from_directory(pets_dir), pets_dir, seed=1)
        mapping = dataset.label_mapping

        for label in dataset.frame["label"].unique():
            assert mapping.decode(mapping.encode(label)) == label

    def test_image_bytes_are_loaded(self, pets_dir):
        dataset = assemble_dataset(load_images_from_directory(pets_dir), pets_dir, seed=1)

        for _, row in dataset.frame.iterrows():
            assert row["image"] == Path(row["image_path"]).read_bytes()

    def test_relative_paths_resolve_against_folder(self, pets_dir):
        records = [ImageRecord(image_path="cat/cat1.jpg", label="cat")]

        dataset = assemble_dataset(records, pets_dir)

        assert dataset.frame["image"].iloc[0] == (pets_dir / "cat" / "cat1.jpg").read_bytes()

    def test_shuffle_is_seeded(self, large_pets_dir):
        first = assemble_dataset(load_images_from_directory(large_pets_dir), large_pets_dir, seed=7)
        second = assemble_dataset(load_images_from_directory(large_pets_dir), large_pets_dir, seed=7)

        assert first.frame["image_path"].tolist() == second.frame["image_path"].tolist()
        assert first.label_mapping == second.label_mapping

    def test_no_records_is_fatal(self, tmp_path):
        with pytest.raises(EmptyDatasetError):
            assemble_dataset(load_images_from_directory(tmp_path), tmp_path)

    def test_corrupt_image_is_fatal_by_default(self, pets_dir):
        (pets_dir / "dog" / "broken.png").write_bytes(b"not a png")

        with pytest.raises(ImageDecodeError):
            assemble_dataset(load_images_from_directory(pets_dir), pets_dir)

    def test_missing_image_is_fatal_by_default(self, pets_dir):
        records = [ImageRecord(image_path=str(pets_dir / "cat" / "gone.jpg"), label="cat")]

        with pytest.raises(FileNotFoundError):
            assemble_dataset(records, pets_dir)

    def test_skip_unreadable_keeps_keys_dense(self, pets_dir):
        (pets_dir / "bird").mkdir()
        (pets_dir / "bird" / "broken.png").write_bytes(b"not a png")

        dataset = assemble_dataset(
            load_images_from_directory(pets_dir), pets_dir, skip_unreadable_images=True
        )

        assert len(dataset.frame) == 5
        assert "bird" not in dataset.label_mapping.keys
        assert sorted(dataset.label_mapping.keys.values()) == [0, 1]

    def test_skip_unreadable_with_nothing_left(self, tmp_path):
        (tmp_path / "broken.jpg").write_bytes(b"junk")

        with pytest.raises(EmptyDatasetError):
            assemble_dataset(
                load_images_from_directory(tmp_path), tmp_path, skip_unreadable_images=True
            )


class TestLabelKeyMapping:
    """Tests for the label key mapping."""

    def test_from_labels(self):
        mapping = LabelKeyMapping.from_labels(["dog", "cat"])

        assert mapping.keys == {"dog": 0, "cat": 1}
        assert mapping.labels == ["dog", "cat"]
        assert len(mapping) == 2

    def test_decode_out_of_range(self):
        mapping = LabelKeyMapping.from_labels(["dog"])

        with pytest.raises(KeyError):
            mapping.decode(3)

    def test_keys_must_be_dense(self):
        with pytest.raises(ValidationError):
            LabelKeyMapping(keys={"dog": 0, "cat": 2})


class TestRelativeAssetsFolder:
    """Tests for an assets folder given relative to the working directory."""

    def test_scan_and_assemble_relative_folder(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        make_image(tmp_path / "assets" / "cat" / "cat1.jpg", COLORS["cat"])
        make_image(tmp_path / "assets" / "dog" / "dog1.png", COLORS["dog"])

        dataset = assemble_dataset(load_images_from_directory("assets"), "assets", seed=1)

        assert len(dataset.frame) == 2
        assert set(dataset.frame["label"]) == {"cat", "dog"}
        for _, row in dataset.frame.iterrows():
            assert Path(row["image_path"]).is_absolute()
            assert row["image"] == Path(row["image_path"]).read_bytes()
