from pydantic import BaseModel, Field, field_validator

DEFAULT_TEST_FRACTION = 0.3
# Share of the held-out rows that become the test set; the rest is validation
DEFAULT_VALIDATION_TEST_FRACTION = 0.1
DEFAULT_SEED = 42


class SplitConfig(BaseModel):
    """
    Configuration for the two-step train/validation/test split.

    The first split holds out `test_fraction` of all rows; the second split
    sends `validation_test_fraction` of the held-out rows to the test set and
    the remainder to the validation set.
    """

    test_fraction: float = Field(
        DEFAULT_TEST_FRACTION, description="Fraction of rows held out from training"
    )
    validation_test_fraction: float = Field(
        DEFAULT_VALIDATION_TEST_FRACTION,
        description="Fraction of the held-out rows used as the test set",
    )
    stratify: bool = Field(
        False, description="Keep label proportions equal across the splits"
    )

    @field_validator("test_fraction", "validation_test_fraction")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        """Validate that the fraction is strictly between 0 and 1."""
        if not 0 < v < 1:
            raise ValueError("split fractions must be between 0 and 1 (exclusive)")
        return v


class DatasetConfig(BaseModel):
    """Configuration for scanning and assembling the dataset."""

    assets_dir: str = Field("assets", description="Root folder containing the images")
    use_folder_name_as_label: bool = Field(
        True,
        description="Use the parent folder name as label instead of the filename prefix",
    )
    skip_unreadable_images: bool = Field(
        False,
        description="Drop images that cannot be read or decoded instead of failing",
    )
    seed: int = Field(DEFAULT_SEED, description="Random seed for shuffling and splitting")
    split: SplitConfig = Field(
        default_factory=SplitConfig, description="Train/validation/test split"
    )
