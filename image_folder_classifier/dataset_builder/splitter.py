import math
from typing import Optional, Tuple

import pandas as pd
from sklearn.model_selection import train_test_split

from image_folder_classifier.lib import (
    DatasetSplits,
    EmptyDatasetError,
    PreparedDataset,
    setup_logger,
)
from image_folder_classifier.lib.models import LABEL_KEY_COLUMN

from .config import DEFAULT_SEED, SplitConfig

logger = setup_logger(__name__)


def split_sizes(n_rows: int, test_fraction: float) -> Tuple[int, int]:
    """
    Number of rows kept and held out by one split.

    The held-out side is rounded up, as scikit-learn does for float sizes.
    """
    held_out = math.ceil(n_rows * test_fraction)
    return n_rows - held_out, held_out


def _split_frame(
    frame: pd.DataFrame,
    test_fraction: float,
    seed: int,
    stratify: bool,
    names: Tuple[str, str],
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a frame in two.

    Args:
        frame: Rows to split
        test_fraction: Ratio of the second split
        seed: Random seed for reproducibility
        stratify: Keep label key proportions equal on both sides
        names: Names of the two sides, for error messages

    Returns:
        Tuple of (first_split, second_split)
    """
    kept, held_out = split_sizes(len(frame), test_fraction)
    for name, size in zip(names, (kept, held_out)):
        if size == 0:
            raise EmptyDatasetError(
                f"Splitting {len(frame)} rows with fraction {test_fraction} "
                f"leaves the {name} set empty"
            )

    idx_first, idx_second = train_test_split(
        range(len(frame)),
        test_size=held_out,
        random_state=seed,
        stratify=frame[LABEL_KEY_COLUMN] if stratify else None,
    )

    first_split = frame.iloc[list(idx_first)].reset_index(drop=True)
    second_split = frame.iloc[list(idx_second)].reset_index(drop=True)
    return first_split, second_split


def split_dataset(
    dataset: PreparedDataset,
    config: Optional[SplitConfig] = None,
    seed: int = DEFAULT_SEED,
) -> DatasetSplits:
    """
    Partition a prepared dataset into train, validation and test sets.

    The first split holds out `config.test_fraction` of the rows; the rest is
    the train set. The second split sends `config.validation_test_fraction`
    of the held-out rows to the test set and the rest to the validation set.
    Held-out sides are rounded up, so five rows with fractions 0.3 and 0.5
    give train=3, validation=1, test=1.

    Raises:
        EmptyDatasetError: If any of the three partitions would be empty
    """
    config = config or SplitConfig()

    train, held_out = _split_frame(
        dataset.frame,
        config.test_fraction,
        seed,
        config.stratify,
        names=("train", "held-out"),
    )
    validation, test = _split_frame(
        held_out,
        config.validation_test_fraction,
        seed,
        config.stratify,
        names=("validation", "test"),
    )

    splits = DatasetSplits(
        train=train,
        validation=validation,
        test=test,
        label_mapping=dataset.label_mapping,
    )
    logger.info(f"Split sizes: {splits.sizes()}")
    return splits
