from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd
from tqdm import tqdm

from image_folder_classifier.lib import (
    EmptyDatasetError,
    ImageDecodeError,
    ImageRecord,
    LabelKeyMapping,
    PreparedDataset,
    decode_image,
    setup_logger,
)
from image_folder_classifier.lib.models import (
    IMAGE_COLUMN,
    IMAGE_PATH_COLUMN,
    LABEL_COLUMN,
    LABEL_KEY_COLUMN,
)

logger = setup_logger(__name__)


def load_image_bytes(image_folder: Path, image_path: str) -> bytes:
    """
    Read the raw bytes of an image and check that they decode.

    Relative paths are resolved against `image_folder`; absolute paths are
    read as they are.
    """
    full_path = image_folder / image_path
    image_bytes = full_path.read_bytes()
    decode_image(image_bytes, str(full_path))
    return image_bytes


def assemble_dataset(
    records: Iterable[ImageRecord],
    image_folder: Union[str, Path],
    seed: Optional[int] = None,
    skip_unreadable_images: bool = False,
) -> PreparedDataset:
    """
    Materialise scanned records into a shuffled, label-encoded table.

    The returned frame has the columns image_path, label, label_key and image
    (raw bytes). Label keys are assigned in order of first appearance in the
    shuffled rows.

    Args:
        records: Scanned image records
        image_folder: Folder the image paths are relative to
        seed: Random seed for the shuffle; None shuffles differently each run
        skip_unreadable_images: Drop rows whose image cannot be read or
            decoded, with a warning, instead of failing

    Raises:
        EmptyDatasetError: If there are no records, or none survive loading
        OSError: If an image cannot be read and skipping is disabled
        ImageDecodeError: If an image does not decode and skipping is disabled
    """
    image_folder = Path(image_folder)
    items: List[ImageRecord] = list(records)
    if not items:
        raise EmptyDatasetError(f"No .jpg or .png images found in {image_folder}")

    frame = pd.DataFrame([item.model_dump() for item in items])
    frame = frame.sample(frac=1, random_state=seed).reset_index(drop=True)
    logger.info(f"Shuffled {len(frame)} image records")

    images: List[Optional[bytes]] = []
    for image_path in tqdm(frame[IMAGE_PATH_COLUMN], desc="Loading images"):
        try:
            images.append(load_image_bytes(image_folder, image_path))
        except (OSError, ImageDecodeError) as e:
            if not skip_unreadable_images:
                raise
            logger.warning(f"Skipping unreadable image {image_path}: {e}")
            images.append(None)

    frame[IMAGE_COLUMN] = images
    frame = frame[frame[IMAGE_COLUMN].notna()].reset_index(drop=True)
    if frame.empty:
        raise EmptyDatasetError(f"None of the images in {image_folder} could be read")

    # Encode after dropping rows so the key space has no gaps
    codes, uniques = pd.factorize(frame[LABEL_COLUMN])
    frame[LABEL_KEY_COLUMN] = codes
    label_mapping = LabelKeyMapping.from_labels([str(label) for label in uniques])

    frame = frame[[IMAGE_PATH_COLUMN, LABEL_COLUMN, LABEL_KEY_COLUMN, IMAGE_COLUMN]]
    logger.info(
        f"Assembled {len(frame)} images with {len(label_mapping)} labels: {label_mapping.keys}"
    )

    return PreparedDataset(frame=frame, label_mapping=label_mapping)
