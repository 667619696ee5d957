import errno
from pathlib import Path
from typing import Iterator, Union

from image_folder_classifier.lib import ImageFormat, ImageRecord, setup_logger

logger = setup_logger(__name__)

ACCEPTED_EXTENSIONS = frozenset(f.value for f in ImageFormat)


def label_from_folder(image_path: Path) -> str:
    """The name of the folder holding the image, or the folder path at a filesystem root."""
    parent = image_path.parent
    return parent.name or str(parent)


def label_from_filename(filename: str) -> str:
    """The leading run of letters in the filename, e.g. ``cat01.jpg`` -> ``cat``."""
    for index, char in enumerate(filename):
        if not char.isalpha():
            return filename[:index]
    return filename


def derive_label(image_path: Path, use_folder_name_as_label: bool = True) -> str:
    if use_folder_name_as_label:
        return label_from_folder(image_path)
    return label_from_filename(image_path.name)


def load_images_from_directory(
    folder: Union[str, Path], use_folder_name_as_label: bool = True
) -> Iterator[ImageRecord]:
    """
    Scan a folder recursively for labeled images.

    Args:
        folder: Root folder to scan
        use_folder_name_as_label: Label each image with its parent folder name;
            otherwise with the leading letters of its filename

    Returns:
        A fresh iterator over the accepted images, with absolute paths. The
        folder is listed and sorted when iteration starts, and every call
        walks the filesystem again.

    Raises:
        FileNotFoundError: If the folder does not exist
        NotADirectoryError: If the path is not a folder
    """
    root = Path(folder).resolve()
    if not root.exists():
        raise FileNotFoundError(errno.ENOENT, "Image folder not found", str(root))
    if not root.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, "Image folder is not a directory", str(root))

    return _scan(root, use_folder_name_as_label)


def _scan(root: Path, use_folder_name_as_label: bool) -> Iterator[ImageRecord]:
    logger.debug(f"Scanning {root} for {sorted(ACCEPTED_EXTENSIONS)} files")

    for image_path in sorted(root.rglob("*")):
        if image_path.suffix not in ACCEPTED_EXTENSIONS or not image_path.is_file():
            continue

        label = derive_label(image_path, use_folder_name_as_label)
        if not label:
            logger.warning(f"Could not derive a label for {image_path}, skipping")
            continue

        yield ImageRecord(image_path=str(image_path), label=label)
