class ImageClassifierError(Exception):
    """Base class for failures raised by the classifier pipeline."""


class EmptyDatasetError(ImageClassifierError, ValueError):
    """Raised when scanning or splitting leaves a required partition empty."""


class ImageDecodeError(ImageClassifierError):
    """Raised when a file with an accepted extension is not a readable image."""

    def __init__(self, image_path: str, reason: str):
        super().__init__(f"Could not decode image {image_path}: {reason}")
        self.image_path = image_path


class TrainingError(ImageClassifierError):
    """Raised when the trainer rejects its configuration or data."""
