from .reporter import (
    COMPLETE_BANNER,
    classify_images,
    classify_single_image,
    evaluate,
    format_prediction,
    output_prediction,
)

__all__ = [
    "COMPLETE_BANNER",
    "classify_images",
    "classify_single_image",
    "evaluate",
    "format_prediction",
    "output_prediction",
]
