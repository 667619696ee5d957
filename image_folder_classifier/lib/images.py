import io

from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError


def decode_image(image_bytes: bytes, image_path: str = "<bytes>") -> Image.Image:
    """Decode raw image bytes into an RGB PIL image."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(image_path, str(e)) from e
    return image.convert("RGB")
