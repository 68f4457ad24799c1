# app/services/image_service.py
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

JPEG_FORMAT = "JPEG"


class InvalidImageError(ValueError):
    """Uploaded bytes are not a decodable image"""


def decode_upload(data: bytes) -> Image.Image:
    """Decode uploaded bytes and apply EXIF orientation"""
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise InvalidImageError(f"not a readable image: {e}") from e
    return ImageOps.exif_transpose(image)


def prepare_image_for_storage(image: Image.Image, compression_quality: float = 0.8) -> bytes:
    """Compress to JPEG at the given quality (0-1]"""
    if image.mode != "RGB":
        image = image.convert("RGB")
    buffer = BytesIO()
    image.save(buffer, format=JPEG_FORMAT, quality=round(compression_quality * 100))
    return buffer.getvalue()


def get_image_dimensions(image: Image.Image) -> tuple[int, int]:
    """(width, height) in pixels"""
    return image.size
