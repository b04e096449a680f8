"""
Image compression before upload
Uses Pillow to downscale and re-encode pictures as WebP
"""
import io
import re
import time
import uuid
import logging
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

MAX_WIDTH = 1920
MAX_HEIGHT = 1080
WEBP_QUALITY = 85

FORMATS = {
    'webp': ('WEBP', 'image/webp'),
    'jpeg': ('JPEG', 'image/jpeg'),
    'png': ('PNG', 'image/png'),
}


class ImageCompressionError(Exception):
    """Raised when uploaded bytes are not a readable image"""


def compress_image(data: bytes, max_width=MAX_WIDTH, max_height=MAX_HEIGHT, quality=WEBP_QUALITY, image_format='webp'):
    """
    Downscale `data` to fit max_width x max_height keeping the aspect ratio,
    then re-encode it.

    Returns (bytes, content_type).
    """
    if image_format not in FORMATS:
        raise ImageCompressionError(f"Unsupported output format: {image_format}")
    pil_format, content_type = FORMATS[image_format]

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageCompressionError(f"Failed to load image: {str(e)}") from e

    original_size = img.size
    if img.width > max_width or img.height > max_height:
        img.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)

    # JPEG has no alpha channel
    if pil_format == 'JPEG' and img.mode not in ('RGB', 'L'):
        img = img.convert('RGB')
    elif pil_format == 'WEBP' and img.mode not in ('RGB', 'RGBA'):
        img = img.convert('RGBA' if 'A' in img.getbands() else 'RGB')

    buffer = io.BytesIO()
    save_kwargs = {'optimize': True} if pil_format == 'PNG' else {'quality': quality}
    img.save(buffer, format=pil_format, **save_kwargs)
    compressed = buffer.getvalue()

    logger.debug(
        f"Compressed image {original_size[0]}x{original_size[1]} -> {img.width}x{img.height}, "
        f"{format_file_size(len(data))} -> {format_file_size(len(compressed))}"
    )
    return compressed, content_type


def format_file_size(size):
    if size == 0:
        return '0 Bytes'
    units = ['Bytes', 'KB', 'MB', 'GB']
    index = 0
    value = float(size)
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{round(value, 2):g} {units[index]}"


def generate_optimized_filename(original_name: str) -> str:
    """`<timestamp>-<cleaned name>-<random>.webp`"""
    stem = original_name.rsplit('.', 1)[0] if '.' in original_name else original_name
    clean_name = re.sub(r'[^a-zA-Z0-9_-]', '-', stem or 'image').lower()
    return f"{int(time.time() * 1000)}-{clean_name}-{uuid.uuid4().hex[:10]}.webp"
