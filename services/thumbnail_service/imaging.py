"""Image normalization for the generation pipeline.

Uploads are cropped into two working buffers (16:9 and 9:16) before being
sent to the image model. The crop window follows the salient subject found
by a simple OpenCV foreground pass so faces are not cut off at the edges.
"""
import io
import logging
from typing import Tuple

import cv2
import numpy as np
from PIL import Image, ImageEnhance, ImageFilter, ImageOps, UnidentifiedImageError

from . import settings
from .models import HORIZONTAL, AspectRatio

logger = logging.getLogger(__name__)

# Final delivery sizes
OUTPUT_SIZES = {
    "16:9": (1920, 1080),
    "9:16": (1080, 1920),
}

# Foreground detection runs on a reduced copy
_DETECT_MAX_SIDE = 512


def load_image(data: bytes) -> Image.Image:
    """Decode bytes into an upright RGB image. Raises ValueError if undecodable."""
    try:
        im = Image.open(io.BytesIO(data))
        im.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Unsupported or corrupt image: {e}") from e

    im = ImageOps.exif_transpose(im)
    # Flatten any transparency onto white to avoid dark backgrounds
    if im.mode in ('RGBA', 'LA') or (im.mode == 'P' and 'transparency' in im.info):
        im = im.convert('RGBA')
        background = Image.new('RGB', im.size, (255, 255, 255))
        background.paste(im, mask=im.split()[-1])
        return background
    if im.mode != 'RGB':
        im = im.convert('RGB')
    return im


def target_size(aspect_ratio: AspectRatio, max_dimension: int = settings.WORKING_MAX_DIMENSION) -> Tuple[int, int]:
    short = round(max_dimension * (9 / 16))
    if aspect_ratio == HORIZONTAL:
        return max_dimension, short
    return short, max_dimension


def detect_focus(image: Image.Image) -> Tuple[int, int]:
    """Return the center of the dominant foreground region (Otsu + largest contour).

    Falls back to the image center when no contour is found.
    """
    width, height = image.size
    ratio = min(1.0, _DETECT_MAX_SIDE / max(width, height))
    small = image if ratio >= 1.0 else image.resize(
        (max(1, int(width * ratio)), max(1, int(height * ratio)))
    )

    cv_image = cv2.cvtColor(np.array(small.convert('RGB')), cv2.COLOR_RGB2BGR)
    gray = cv2.cvtColor(cv_image, cv2.COLOR_BGR2GRAY)
    blurred = cv2.GaussianBlur(gray, (5, 5), 0)
    _, thresh = cv2.threshold(blurred, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    contours, _ = cv2.findContours(thresh, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    if not contours:
        return width // 2, height // 2

    largest = max(contours, key=cv2.contourArea)
    x, y, w, h = cv2.boundingRect(largest)
    cx = int((x + w / 2) / ratio)
    cy = int((y + h / 2) / ratio)
    return min(max(cx, 0), width - 1), min(max(cy, 0), height - 1)


def cover_crop(image: Image.Image, width: int, height: int, focus: Tuple[int, int]) -> Image.Image:
    """Scale so the image covers width x height, then crop a window centered on focus."""
    src_w, src_h = image.size
    scale = max(width / src_w, height / src_h)
    new_w = max(width, round(src_w * scale))
    new_h = max(height, round(src_h * scale))
    resized = image.resize((new_w, new_h), Image.Resampling.LANCZOS)

    # Clamp the window inside the scaled image
    left = int(round(focus[0] * scale - width / 2))
    top = int(round(focus[1] * scale - height / 2))
    left = max(0, min(left, new_w - width))
    top = max(0, min(top, new_h - height))
    return resized.crop((left, top, left + width, top + height))


def preprocess_image(
    data: bytes,
    aspect_ratio: AspectRatio,
    *,
    max_dimension: int = settings.WORKING_MAX_DIMENSION,
    quality: int = settings.WORKING_JPEG_QUALITY,
) -> bytes:
    """Produce the JPEG working buffer for one aspect ratio."""
    image = load_image(data)
    width, height = target_size(aspect_ratio, max_dimension)
    focus = detect_focus(image)
    cropped = cover_crop(image, width, height, focus)

    buf = io.BytesIO()
    cropped.save(buf, format='JPEG', quality=quality, optimize=True)
    logger.debug(f"preprocess {aspect_ratio}: {image.size} -> {cropped.size}, focus={focus}")
    return buf.getvalue()


def postprocess_image(data: bytes, aspect_ratio: AspectRatio) -> bytes:
    """Resize a generated image to its delivery size with a light sharpen and color lift."""
    image = load_image(data)
    size = OUTPUT_SIZES[aspect_ratio]
    out = image.resize(size, Image.Resampling.LANCZOS)
    out = out.filter(ImageFilter.UnsharpMask(radius=0.5, percent=100, threshold=0))
    out = ImageEnhance.Brightness(out).enhance(1.05)
    out = ImageEnhance.Color(out).enhance(1.1)

    buf = io.BytesIO()
    out.save(buf, format='JPEG', quality=95)
    return buf.getvalue()
