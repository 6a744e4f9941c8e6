"""Gemini image generation with bounded retry and exponential backoff."""
import asyncio
import base64
import logging
from typing import Any, List, Optional

from google.genai import types

from . import settings
from .models import AspectRatio

logger = logging.getLogger(__name__)


class ThumbnailGenerationError(RuntimeError):
    """All attempts to generate a thumbnail image failed."""


def generation_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        temperature=0.8,
        top_p=0.8,
        top_k=15,
        max_output_tokens=2048,
        candidate_count=1,
        response_modalities=["IMAGE", "TEXT"],
    )


def build_contents(prompt: str, image_jpeg: bytes) -> List[types.Content]:
    return [
        types.Content(
            role="user",
            parts=[
                types.Part.from_text(text=prompt),
                types.Part.from_bytes(data=image_jpeg, mime_type="image/jpeg"),
            ],
        )
    ]


def _inline_image(chunk: Any) -> Optional[str]:
    """Return a data URI if the chunk's first part carries inline image data."""
    candidates = getattr(chunk, "candidates", None)
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        return None
    inline = getattr(parts[0], "inline_data", None)
    if inline is None:
        return None
    data = getattr(inline, "data", None)
    if not data:
        return None
    if isinstance(data, (bytes, bytearray)):
        data = base64.b64encode(data).decode("ascii")
    mime = getattr(inline, "mime_type", None) or "image/jpeg"
    return f"data:{mime};base64,{data}"


async def _stream_images(client: Any, model: str, prompt: str, image_jpeg: bytes) -> List[str]:
    images: List[str] = []
    stream = await client.aio.models.generate_content_stream(
        model=model,
        contents=build_contents(prompt, image_jpeg),
        config=generation_config(),
    )
    async for chunk in stream:
        uri = _inline_image(chunk)
        if uri:
            images.append(uri)
    return images


async def generate_thumbnail(
    client: Any,
    prompt: str,
    image_jpeg: bytes,
    aspect_ratio: AspectRatio,
    *,
    model: Optional[str] = None,
    max_attempts: Optional[int] = None,
    backoff_s: Optional[float] = None,
) -> List[str]:
    """Generate thumbnail image(s) for one aspect ratio as data URIs.

    A raised error or a stream with no image counts as a failed attempt. After
    failed attempt k the call sleeps 2**k * backoff_s seconds; once max_attempts
    is reached ThumbnailGenerationError is raised.
    """
    model = model or settings.IMAGE_MODEL
    max_attempts = max(1, max_attempts or settings.GENERATION_MAX_ATTEMPTS)
    backoff_s = settings.GENERATION_BACKOFF_S if backoff_s is None else backoff_s

    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        logger.info(f"Generating {aspect_ratio} thumbnail (attempt {attempt}/{max_attempts})...")
        try:
            images = await _stream_images(client, model, prompt, image_jpeg)
            if images:
                logger.info(f"Successfully generated {aspect_ratio} thumbnail")
                return images
            last_error = ThumbnailGenerationError("No image in response")
            logger.warning(f"Attempt {attempt} for {aspect_ratio} returned no image")
        except Exception as e:
            last_error = e
            logger.warning(f"Attempt {attempt} for {aspect_ratio} failed: {e}")

        if attempt < max_attempts:
            delay = (2 ** attempt) * backoff_s
            logger.info(f"Retrying {aspect_ratio} in {delay:.1f}s")
            await asyncio.sleep(delay)

    logger.error(f"All generation attempts failed for {aspect_ratio}")
    raise ThumbnailGenerationError(
        f"Failed to generate image after {max_attempts} attempts: {last_error}"
    ) from last_error
