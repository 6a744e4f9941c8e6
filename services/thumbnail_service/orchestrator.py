"""Per-variant coordination of prompt composition and image synthesis."""
import asyncio
import logging
from time import perf_counter
from typing import Any, List, Optional

from . import settings
from .archive import decode_data_uri, encode_data_uri
from .composer import get_creative_direction, get_enhanced_prompts
from .imaging import postprocess_image
from .models import HORIZONTAL, VERTICAL, AspectRatio, GeneratedImages, ThumbnailOptions
from .prompts import build_image_prompt
from .synthesizer import generate_thumbnail

logger = logging.getLogger(__name__)


async def _polish(images: List[str], aspect_ratio: AspectRatio) -> List[str]:
    polished: List[str] = []
    for uri in images:
        try:
            _, raw = decode_data_uri(uri)
            out = await asyncio.to_thread(postprocess_image, raw, aspect_ratio)
            polished.append(encode_data_uri("image/jpeg", out))
        except ValueError as e:
            logger.warning(f"Skipping post-processing for {aspect_ratio} image: {e}")
            polished.append(uri)
    return polished


async def _variant_prompts(options: ThumbnailOptions, concept: str, text_client: Any):
    direction = await get_creative_direction(text_client, options.topic, options.style, tone=options.tone)
    logger.info("Creative direction generated")
    return tuple(
        build_image_prompt(
            concept,
            direction,
            ratio,
            overlay_text=options.overlay_text,
            style=options.style,
        )
        for ratio in (HORIZONTAL, VERTICAL)
    )


async def generate_variants(
    options: ThumbnailOptions,
    horizontal_jpeg: bytes,
    vertical_jpeg: bytes,
    *,
    text_client: Any,
    image_client: Any,
    postprocess: Optional[bool] = None,
) -> GeneratedImages:
    """Run the full pipeline for every requested variant.

    One variant renders both aspect ratios concurrently. Several variants are
    rendered one after another (16:9 then 9:16) to stay under provider rate
    limits. A failed variant is logged and skipped. Composition of the concept
    prompts is not recoverable and propagates.
    """
    postprocess = settings.POSTPROCESS_OUTPUTS if postprocess is None else postprocess
    t0 = perf_counter()

    concepts = await get_enhanced_prompts(
        text_client,
        options.topic,
        options.style,
        options.placement,
        options.variants,
        tone=options.tone,
        channel_style=options.channel_style,
    )
    logger.info(f"Enhanced prompts ready: {len(concepts)} in {perf_counter() - t0:.2f}s")

    result = GeneratedImages()

    if len(concepts) == 1:
        try:
            h_prompt, v_prompt = await _variant_prompts(options, concepts[0], text_client)
        except Exception as e:
            logger.error(f"Failed to generate variant 1: {e}")
            return result
        outcomes = await asyncio.gather(
            generate_thumbnail(image_client, h_prompt, horizontal_jpeg, HORIZONTAL),
            generate_thumbnail(image_client, v_prompt, vertical_jpeg, VERTICAL),
            return_exceptions=True,
        )
        for ratio, target, outcome in zip(
            (HORIZONTAL, VERTICAL), (result.horizontal, result.vertical), outcomes
        ):
            if isinstance(outcome, BaseException):
                logger.error(f"Failed to generate {ratio} for variant 1: {outcome}")
                continue
            target.extend(outcome)
    else:
        for i, concept in enumerate(concepts, start=1):
            try:
                h_prompt, v_prompt = await _variant_prompts(options, concept, text_client)
                result.horizontal.extend(
                    await generate_thumbnail(image_client, h_prompt, horizontal_jpeg, HORIZONTAL)
                )
                result.vertical.extend(
                    await generate_thumbnail(image_client, v_prompt, vertical_jpeg, VERTICAL)
                )
            except Exception as e:
                logger.error(f"Failed to generate variant {i}: {e}")
                continue

    if postprocess:
        result.horizontal = await _polish(result.horizontal, HORIZONTAL)
        result.vertical = await _polish(result.vertical, VERTICAL)

    logger.info(
        f"Generated {len(result.horizontal)} horizontal / {len(result.vertical)} vertical "
        f"in {perf_counter() - t0:.2f}s"
    )
    return result
