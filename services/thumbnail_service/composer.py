"""Text-model calls that produce creative direction and per-variant concepts."""
import logging
from typing import Any, Dict, List, Optional

from . import prompts, settings

logger = logging.getLogger(__name__)


class PromptCompositionError(RuntimeError):
    """The text model could not produce variant prompts."""


def _chat_args(model: str, messages: List[Dict[str, str]], *, max_tokens: int, temperature: float, **sampling: float) -> Dict[str, Any]:
    args: Dict[str, Any] = {"model": model, "messages": messages, "max_tokens": max_tokens}
    # Some models (e.g., gpt-5 family) only support default sampling; omit to avoid 400s
    if not str(model).strip().lower().startswith("gpt-5"):
        args["temperature"] = float(temperature)
        args.update(sampling)
    return args


def _first_content(response: Any) -> str:
    try:
        return (response.choices[0].message.content or "").strip()
    except (AttributeError, IndexError):
        return ""


async def get_creative_direction(
    client: Any,
    topic: str,
    style: str,
    *,
    tone: Optional[str] = None,
    model: Optional[str] = None,
) -> str:
    """Short art-direction paragraph for one variant. API errors propagate."""
    response = await client.chat.completions.create(**_chat_args(
        model or settings.TEXT_MODEL,
        prompts.creative_direction_messages(topic, style, tone=tone),
        max_tokens=300,
        temperature=0.7,
    ))
    return _first_content(response)


async def get_enhanced_prompts(
    client: Any,
    topic: str,
    style: str,
    placement: str,
    variants: int = 1,
    *,
    tone: Optional[str] = None,
    channel_style: Optional[str] = None,
    model: Optional[str] = None,
) -> List[str]:
    """Return exactly `variants` distinct thumbnail concepts.

    A single variant uses one focused completion; several variants are requested
    in one completion separated by VARIANT_SEPARATOR and padded if the model
    returns too few.
    """
    model = model or settings.TEXT_MODEL
    try:
        if variants == 1:
            response = await client.chat.completions.create(**_chat_args(
                model,
                prompts.single_concept_messages(topic, style, placement, tone=tone, channel_style=channel_style),
                max_tokens=400,
                temperature=0.7,
            ))
            content = _first_content(response)
            result = [content] if content else []
        else:
            response = await client.chat.completions.create(**_chat_args(
                model,
                prompts.multi_concept_messages(
                    topic, style, placement, variants, tone=tone, channel_style=channel_style
                ),
                max_tokens=1200,
                temperature=0.9,
                presence_penalty=0.8,
                frequency_penalty=0.6,
            ))
            result = prompts.split_concepts(_first_content(response), variants)
    except Exception as e:
        logger.error(f"OpenAI error: {e}")
        raise PromptCompositionError(f"Failed to enhance prompt with OpenAI: {e}") from e

    if not result:
        raise PromptCompositionError("Failed to enhance prompt with OpenAI: empty response")

    logger.info(f"Generated {len(result)} prompts for {variants} variants")
    return result
