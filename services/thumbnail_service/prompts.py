"""Prompt templates for the text and image models."""
from typing import Dict, List, Optional

from .models import HORIZONTAL, AspectRatio

VARIANT_SEPARATOR = "|||VARIANT|||"
ALTERNATIVE_SUFFIX = " (Alternative lighting and composition)"

CREATIVE_DIRECTION_SYSTEM = (
    "You are an expert Art Director specializing in YouTube thumbnails. "
    "Create a detailed visual direction for a thumbnail that will be built around a photo of the creator."
)

FACE_RULES = """CRITICAL FACIAL PRESERVATION:
- DO NOT modify, enhance, or alter the person's facial features in ANY way
- Keep the exact face, expression, and natural appearance from the input image
- Only adjust lighting and composition around the face
- Maintain 100% original facial structure and features"""

ASPECT_INSTRUCTIONS: Dict[str, str] = {
    "16:9": f"""Create a professional YouTube video thumbnail (1920x1080, 16:9 aspect ratio).
{FACE_RULES}
COMPOSITION RULES:
- ALL content MUST be fully contained within the frame
- Maintain 10% padding from ALL edges
- NO elements should be cut off or extend beyond the frame
- Use rule of thirds for main subject placement
- Text should be large and centered for maximum impact""",
    "9:16": f"""Create a vertical YouTube Shorts thumbnail (1080x1920, 9:16 aspect ratio).
{FACE_RULES}
COMPOSITION RULES:
- ALL content MUST be vertically centered
- Maintain 15% padding from top AND bottom edges
- NO elements should extend beyond the vertical frame
- Text should be positioned in the middle third
- Subject must be fully visible and properly scaled to fit 9:16
- Background should extend full height without stretching""",
}


def _extras(tone: Optional[str] = None, channel_style: Optional[str] = None) -> str:
    addl = []
    if tone:
        addl.append(f"Tone: {tone}")
    if channel_style:
        addl.append(f"Channel style: {channel_style}")
    return ("\n" + "\n".join(addl)) if addl else ""


def creative_direction_messages(topic: str, style: str, *, tone: Optional[str] = None) -> List[Dict[str, str]]:
    user = f'Create a thumbnail concept for "{topic}" with {style}. Make it engaging and professional.'
    if tone:
        user += f" The overall tone should feel {tone}."
    return [
        {"role": "system", "content": CREATIVE_DIRECTION_SYSTEM},
        {"role": "user", "content": user},
    ]


def single_concept_messages(
    topic: str,
    style: str,
    placement: str,
    *,
    tone: Optional[str] = None,
    channel_style: Optional[str] = None,
) -> List[Dict[str, str]]:
    system = (
        "You are an expert thumbnail designer. Create a single, high-impact YouTube thumbnail prompt.\n"
        f'CRITICAL: Keep the exact topic text "{topic}" and never modify it.\n'
        "Focus on professional composition and maximum engagement."
    )
    user = (
        "Create a single thumbnail concept for:\n"
        f"Topic: {topic}\n"
        f"Style: {style}\n"
        f"Person placement: {placement}"
        f"{_extras(tone, channel_style)}\n\n"
        "Include specific lighting, composition, and design details for a professional result."
    )
    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def multi_concept_messages(
    topic: str,
    style: str,
    placement: str,
    variants: int,
    *,
    tone: Optional[str] = None,
    channel_style: Optional[str] = None,
) -> List[Dict[str, str]]:
    system = (
        f"You are an expert thumbnail designer. Generate EXACTLY {variants} distinct thumbnail concepts.\n"
        "CRITICAL REQUIREMENTS:\n"
        f'- Keep the exact topic text "{topic}" - never modify it\n'
        "- Each concept must be visually different\n"
        "- Maintain natural facial features - DO NOT alter the person's face\n"
        "- Focus on lighting, composition, and background variations\n\n"
        f'Return each concept separated by "{VARIANT_SEPARATOR}"'
    )
    layout = f" {VARIANT_SEPARATOR} ".join(f"concept{i}" for i in range(1, variants + 1))
    user = (
        f"Create {variants} distinct thumbnail concepts:\n"
        f"Topic: {topic}\n"
        f"Style: {style}\n"
        f"Person placement: {placement}"
        f"{_extras(tone, channel_style)}\n\n"
        "Each variant should have:\n"
        "- Different lighting approach (dramatic, soft, cinematic, etc.)\n"
        "- Different background treatment\n"
        "- Different text positioning\n"
        "- Unique visual elements\n\n"
        f"Format: {layout}"
    )
    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def split_concepts(content: str, variants: int) -> List[str]:
    """Split a multi-concept reply into exactly `variants` prompts.

    Missing concepts are filled by repeating the last one with a variation hint.
    An empty reply yields an empty list.
    """
    prompts = [p.strip() for p in (content or "").split(VARIANT_SEPARATOR)]
    prompts = [p for p in prompts if p]
    if not prompts:
        return []
    while len(prompts) < variants:
        prompts.append(f"{prompts[-1]}{ALTERNATIVE_SUFFIX}")
    return prompts[:variants]


def build_image_prompt(
    concept: str,
    creative_direction: str,
    aspect_ratio: AspectRatio,
    *,
    overlay_text: str,
    style: str,
) -> str:
    """Assemble the full art-direction brief sent with the photo to the image model."""
    composition = ASPECT_INSTRUCTIONS[aspect_ratio]
    frame = "horizontal 16:9" if aspect_ratio == HORIZONTAL else "vertical 9:16"
    sections = [
        "--- ART DIRECTION BRIEF ---",
        "**Objective:** Create a viral, professional, and click-worthy YouTube thumbnail.",
        "",
        "**CRITICAL FACIAL PRESERVATION REQUIREMENTS:**",
        "- ABSOLUTELY DO NOT modify, enhance, beautify, or alter the person's face in ANY way",
        "- Keep 100% original facial features, expressions, skin texture, and appearance",
        "- The face must remain exactly as shown in the input image",
        "- Only enhance lighting and background elements around the person",
        "",
        "**Core Request:**",
        f"- **Style Direction:** {style}",
        "- **Image Integration:** Use the user-provided photo as the central subject with ZERO facial modifications",
        f'- **Text Content:** Overlay the exact text: "{overlay_text}"',
        f"- **Frame:** {frame}",
        "",
        "**Technical & Design Specifications:**",
        f"- **Composition:** {composition}",
        "- Use the rule of thirds for a balanced and professional layout.",
        "- **Lighting:** Employ cinematic, dramatic lighting around the subject. DO NOT modify the face itself.",
        "- **Color Palette:** Use a vibrant, high-contrast color palette that is harmonious with the subject's photo.",
        "- **Text Readability:** The text must be perfectly legible on all screen sizes, from mobile phones to TVs. "
        "Apply a semi-transparent dark gradient behind the text for maximum contrast. "
        "Ensure a minimum 10% safety margin for the text from all edges.",
        "- **Output Quality:** Photorealistic, sharp focus, high detail, professional studio quality.",
        "",
        "**--- NEGATIVE PROMPTS (AVOID AT ALL COSTS) ---**",
        "- DO NOT include: Face modifications, facial enhancements, beauty filters, face smoothing, face alterations",
        "- DO NOT include: Blurry or low-resolution elements, text errors, bad typography, watermarks, signatures, or any artifacts.",
        "",
        "**Concept:**",
        concept.strip(),
    ]
    if creative_direction.strip():
        sections += ["", "**Creative Direction:**", creative_direction.strip()]
    return "\n".join(sections)
