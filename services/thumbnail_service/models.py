from typing import List, Literal, Optional

from pydantic import BaseModel, Field

AspectRatio = Literal["16:9", "9:16"]
Placement = Literal["left", "center", "right"]

HORIZONTAL: AspectRatio = "16:9"
VERTICAL: AspectRatio = "9:16"


class ThumbnailOptions(BaseModel):
    """User-supplied fields that drive prompt composition."""
    topic: str
    style: str
    placement: Placement
    variants: int = Field(default=1, ge=1)
    tone: Optional[str] = None
    channel_style: Optional[str] = None
    thumbnail_text: Optional[str] = None

    @property
    def overlay_text(self) -> str:
        # Text rendered on the thumbnail; defaults to the topic verbatim
        return (self.thumbnail_text or "").strip() or self.topic


class GeneratedImages(BaseModel):
    horizontal: List[str] = Field(default_factory=list)
    vertical: List[str] = Field(default_factory=list)
    zip: Optional[str] = None


class GenerateResponse(BaseModel):
    images: GeneratedImages
