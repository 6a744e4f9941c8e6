import asyncio
import logging
import os
from time import perf_counter
from typing import Optional, Tuple

import openai
from openai import AsyncOpenAI
from google import genai
from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from thumbnail_service import settings
from thumbnail_service.archive import build_zip, zip_data_uri
from thumbnail_service.composer import PromptCompositionError
from thumbnail_service.imaging import preprocess_image
from thumbnail_service.models import HORIZONTAL, VERTICAL, GenerateResponse, ThumbnailOptions
from thumbnail_service.orchestrator import generate_variants

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PLACEMENTS = ("left", "center", "right")

# Initialize AI clients
openai_client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY) if settings.OPENAI_API_KEY else None
if not settings.OPENAI_API_KEY:
    logger.warning("OPENAI_API_KEY not set; prompt composition disabled.")

genai_client = genai.Client(api_key=settings.GOOGLE_API_KEY) if settings.GOOGLE_API_KEY else None
if not settings.GOOGLE_API_KEY:
    logger.warning("GOOGLE_API_KEY not set; image generation disabled.")

app = FastAPI(title="Thumbnail Service", version="1.0.0")

# CORS: allow the browser client to call this API directly.
# Configure via CORS_ALLOW_ORIGINS env (comma-separated). Defaults are dev-friendly.
if not settings.CORS_ALLOW_ORIGINS:
    allow_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "*",
    ]
else:
    allow_origins = [o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()]
# If wildcard is present, set credentials False and pass ["*"] per Starlette rules
use_wildcard = "*" in allow_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if use_wildcard else allow_origins,
    allow_credentials=False if use_wildcard else True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Clients read errors from the "error" key
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def read_upload(request: Request, image: UploadFile) -> bytes:
    """Read an uploaded image in chunks, enforcing content type, size limit and per-chunk timeout."""
    ctype = (image.content_type or "").lower()
    if not ctype.startswith("image/"):
        logger.warning(f"Rejecting non-image upload: content_type={ctype!r}")
        raise HTTPException(status_code=415, detail="Unsupported Media Type: expected image/*")

    max_bytes = settings.UPLOAD_MAX_MB * 1024 * 1024
    chunk_size = max(1, settings.UPLOAD_CHUNK_KB) * 1024
    buf = bytearray()
    while True:
        # honor client disconnects
        if await request.is_disconnected():
            logger.warning("Client disconnected during upload")
            raise HTTPException(status_code=499, detail="Client Closed Request")
        try:
            chunk = await asyncio.wait_for(image.read(chunk_size), timeout=settings.UPLOAD_READ_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.error("Upload read timeout per-chunk")
            raise HTTPException(status_code=408, detail="Upload read timeout")
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            logger.warning(f"Upload exceeded limit: {len(buf)} bytes > {max_bytes} bytes")
            raise HTTPException(status_code=413, detail="File too large")

    if not buf:
        raise HTTPException(status_code=400, detail="Empty upload")
    return bytes(buf)


async def normalize_upload(data: bytes) -> Tuple[bytes, bytes]:
    """Build the 16:9 and 9:16 working buffers off the event loop."""
    def _sync_normalize(raw: bytes) -> Tuple[bytes, bytes]:
        return preprocess_image(raw, HORIZONTAL), preprocess_image(raw, VERTICAL)

    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_sync_normalize, data), timeout=settings.PROCESS_TIMEOUT_S
        )
    except asyncio.TimeoutError:
        logger.error("Image normalization timed out")
        raise HTTPException(status_code=504, detail="Image processing timed out")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def parse_variants(raw: Optional[str]) -> int:
    error = f"Number of variants must be between 1 and {settings.MAX_VARIANTS}"
    if raw is None or not raw.strip():
        return 1
    try:
        variants = int(raw.strip())
    except ValueError:
        raise HTTPException(status_code=400, detail=error)
    if variants < 1 or variants > settings.MAX_VARIANTS:
        raise HTTPException(status_code=400, detail=error)
    return variants


# API Endpoints
@app.post("/api/generate", response_model=GenerateResponse)
async def generate(
    request: Request,
    image: Optional[UploadFile] = File(None),
    topic: Optional[str] = Form(None),
    style: Optional[str] = Form(None),
    placement: Optional[str] = Form(None),
    variants: Optional[str] = Form(None),
    tone: Optional[str] = Form(None),
    channel_style: Optional[str] = Form(None, alias="channelStyle"),
    thumbnail_text: Optional[str] = Form(None, alias="thumbnailText"),
):
    """Upload a photo and receive 16:9 and 9:16 thumbnails plus a zip of all of them."""
    t0 = perf_counter()
    logger.info("Received generate request")
    try:
        if image is None or not (topic or "").strip() or not (style or "").strip() or not (placement or "").strip():
            raise HTTPException(status_code=400, detail="Missing required fields")
        placement = placement.strip().lower()
        if placement not in PLACEMENTS:
            raise HTTPException(status_code=400, detail=f"Placement must be one of: {', '.join(PLACEMENTS)}")
        options = ThumbnailOptions(
            topic=topic.strip(),
            style=style.strip(),
            placement=placement,
            variants=parse_variants(variants),
            tone=(tone or "").strip() or None,
            channel_style=(channel_style or "").strip() or None,
            thumbnail_text=(thumbnail_text or "").strip() or None,
        )
        logger.info(
            f"Processing request with: topic={options.topic!r} style={options.style!r} "
            f"placement={options.placement} variants={options.variants}"
        )

        if openai_client is None or genai_client is None:
            raise HTTPException(status_code=503, detail="AI services are not configured")

        data = await read_upload(request, image)
        horizontal_jpeg, vertical_jpeg = await normalize_upload(data)
        logger.info(f"Image processed successfully ({len(data)/1024:.0f} KB) in {perf_counter()-t0:.2f}s")

        try:
            images = await generate_variants(
                options,
                horizontal_jpeg,
                vertical_jpeg,
                text_client=openai_client,
                image_client=genai_client,
            )
        except PromptCompositionError as e:
            raise HTTPException(status_code=502, detail=str(e))

        if not images.horizontal and not images.vertical:
            raise HTTPException(status_code=502, detail="Failed to generate images: no thumbnails were produced")

        images.zip = zip_data_uri(build_zip(images.horizontal, images.vertical))
        logger.info(f"Archive created successfully; total_elapsed={perf_counter()-t0:.2f}s")
        return GenerateResponse(images=images)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Generation error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to generate images"})


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "thumbnail-service",
        "openai_configured": openai_client is not None,
        "google_configured": genai_client is not None,
        "text_model": settings.TEXT_MODEL,
        "image_model": settings.IMAGE_MODEL,
        "max_variants": settings.MAX_VARIANTS,
        "generation_max_attempts": settings.GENERATION_MAX_ATTEMPTS,
        "generation_backoff_s": settings.GENERATION_BACKOFF_S,
        "postprocess_outputs": bool(settings.POSTPROCESS_OUTPUTS),
        "openai_sdk_version": getattr(openai, "__version__", "unknown"),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("thumbnail_service.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8010")))
