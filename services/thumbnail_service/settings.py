import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# API keys
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "").strip()
GOOGLE_API_KEY = (os.getenv("GOOGLE_API_KEY", "") or os.getenv("GEMINI_API_KEY", "")).strip()

# Models
TEXT_MODEL = os.getenv("TEXT_MODEL", "gpt-4o-mini")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image")

# Image generation retry policy: delay after failed attempt k is 2**k * GENERATION_BACKOFF_S
GENERATION_MAX_ATTEMPTS = max(1, int(os.getenv("GENERATION_MAX_ATTEMPTS", "3")))
GENERATION_BACKOFF_S = float(os.getenv("GENERATION_BACKOFF_S", "1.0"))

MAX_VARIANTS = max(1, int(os.getenv("MAX_VARIANTS", "4")))

# Working buffers sent to the image model
WORKING_MAX_DIMENSION = int(os.getenv("WORKING_MAX_DIMENSION", "1024"))
WORKING_JPEG_QUALITY = int(os.getenv("WORKING_JPEG_QUALITY", "95"))

# Final output polish (resize to 1920x1080 / 1080x1920, sharpen, color lift)
POSTPROCESS_OUTPUTS = _flag("POSTPROCESS_OUTPUTS", "false")

# Streaming upload defaults (tunable via env)
UPLOAD_MAX_MB = int(os.getenv("UPLOAD_MAX_MB", "10"))
UPLOAD_CHUNK_KB = int(os.getenv("UPLOAD_CHUNK_KB", "512"))
UPLOAD_READ_TIMEOUT_S = float(os.getenv("UPLOAD_READ_TIMEOUT_S", "10"))
PROCESS_TIMEOUT_S = float(os.getenv("PROCESS_TIMEOUT_S", "30"))

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
