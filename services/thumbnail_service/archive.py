import base64
import binascii
import io
import mimetypes
import zipfile
from typing import List, Sequence, Tuple

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


def encode_data_uri(mime: str, data: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into (mime, raw bytes)."""
    if not uri or not uri.startswith("data:") or "," not in uri:
        raise ValueError("Not a data URI")
    header, data_part = uri.split(",", 1)
    mime = header[5:].split(";")[0] or "application/octet-stream"
    try:
        return mime, base64.b64decode(data_part, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def extension_for(mime: str) -> str:
    ext = _EXTENSIONS.get(mime.lower())
    if ext:
        return ext
    guessed = mimetypes.guess_extension(mime) if mime.startswith("image/") else None
    return guessed.lstrip(".") if guessed else "jpg"


def build_zip(horizontal: Sequence[str], vertical: Sequence[str]) -> bytes:
    """Zip all images: horizontal-1..N first, then vertical-1..M."""
    entries: List[Tuple[str, bytes]] = []
    for prefix, images in (("horizontal", horizontal), ("vertical", vertical)):
        for i, uri in enumerate(images, start=1):
            mime, raw = decode_data_uri(uri)
            entries.append((f"{prefix}-{i}.{extension_for(mime)}", raw))

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for name, raw in entries:
            zf.writestr(name, raw)
    return buf.getvalue()


def zip_data_uri(zip_bytes: bytes) -> str:
    return encode_data_uri("application/zip", zip_bytes)
