"""
OCR Service — turns a photographed receipt into raw text.

Two engines, selected with OCR_ENGINE:
  tesseract (default)  Pillow preprocessing + pytesseract, run in a worker thread
  claude               Claude Vision asked for a verbatim transcription

Both return plain text only; structure is extracted afterwards by
services.receipt_parser so the same heuristics apply whatever engine read
the image.  Progress is reported as an integer percentage through an
optional callback.  There is no retry and no timeout.
"""
import asyncio
import base64
import io
import logging
import os
import re
from typing import Callable, Optional

logger = logging.getLogger("vitalog.ocr")

OCR_ENGINE = os.environ.get("OCR_ENGINE", "tesseract").lower()
CLAUDE_OCR_MODEL = os.environ.get("CLAUDE_OCR_MODEL", "claude-sonnet-4-5")

ProgressCallback = Callable[[int], None]

try:
    import pytesseract
    from PIL import Image, ImageEnhance, ImageFilter, ImageOps
    OCR_AVAILABLE = True
except ImportError:
    OCR_AVAILABLE = False
    logger.warning("pytesseract/Pillow not available — Tesseract OCR disabled")

# HEIC/HEIF is what most phones shoot
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
    HEIF_AVAILABLE = True
except ImportError:
    HEIF_AVAILABLE = False
    logger.info("pillow-heif not installed — HEIC photos will not be supported")


class OCRError(Exception):
    """Raised when an OCR engine can't produce text for an image."""
    pass


def _report(on_progress: Optional[ProgressCallback], pct: int) -> None:
    if on_progress is not None:
        on_progress(max(0, min(100, int(pct))))


def _open_image(image_bytes: bytes) -> "Image.Image":
    try:
        image = Image.open(io.BytesIO(image_bytes))
    except Exception as e:
        msg = str(e)
        if not HEIF_AVAILABLE and ("heif" in msg.lower() or "heic" in msg.lower()):
            raise OCRError("HEIC/HEIF photos require pillow-heif") from e
        raise OCRError(f"Cannot open image: {msg}") from e

    # Phone photos carry their rotation in EXIF
    image = ImageOps.exif_transpose(image)
    if image.mode not in ("RGB", "L", "RGBA"):
        image = image.convert("RGB")
    return image


def preprocess_image(image: "Image.Image") -> "Image.Image":
    """
    Grayscale, upscale narrow photos, flip white-on-black bands, then boost
    contrast and sharpen — Tesseract reads dark-on-light text far better.
    """
    import numpy as np

    img = image.convert("L")

    w, h = img.size
    if w < 800:
        scale = 800 / w
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

    # ~40 horizontal bands; a band averaging below 80 is inverted print
    arr = np.array(img)
    band = max(1, arr.shape[0] // 40)
    for y in range(0, arr.shape[0], band):
        if arr[y:y + band, :].mean() < 80:
            arr[y:y + band, :] = 255 - arr[y:y + band, :]
    img = Image.fromarray(arr)

    img = ImageEnhance.Contrast(img).enhance(2.0)
    return img.filter(ImageFilter.SHARPEN)


def extract_text_from_image(
    image_bytes: bytes,
    on_progress: Optional[ProgressCallback] = None,
) -> str:
    """Run Tesseract on image bytes and return the raw text (blocking)."""
    if not OCR_AVAILABLE:
        raise OCRError("OCR dependencies not installed (pytesseract, Pillow)")

    _report(on_progress, 0)
    image = _open_image(image_bytes)
    processed = preprocess_image(image)
    _report(on_progress, 30)

    try:
        text = pytesseract.image_to_string(processed, config="--psm 6")
    except pytesseract.TesseractNotFoundError as e:
        raise OCRError("tesseract binary not found in PATH") from e
    except pytesseract.TesseractError as e:
        raise OCRError(f"Tesseract failed: {e}") from e

    _report(on_progress, 100)
    return text.strip()


def _prepare_image_for_claude(image_bytes: bytes) -> tuple[bytes, str]:
    """
    Fit the photo within Claude Vision limits: long side ≤ 1568px, re-encoded
    as JPEG.  Returns (bytes, media_type).
    """
    if image_bytes[:4] == b'%PDF':
        raise OCRError("PDF receipts are not supported")
    if not OCR_AVAILABLE:
        return image_bytes, "image/jpeg"

    img = _open_image(image_bytes)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    max_dim = 1568
    w, h = img.size
    if max(w, h) > max_dim:
        scale = max_dim / max(w, h)
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)
        logger.debug("Resized image %d×%d → %d×%d", w, h, img.size[0], img.size[1])

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=92, optimize=True)
    return buf.getvalue(), "image/jpeg"


TRANSCRIBE_PROMPT = """Transcribe this shopping receipt exactly as printed, one receipt line per output line.
Keep item names and prices on the same line, in their original order, with the price at the end of the line.
Keep the store header, date, subtotal, tax and total lines.
Output only the transcription: no commentary, no markdown."""


async def _recognize_with_claude(
    image_bytes: bytes,
    on_progress: Optional[ProgressCallback] = None,
) -> str:
    api_key = os.environ.get("ANTHROPIC_API_KEY", "")
    if not api_key:
        raise OCRError("ANTHROPIC_API_KEY not set")

    _report(on_progress, 0)
    vision_bytes, media_type = _prepare_image_for_claude(image_bytes)
    b64 = base64.standard_b64encode(vision_bytes).decode()
    _report(on_progress, 30)
    logger.info("Sending %d KB b64 (%s) to Claude for transcription", len(b64) // 1024, media_type)

    try:
        import anthropic
        client = anthropic.AsyncAnthropic(api_key=api_key)
        message = await client.messages.create(
            model=CLAUDE_OCR_MODEL,
            max_tokens=2048,
            messages=[{
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": media_type, "data": b64},
                    },
                    {"type": "text", "text": TRANSCRIBE_PROMPT},
                ],
            }],
        )
        text = message.content[0].text.strip()
    except Exception as e:
        logger.error("Claude transcription failed: %s", e)
        raise OCRError(f"Claude transcription failed: {e}") from e

    # Strip markdown fences if the model added them anyway
    text = re.sub(r'^```[a-z]*\n?', '', text)
    text = re.sub(r'\n?```$', '', text)
    _report(on_progress, 100)
    return text.strip()


async def recognize(
    image_bytes: bytes,
    on_progress: Optional[ProgressCallback] = None,
    engine: Optional[str] = None,
) -> str:
    """Recognize receipt text with the configured engine.  Raises OCRError."""
    engine = (engine or OCR_ENGINE).lower()
    if engine == "claude":
        return await _recognize_with_claude(image_bytes, on_progress)
    if engine != "tesseract":
        raise OCRError(f"Unknown OCR engine: {engine!r}")
    return await asyncio.to_thread(extract_text_from_image, image_bytes, on_progress)
