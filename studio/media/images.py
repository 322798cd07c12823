"""Image normalisation helpers backed by Pillow."""

from __future__ import annotations

import io
from typing import Final

from PIL import Image

IMAGE_EXTENSIONS: Final[dict[str, str]] = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}


def extension_for(mime_type: str | None) -> str:
  """File extension matching the payload, so ffmpeg picks the right decoder."""
  return IMAGE_EXTENSIONS.get((mime_type or "").lower(), "png")


def convert_to_jpeg(image_bytes: bytes, quality: int = 90) -> bytes:
  """Re-encode provider image bytes as baseline JPEG."""
  image = Image.open(io.BytesIO(image_bytes))
  # JPEG has no alpha channel; flatten anything that is not plain RGB.
  converted = image.convert("RGB") if image.mode != "RGB" else image
  output = io.BytesIO()
  converted.save(output, format="JPEG", quality=quality, optimize=True)
  return output.getvalue()
