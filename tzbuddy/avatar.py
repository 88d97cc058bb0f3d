"""
tzbuddy/avatar.py
─────────────────
Normalises uploaded avatar images before they are stored on a teammate:
longest side scaled to 400 px (aspect ratio kept), re-encoded as JPEG q=70.
"""

from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

MAX_SIDE = 400
JPEG_QUALITY = 70


class AvatarError(ValueError):
    pass


def resize_avatar(data: bytes, max_side: int = MAX_SIDE) -> bytes:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise AvatarError(f"Not a readable image: {exc}") from exc

    width, height = img.size
    if not width or not height:
        raise AvatarError("Image has no pixels")

    scale = min(max_side / width, max_side / height)
    size = (max(1, round(width * scale)), max(1, round(height * scale)))

    img = img.convert("RGB").resize(size, Image.LANCZOS)
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=JPEG_QUALITY)
    return out.getvalue()
