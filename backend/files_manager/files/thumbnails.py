"""Image resizing for thumbnail variants (Pillow)."""

import io

from PIL import Image


def make_thumbnail(data: bytes, width: int) -> bytes:
    """Resize image bytes to ``width`` pixels wide, keeping aspect ratio and format."""
    with Image.open(io.BytesIO(data)) as img:
        fmt = img.format or "PNG"
        src_w, src_h = img.size
        height = max(1, round(src_h * width / src_w))
        resized = img.resize((width, height), Image.Resampling.LANCZOS)
        if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")
        out = io.BytesIO()
        resized.save(out, format=fmt)
        return out.getvalue()
