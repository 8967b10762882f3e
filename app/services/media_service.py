import logging
import os
import time
import uuid

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from app.core.config import settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}


class UploadError(ValueError):
    pass


def sniff_image_type(data: bytes) -> str | None:
    """Return a lowercase extension if bytes look like jpeg/png/webp, else None."""
    if not data or len(data) < 12:
        return None
    if data.startswith(b"\xFF\xD8\xFF"):
        return "jpg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    return None


def cloudinary_configured() -> bool:
    if not settings.CLOUDINARY_URL:
        return False
    cloudinary.config(cloudinary_url=settings.CLOUDINARY_URL)
    return True


def _upload_to_cloudinary(file_bytes: bytes) -> str | None:
    try:
        res = cloudinary.uploader.upload(
            file_bytes,
            folder=settings.CLOUDINARY_FOLDER,
            public_id=uuid.uuid4().hex,
            resource_type="image",
            overwrite=True,
        )
    except cloudinary.exceptions.Error:
        logger.exception("Cloudinary upload failed, storing image locally")
        return None
    return res.get("secure_url") or res.get("url")


def save_image(file_bytes: bytes, original_filename: str | None = None) -> str:
    """Validate and store one room image.

    Goes to Cloudinary when CLOUDINARY_URL is set, otherwise (or if the upload fails)
    under UPLOAD_DIR, served at /uploads/.
    """
    ext = os.path.splitext(original_filename or "")[1].lower().lstrip(".")
    if ext not in ALLOWED_EXTENSIONS:
        raise UploadError("Only image files are allowed")
    if len(file_bytes) > settings.UPLOAD_MAX_MB * 1024 * 1024:
        raise UploadError(f"File too large (max {settings.UPLOAD_MAX_MB} MB)")
    kind = sniff_image_type(file_bytes)
    if not kind:
        raise UploadError("Only image files are allowed")

    if cloudinary_configured():
        url = _upload_to_cloudinary(file_bytes)
        if url:
            return url

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    fname = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}.{kind}"
    with open(os.path.join(settings.UPLOAD_DIR, fname), "wb") as f:
        f.write(file_bytes)
    return f"/uploads/{fname}"
