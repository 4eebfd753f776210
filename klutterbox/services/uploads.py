"""Image upload storage.

Files live flat in ``settings.UPLOAD_DIR`` and are referenced by items through
their public path, ``/uploads/<file name>``.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from klutterbox.config import settings
from klutterbox.errors import ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"
DEFAULT_EXTENSION = ".jpg"


@dataclass
class StoredUpload:
    """An image written to the upload directory."""
    path: Path
    public_path: str
    original_filename: Optional[str]
    content_type: str


def upload_dir() -> Path:
    directory = Path(settings.UPLOAD_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _stored_name(original_filename: Optional[str]) -> str:
    ext = Path(original_filename or "").suffix.lower() or DEFAULT_EXTENSION
    timestamp = int(time.time() * 1000)
    return f"{timestamp}-{uuid.uuid4().hex[:8]}{ext}"


async def save_upload(image: Optional[UploadFile]) -> StoredUpload:
    """Write an uploaded image to disk and return where it went."""
    if image is None:
        raise ValidationError("No image uploaded")
    content_type = image.content_type or "application/octet-stream"
    if not content_type.startswith("image/"):
        raise ValidationError("Uploaded file must be an image")
    content = await image.read()
    if not content:
        raise ValidationError("No image uploaded")

    name = _stored_name(image.filename)
    path = upload_dir() / name
    path.write_bytes(content)
    logger.info("Stored upload %s (%d bytes)", name, len(content))
    return StoredUpload(
        path=path,
        public_path=f"{PUBLIC_PREFIX}{name}",
        original_filename=image.filename,
        content_type=content_type,
    )


def resolve_owned_path(public_path: Optional[str]) -> Optional[Path]:
    """Map a public ``/uploads/...`` path to a file inside the upload directory.

    Returns ``None`` for anything that does not resolve to a location under
    the upload directory, including ``..`` tricks and foreign URLs.
    """
    if not public_path:
        return None
    relative = public_path.lstrip("/")
    prefix = PUBLIC_PREFIX.strip("/") + "/"
    if not relative.startswith(prefix):
        return None
    root = Path(settings.UPLOAD_DIR).resolve()
    candidate = (root / relative[len(prefix):]).resolve()
    if candidate == root or root not in candidate.parents:
        return None
    return candidate


def remove_owned_file(public_path: Optional[str]) -> bool:
    """Best-effort removal of an uploaded image. Never raises."""
    path = resolve_owned_path(public_path)
    if path is None or not path.is_file():
        return False
    try:
        path.unlink()
    except OSError as exc:
        logger.warning("Could not remove upload %s: %s", path, exc)
        return False
    logger.info("Removed upload %s", path.name)
    return True
