#clearcity\services\storage.py
import logging, uuid
from functools import lru_cache
from pathlib import Path
from typing import Optional
from fastapi import UploadFile
from clearcity.core.config import settings
from clearcity.core.errors import BadRequest

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"
ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif"}
ALLOWED_EXTS = {"jpeg", "jpg", "png", "gif"}

REPORTS = "reports"
PROFILES = "profiles"

def _ext(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""

class ImageStorage:
    """Uploaded images on local disk, served back under ``/uploads/``."""

    def __init__(self, root: str | Path, max_bytes: int):
        self.root = Path(root)
        self.max_bytes = max_bytes

    def read_upload(self, upload: UploadFile) -> bytes:
        if upload.content_type not in ALLOWED_TYPES or _ext(upload.filename or "") not in ALLOWED_EXTS:
            raise BadRequest("Only image files are allowed!")
        data = upload.file.read(self.max_bytes + 1)
        if len(data) > self.max_bytes:
            raise BadRequest(f"Image exceeds {self.max_bytes // (1024 * 1024)}MB")
        return data

    def save(self, data: bytes, folder: str, filename: str) -> str:
        """Writes the image and returns its public URL."""
        name = f"{uuid.uuid4().hex}.{_ext(filename) or 'jpg'}"
        target = self.root / folder
        target.mkdir(parents=True, exist_ok=True)
        (target / name).write_bytes(data)
        return f"{PUBLIC_PREFIX}{folder}/{name}"

    def path_for(self, url: Optional[str]) -> Optional[Path]:
        if not url or not url.startswith(PUBLIC_PREFIX):
            return None
        root = self.root.resolve()
        path = (root / url[len(PUBLIC_PREFIX):]).resolve()
        if root not in path.parents:
            return None
        return path

    def delete(self, url: Optional[str]) -> bool:
        """Best-effort removal; failures are logged and reported as False."""
        path = self.path_for(url)
        if path is None:
            return False
        try:
            path.unlink()
            return True
        except OSError as e:
            logger.error(f"Error deleting image file {path}: {e}")
            return False

@lru_cache
def get_storage() -> ImageStorage:
    return ImageStorage(settings.upload_dir, settings.max_upload_bytes)
