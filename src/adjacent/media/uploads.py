"""Cover image uploads: validation, key generation, and storage.

Uploaded images are not tracked anywhere.  Each accepted upload gets a
fresh key under a fixed prefix and its public URL is handed back to the
editor, which stores it in the post's ``image_url``.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

from pydantic import BaseModel

from adjacent.config import SiteConfig
from adjacent.errors import StoreError, UploadRejectedError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_PREFIX = "blog"
DEFAULT_CACHE_CONTROL = "31536000"
DEFAULT_EXTENSION = "jpg"
SUFFIX_LENGTH = 6

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


class UploadedFile(BaseModel):
    """An incoming file as received from a multipart form."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_upload(file: UploadedFile | None) -> UploadedFile:
    """Check an upload's declared type and size.

    Returns the file unchanged when it is acceptable.

    Raises:
        UploadRejectedError: With ``reason`` set to ``missing_file``,
            ``unsupported_type`` or ``too_large``.
    """
    if file is None or not file.filename:
        raise UploadRejectedError("No file provided", reason="missing_file")
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise UploadRejectedError(
            "Invalid file type. Use JPG, PNG, WebP, or GIF.", reason="unsupported_type"
        )
    if file.size > MAX_UPLOAD_BYTES:
        raise UploadRejectedError("File too large. Max 10MB.", reason="too_large")
    return file


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or the default when absent."""
    suffix = PurePosixPath(filename).suffix.lstrip(".").lower()
    return suffix or DEFAULT_EXTENSION


def storage_key(filename: str, *, prefix: str = DEFAULT_PREFIX, now: float | None = None) -> str:
    """Generate a collision-resistant key such as ``blog/1760870400000-k3x9qa.png``."""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}/{millis}-{suffix}.{file_extension(filename)}"


class ImageStorage(ABC):
    """Object storage for uploaded images."""

    @abstractmethod
    def put(self, key: str, data: bytes, *, content_type: str, cache_control: str) -> None:
        """Persist bytes under ``key``.  Must fail rather than overwrite."""

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Return the publicly resolvable URL for ``key``."""


class LocalImageStorage(ImageStorage):
    """Filesystem image bucket served by the web app under ``base_url``.

    Cache directives are applied when the file is served, not stored.
    """

    def __init__(self, root: Path, base_url: str = "/uploads") -> None:
        self.root = root
        self.base_url = base_url.rstrip("/")

    def path_for(self, key: str) -> Path:
        return self.root / PurePosixPath(key)

    def put(self, key: str, data: bytes, *, content_type: str, cache_control: str) -> None:
        target = self.path_for(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(target, "xb") as f:
                f.write(data)
        except FileExistsError as exc:
            raise StoreError(f"The resource already exists: {key}") from exc
        except OSError as exc:
            raise StoreError(f"Failed to store image {key}: {exc}") from exc

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"


class ImageUploader:
    """Validate an upload, store it under a fresh key, return its URL."""

    def __init__(
        self,
        storage: ImageStorage,
        *,
        prefix: str = DEFAULT_PREFIX,
        cache_control: str = DEFAULT_CACHE_CONTROL,
    ) -> None:
        self.storage = storage
        self.prefix = prefix
        self.cache_control = cache_control

    def upload(self, file: UploadedFile | None) -> str:
        """Store a validated image and return its public URL."""
        accepted = validate_upload(file)
        key = storage_key(accepted.filename, prefix=self.prefix)
        self.storage.put(
            key,
            accepted.data,
            content_type=accepted.content_type,
            cache_control=self.cache_control,
        )
        logger.info("Stored image %s (%d bytes)", key, accepted.size)
        return self.storage.public_url(key)


def create_image_storage(config: SiteConfig) -> ImageStorage:
    """Build the image bucket matching ``config.store.backend``."""
    if config.store.backend == "supabase":
        from adjacent.integrations.supabase import SupabaseClient, SupabaseImageStorage

        return SupabaseImageStorage(SupabaseClient(config.to_supabase_config()))
    return LocalImageStorage(Path(config.uploads.directory), config.uploads.base_url)
