"""
EventHub Backend — File Storage Service
=========================================

What:  Validates, stores, serves and cleans up event images.
Why:   Centralizes all file system operations with security checks.
How:   Validates extension, size and MIME type, stores in date-organized
       directories under UUID filenames, and maps stored files to the
       public /api/files/<relative path> URL.
Who:   routes/upload.py (host uploads, file serving) and EventImageService
       (AI-generated images).

Security Model:
    1. Extension check:   fast first line of defense
    2. MIME type check:   libmagic inspects the header bytes, so a renamed
                          file is caught
    3. Size check:        MAX_FILE_SIZE, on both Content-Length and actual bytes
    4. UUID filename:     no user input ever reaches the file system path
    5. Serving:           requested paths are resolved and must stay inside
                          the storage root
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from eventhub.config import settings
from eventhub.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/api/files"

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}


class FileService:
    """
    Manages file upload, validation, and storage lifecycle.

    Directory Structure:
        storage/
        └── 2025/
            └── 03/
                └── 01/
                    ├── a1b2c3d4-5678.jpg
                    └── e5f6g7h8-9012.webp
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized extension (lowercase with dot)."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="images",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Validate file size against settings.max_file_size.

        The declared length is checked first so an oversized upload is
        rejected on the header alone; the actual size catches clients that
        under-report.
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="images",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="images",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="images")

    def _detect_mime_type(self, file_content: bytes) -> str:
        try:
            import magic
        except ImportError as e:
            # python-magic is installed but libmagic itself is missing
            logger.error("libmagic is unavailable: %s", str(e))
            raise FileStorageError(
                message="File type verification is unavailable on this server.",
                context={"error": str(e)},
            )

        try:
            return magic.from_buffer(file_content, mime=True)
        except Exception as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

    def validate_mime_type(self, file_content: bytes) -> str:
        """
        Inspect magic bytes and return the detected MIME type.

        Raises:
            ValidationError if the content is not one of the allowed images.
        """
        mime_type = self._detect_mime_type(file_content)
        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"The file must be a valid image (PNG, JPEG, WebP or GIF)."
                ),
                field="images",
                context={"detected_mime": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path) for YYYY/MM/DD/<uuid><ext>."""
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """
        Write validated content to disk with async file I/O.

        Returns:
            (absolute_path, relative_path)

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        absolute_path, relative_path = self._generate_storage_path(extension)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save image. Please try again.",
                context={"os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def validate_and_store(
        self,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Upload pipeline: extension → size → MIME → write.

        Cheap checks run first so invalid files are rejected before any
        byte inspection or disk I/O.
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))
        self.validate_mime_type(content)
        return await self.store_file(content, ext)

    async def store_bytes(self, content: bytes, mime_type: str) -> Tuple[str, str]:
        """Store server-produced image bytes (AI images); the extension follows the MIME type."""
        extension = ALLOWED_MIME_TYPES.get(mime_type.lower())
        if extension is None:
            raise FileStorageError(
                message="Generated image has an unsupported format.",
                context={"mime_type": mime_type},
            )
        return await self.store_file(content, extension)

    async def cleanup_file(self, file_path: str) -> None:
        """
        Best-effort removal; a failure is logged, never raised.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    # ── Serving ───────────────────────────────────────────────────────────

    def public_url(self, relative_path: str) -> str:
        return f"{PUBLIC_PREFIX}/{relative_path}"

    def resolve_public_path(self, relative_path: str) -> Path:
        """
        Map a URL path below /api/files to a stored file.

        Raises:
            ValidationError: the path escapes the storage root.
            NotFoundError is left to the caller; this only checks containment.
        """
        candidate = (self.storage_root / relative_path).resolve()
        if candidate != self.storage_root and self.storage_root not in candidate.parents:
            logger.warning("Rejected file path outside storage root: %s", relative_path)
            raise ValidationError(message="Invalid file path", field="path")
        return candidate


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()
