"""
ExtraBeam Backend - File Storage Service
========================================

What:  Stores uploaded documents (CV photos, quotes, invoice PDFs) on the
       local storage volume and builds the URLs used to fetch them.
Why:   Centralizes all file system operations with their security checks.
How:   Files live under `<storage_root>/<bucket>/<path>`. Clients first ask
       for a signed upload URL, then PUT the raw bytes to it; the signature
       is a short-lived JWT naming the bucket and path.
Who:   Upload routes (/api/uploads/*) and the file-serving route (/api/files/*).

Security Model:
    1. Extension check:    only images and PDFs are accepted
    2. Size check:         Content-Length first, then the actual body size
    3. Path confinement:   every resolved path must stay under storage_root
                           (rejects "..", absolute paths and symlink escapes)
    4. Signed target:      the upload token fixes bucket and path, the
                           client cannot choose another destination at PUT time
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import aiofiles

from extrabeam.config import settings
from extrabeam.exceptions import FileStorageError, NotFoundError, ValidationError
from extrabeam.security import UPLOAD_TOKEN, create_upload_token, decode_token

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif", ".pdf"}


class FileService:
    """
    Manages upload validation, storage and retrieval.

    Directory Structure:
        storage/
        ├── avatars/
        │   └── jeanne-dupont/photo.jpg
        └── factures/
            └── 2024/FA-2024-001.pdf
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

    def validate_extension(self, filename: str) -> str:
        """
        Returns the normalized extension (lowercase with dot).

        Raises:
            ValidationError if the extension is not allowed.
        """
        ext = Path(filename).suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"Type de fichier '{ext}' non supporté. "
                    f"Types acceptés : {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="path",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Args:
            content_length: Value from the Content-Length header (may be None or inaccurate)
            actual_size: Actual byte count of the uploaded body

        Raises:
            ValidationError for empty bodies and bodies over settings.max_file_size
        """
        max_mb = settings.max_file_size / (1024 * 1024)

        if content_length and content_length > settings.max_file_size:
            raise ValidationError(
                message=f"Le fichier dépasse la taille maximale de {max_mb:.0f} Mo.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > settings.max_file_size:
            raise ValidationError(
                message=(
                    f"Le fichier ({actual_size / (1024 * 1024):.1f} Mo) dépasse "
                    f"la taille maximale de {max_mb:.0f} Mo."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

        if actual_size == 0:
            raise ValidationError(message="Fichier vide", field="file")

    def resolve_path(self, relative_path: str) -> Path:
        """
        Map a storage-relative path to an absolute path under storage_root.

        Raises:
            ValidationError("Chemin de fichier invalide") when the path escapes
            the storage root.
        """
        cleaned = relative_path.strip().lstrip("/")
        if not cleaned:
            raise ValidationError(message="Chemin de fichier invalide", field="path")

        full_path = (self.storage_root / cleaned).resolve()
        if full_path != self.storage_root and self.storage_root not in full_path.parents:
            logger.warning("Rejected path outside storage root: %s", relative_path)
            raise ValidationError(
                message="Chemin de fichier invalide",
                field="path",
                context={"path": relative_path},
            )
        return full_path

    def object_key(self, bucket: str, path: str) -> str:
        """`bucket/path` normalized, validated against the storage root."""
        key = f"{bucket.strip('/')}/{path.strip().lstrip('/')}"
        self.resolve_path(key)
        return key

    def public_url(self, bucket: str, path: str) -> str:
        key = self.object_key(bucket, path)
        return f"{settings.public_base_url.rstrip('/')}/api/files/{key}"

    def create_signed_upload(self, bucket: str, path: str) -> Dict[str, str]:
        """
        Issue a one-time upload target.

        Returns:
            {"url": PUT target, "token": the signed upload token}
        """
        key = self.object_key(bucket, path)
        self.validate_extension(key)
        token = create_upload_token(bucket, path)
        logger.info("Signed upload URL issued for %s", key)
        return {
            "url": f"{settings.public_base_url.rstrip('/')}/api/uploads/signed/{token}",
            "token": token,
        }

    async def store_file(self, relative_path: str, content: bytes) -> str:
        """
        Write content at relative_path (overwriting), creating parent dirs.

        Returns:
            The absolute path written.

        Raises:
            FileStorageError if directory creation or file write fails.
        """
        absolute_path = self.resolve_path(relative_path)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)

            logger.info("File stored: %s (%d bytes)", relative_path, len(content))
            return str(absolute_path)

        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            # a partial write must not be served later
            await self.cleanup_file(relative_path)
            raise FileStorageError(
                message="L'enregistrement du fichier a échoué. Réessayez.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

    async def store_signed_upload(
        self,
        token: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Dict[str, str]:
        """
        Complete a signed upload: verify the token, validate, then store.

        Returns:
            {"path": "bucket/path", "publicUrl": URL serving the stored file}

        Raises:
            AuthenticationError for invalid or expired tokens,
            ValidationError for bad extension, size or path,
            FileStorageError when the write fails.
        """
        claims = decode_token(token, expected_type=UPLOAD_TOKEN)
        bucket = str(claims.get("bucket") or "")
        path = str(claims.get("path") or "")
        if not bucket or not path:
            raise ValidationError(message="Jeton d'upload incomplet", field="token")

        key = self.object_key(bucket, path)
        self.validate_extension(key)
        self.validate_size(content_length, len(content))

        await self.store_file(key, content)
        return {"path": key, "publicUrl": self.public_url(bucket, path)}

    def resolve_existing(self, file_path: str) -> Path:
        """
        Locate a stored file for serving.

        Raises:
            ValidationError for paths outside the storage root,
            NotFoundError when nothing is stored there.
        """
        full_path = self.resolve_path(file_path)
        if not full_path.is_file():
            raise NotFoundError(resource="file", resource_id=file_path, message="Fichier introuvable")
        return full_path

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored file if present. Failures are logged, not raised:
        cleanup is never the user's request.
        """
        try:
            path = self.resolve_path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", file_path)
            else:
                logger.debug("Cleanup: file already gone: %s", file_path)
        except (OSError, ValidationError) as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


file_service = FileService()
