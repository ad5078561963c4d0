"""
Travel Story Backend — Media Storage Service
==============================================

What:  Stores uploaded story photos on local disk and deletes them again.
How:   Validates the declared content type and size, writes the bytes under a
       timestamp-based filename in the uploads directory, and hands back a
       public URL built from the configured base URL.
Who:   Called by the /image-upload and /delete-image routes, and by
       StoryService when a story is deleted.

Filename scheme:
    <epoch milliseconds><original extension>, e.g. 1700000000000.jpg
    Files are created exclusively; when two uploads land in the same
    millisecond the later one moves to the next free timestamp.

Deletion:
    Only the last path component of an image URL is used, and it is resolved
    strictly inside the uploads directory. URLs pointing anywhere else
    (for example the placeholder under /assets) never match a file.
"""

import logging
import re
import time
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

import aiofiles
import aiofiles.os

from travelstory.config import settings
from travelstory.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Extensions kept from the client's filename; anything else is dropped
_EXTENSION_PATTERN = re.compile(r"^\.[A-Za-z0-9]{1,10}$")

# Attempts at finding a free timestamp before giving up
_MAX_NAME_ATTEMPTS = 1000


class MediaService:
    """
    Manages the uploaded-image lifecycle.

    Directory Structure:
        uploads/
        ├── 1700000000000.jpg
        └── 1700000012345.png
    """

    def __init__(
        self,
        uploads_dir: Optional[str] = None,
        base_url: Optional[str] = None,
        max_file_size: Optional[int] = None,
    ):
        """
        Args:
            uploads_dir: Override the uploads directory (used in tests).
            base_url: Public origin used to build image URLs.
            max_file_size: Largest accepted payload in bytes.
        """
        self.uploads_dir = Path(uploads_dir or settings.uploads_dir).resolve()
        self.base_url = (base_url or settings.public_base_url).rstrip("/")
        self.max_file_size = max_file_size or settings.max_file_size
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        logger.info("MediaService initialized with uploads_dir=%s", self.uploads_dir)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_upload(self, content: Optional[bytes], content_type: Optional[str]) -> None:
        """
        Reject missing, empty, oversized, or non-image payloads.

        Raises:
            ValidationError with a message the client can act on
        """
        if not content:
            raise ValidationError(message="No image uploaded", field="image")

        if not content_type or not content_type.lower().startswith("image/"):
            raise ValidationError(
                message="Only images are allowed",
                field="image",
                context={"content_type": content_type},
            )

        if len(content) > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller image.",
                field="image",
                context={"actual_size": len(content), "max_size": self.max_file_size},
            )

    @staticmethod
    def extension_of(filename: Optional[str]) -> str:
        """Lower-cased extension of the client's filename, or "" if unusable."""
        if not filename:
            return ""
        ext = PurePosixPath(filename.replace("\\", "/")).suffix.lower()
        return ext if _EXTENSION_PATTERN.match(ext) else ""

    # ── URLs ──────────────────────────────────────────────────────────────

    def url_for(self, filename: str) -> str:
        return f"{self.base_url}/uploads/{filename}"

    def path_for_url(self, image_url: str) -> Optional[Path]:
        """
        Map an image URL to a path inside the uploads directory.

        Returns None when the URL names no usable file.
        """
        name = PurePosixPath(unquote(urlparse(image_url).path)).name
        if name in ("", ".", ".."):
            return None
        candidate = (self.uploads_dir / name).resolve()
        if candidate.parent != self.uploads_dir:
            return None
        return candidate

    # ── Storage ───────────────────────────────────────────────────────────

    async def upload_image(
        self,
        content: Optional[bytes],
        content_type: Optional[str],
        original_filename: Optional[str],
    ) -> str:
        """
        Validate and store an uploaded image.

        Returns:
            Public URL of the stored file.

        Raises:
            ValidationError: No payload, non-image content type, or too large.
            FileStorageError: The file could not be written.
        """
        self.validate_upload(content, content_type)
        ext = self.extension_of(original_filename)

        stamp = int(time.time() * 1000)
        for _ in range(_MAX_NAME_ATTEMPTS):
            filename = f"{stamp}{ext}"
            path = self.uploads_dir / filename
            try:
                # 'xb': exclusive create, fails if another upload took this name
                async with aiofiles.open(path, "xb") as f:
                    await f.write(content)
            except FileExistsError:
                stamp += 1
                continue
            except OSError as e:
                logger.error("Failed to store upload at %s: %s", path, str(e))
                raise FileStorageError(
                    message="Failed to save uploaded image. Please try again.",
                    context={"path": str(path), "os_error": str(e)},
                )
            logger.info("Image stored: %s (%d bytes)", filename, len(content))
            return self.url_for(filename)

        raise FileStorageError(
            message="Failed to save uploaded image. Please try again.",
            context={"reason": "no free filename"},
        )

    async def delete_image(self, image_url: Optional[str]) -> bool:
        """
        Delete the stored file an image URL points at.

        Returns:
            True if a file was removed, False if there was nothing to remove.

        Raises:
            ValidationError: image_url missing.
            FileStorageError: The file exists but could not be removed.
        """
        if not image_url or not image_url.strip():
            raise ValidationError(message="imageUrl parameter is required", field="imageUrl")

        path = self.path_for_url(image_url.strip())
        if path is None or not await aiofiles.os.path.isfile(path):
            logger.debug("Delete requested for missing image: %s", image_url)
            return False

        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete image %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to delete image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("Image deleted: %s", path.name)
        return True

    async def discard_image(self, image_url: Optional[str]) -> None:
        """
        Best-effort removal of a story's image after the story is deleted.

        Never raises: a failure here must not undo or fail the story deletion.
        """
        if not image_url:
            return
        try:
            removed = await self.delete_image(image_url)
            if not removed:
                logger.debug("No stored image to discard for %s", image_url)
        except Exception as e:
            logger.warning("Failed to discard image %s: %s", image_url, str(e))


media_service = MediaService()
