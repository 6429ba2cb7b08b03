"""
Photo service for store image uploads.
Validates the MIME type, resizes to a fixed width and stores the file under a random name.
"""

import io
import uuid
import logging
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from storefront.config import get_settings
from storefront.utils.exceptions import (
    UnsupportedFileTypeError,
    FileSizeExceededError,
    ValidationError
)

logger = logging.getLogger(__name__)


class PhotoService:
    """Turns an uploaded photo into a resized file in the upload directory."""

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        width: Optional[int] = None,
        max_file_size: Optional[int] = None
    ):
        settings = get_settings()
        self.upload_dir = Path(upload_dir or settings.upload_dir)
        self.width = width or settings.photo_width
        self.max_file_size = max_file_size or settings.max_file_size

    @staticmethod
    def has_upload(file: Optional[UploadFile]) -> bool:
        """Browsers send an empty part when no file was chosen."""
        return file is not None and bool(file.filename)

    @staticmethod
    def validate_type(file: UploadFile) -> str:
        """
        Accept any ``image/*`` MIME type.

        Raises:
            UnsupportedFileTypeError: For anything else
        """
        content_type = file.content_type or ""
        if not content_type.startswith("image/"):
            raise UnsupportedFileTypeError(file.content_type)
        return content_type

    @staticmethod
    def build_filename(file: UploadFile) -> str:
        """Random name keeping the uploaded extension (or the MIME subtype)."""
        extension = Path(file.filename or "").suffix.lower()
        if not extension:
            extension = "." + (file.content_type or "image/jpeg").split("/")[1]
        return f"{uuid.uuid4()}{extension}"

    def resize(self, content: bytes) -> bytes:
        """
        Scale the image to the configured width, preserving aspect ratio.

        Raises:
            ValidationError: If the content is not a readable image
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                image_format = img.format or "PNG"
                height = max(1, round(img.height * self.width / img.width))
                resized = img.resize((self.width, height), Image.Resampling.LANCZOS)

                output = io.BytesIO()
                resized.save(output, format=image_format)
                return output.getvalue()
        except (UnidentifiedImageError, OSError) as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

    async def save(self, file: Optional[UploadFile]) -> Optional[str]:
        """
        Validate, resize and store an upload.

        Returns:
            The stored filename, or None when no file was uploaded

        Raises:
            UnsupportedFileTypeError: Non-image MIME type; nothing is written
            FileSizeExceededError: Upload larger than the configured limit
            ValidationError: Unreadable image
        """
        if not self.has_upload(file):
            return None

        self.validate_type(file)

        await file.seek(0)
        content = await file.read()
        if len(content) > self.max_file_size:
            raise FileSizeExceededError(len(content), self.max_file_size)

        resized = await run_in_threadpool(self.resize, content)

        filename = self.build_filename(file)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        file_path = self.upload_dir / filename

        try:
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(resized)
        except Exception:
            if file_path.exists():
                file_path.unlink()
            raise

        logger.info(f"Stored photo {filename} ({len(resized)} bytes)")
        return filename

    def discard(self, filename: Optional[str]) -> None:
        """Remove a stored photo that no store ended up referencing."""
        if not filename:
            return

        file_path = self.upload_dir / filename
        if file_path.exists():
            file_path.unlink()
            logger.info(f"Discarded photo {filename}")
