"""
Image storage service: validates uploaded listing images and stores them locally.
"""

from typing import List, Optional
from pathlib import Path
from fastapi import UploadFile
from house_hunt.config import settings
from house_hunt.utils.file_utils import FileValidator, FileStorage
from house_hunt.utils.exceptions import FileUploadError, ValidationError
import logging

logger = logging.getLogger(__name__)


class ImageService:
    """Service for storing listing images and returning their public URLs."""

    def __init__(self, upload_dir: Optional[Path] = None, url_prefix: Optional[str] = None):
        self.storage = FileStorage(upload_dir, url_prefix)
        self.max_file_size = settings.max_file_size
        self.allowed_types = settings.allowed_file_types

    async def store_images(self, files: List[UploadFile]) -> List[str]:
        """
        Validate every file first, then store them all.

        Args:
            files: Uploaded image files

        Returns:
            Public URLs in upload order

        Raises:
            ValidationError: If any file fails validation; nothing is stored then
        """
        if not files:
            raise ValidationError("At least one image file is required")

        validated = []
        for file in files:
            try:
                validated.append(await FileValidator.validate_upload_file(file, self.max_file_size, self.allowed_types))
            except ValidationError as e:
                raise ValidationError(f"{file.filename}: {e.detail}")

        urls = []
        try:
            for content, extension in validated:
                urls.append(await self.storage.save_bytes(content, extension))
        except FileUploadError:
            self.discard(urls)
            raise

        logger.info(f"Stored {len(urls)} images")
        return urls

    def discard(self, urls: List[str]) -> None:
        """Remove stored files, used when the database write that references them fails."""
        for url in urls:
            self.storage.delete_by_url(url)
