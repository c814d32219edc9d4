"""
File upload utilities for image validation and local storage.
"""

import io
import uuid
from pathlib import Path
from typing import List, Optional, Tuple
from PIL import Image
import aiofiles
from fastapi import UploadFile

from house_hunt.config import settings
from house_hunt.utils.exceptions import FileUploadError, ValidationError


class FileValidator:
    """Validation rules for uploaded listing images."""

    SUPPORTED_FORMATS = {
        'image/jpeg': ['.jpg', '.jpeg'],
        'image/png': ['.png'],
        'image/webp': ['.webp']
    }

    PIL_FORMATS = {
        'image/jpeg': 'jpeg',
        'image/png': 'png',
        'image/webp': 'webp'
    }

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension.

        Args:
            filename: Name of the file

        Returns:
            Lowercase file extension

        Raises:
            ValidationError: If extension is not supported
        """
        if not filename:
            raise ValidationError("Filename is required")

        extension = Path(filename).suffix.lower()
        supported_extensions = [ext for extensions in cls.SUPPORTED_FORMATS.values() for ext in extensions]

        if extension not in supported_extensions:
            raise ValidationError(
                f"File extension '{extension or filename}' not supported. "
                f"Supported extensions: {', '.join(supported_extensions)}"
            )

        return extension

    @classmethod
    def validate_mime_type(cls, mime_type: str, allowed_types: Optional[List[str]] = None) -> str:
        """
        Validate MIME type.

        Raises:
            ValidationError: If MIME type is not supported
        """
        allowed = allowed_types or list(cls.SUPPORTED_FORMATS)
        if not mime_type or mime_type not in allowed or mime_type not in cls.SUPPORTED_FORMATS:
            raise ValidationError(
                f"MIME type '{mime_type}' not supported. "
                f"Supported types: {', '.join(allowed)}"
            )
        return mime_type

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: int) -> int:
        """
        Validate file size.

        Raises:
            ValidationError: If file is empty or exceeds the limit
        """
        if file_size <= 0:
            raise ValidationError("File is empty")

        if file_size > max_size:
            max_mb = max_size / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise ValidationError(
                f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)"
            )

        return file_size

    @classmethod
    async def validate_upload_file(
        cls,
        file: UploadFile,
        max_size: Optional[int] = None,
        allowed_types: Optional[List[str]] = None
    ) -> Tuple[bytes, str]:
        """
        Validate an uploaded image and return its content.

        Args:
            file: FastAPI UploadFile object
            max_size: Size limit in bytes (settings.max_file_size)
            allowed_types: Accepted MIME types (settings.allowed_file_types)

        Returns:
            Tuple of (file content, lowercase extension)

        Raises:
            ValidationError: If any validation fails
        """
        extension = cls.validate_file_extension(file.filename or "")
        mime_type = cls.validate_mime_type(file.content_type or "", allowed_types or settings.allowed_file_types)

        if extension not in cls.SUPPORTED_FORMATS[mime_type]:
            raise ValidationError(f"File extension '{extension}' doesn't match MIME type '{mime_type}'")

        await file.seek(0)
        content = await file.read()
        cls.validate_file_size(len(content), max_size or settings.max_file_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                pil_format = (img.format or "").lower()
        except Exception as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if pil_format != cls.PIL_FORMATS[mime_type]:
            raise ValidationError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        return content, extension


class FileStorage:
    """Stores images on local disk and maps them to public URLs."""

    def __init__(self, base_dir: Optional[Path] = None, url_prefix: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.url_prefix = settings.upload_url_prefix if url_prefix is None else url_prefix
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def generate_unique_filename(self, extension: str) -> str:
        return f"{uuid.uuid4().hex}{extension}"

    def public_url(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    async def save_bytes(self, content: bytes, extension: str) -> str:
        """
        Write image bytes under a unique name.

        Args:
            content: Image bytes
            extension: File extension including the dot

        Returns:
            Public URL of the stored file

        Raises:
            FileUploadError: If the file cannot be written
        """
        file_path = self.base_dir / self.generate_unique_filename(extension)
        try:
            async with aiofiles.open(file_path, 'wb') as f:
                await f.write(content)
        except OSError as e:
            file_path.unlink(missing_ok=True)
            raise FileUploadError(f"Failed to save file: {str(e)}")

        return self.public_url(file_path.name)

    def delete_by_url(self, url: str) -> bool:
        """
        Delete a stored file given its public URL.

        Returns:
            True if a local file was removed
        """
        if not url.startswith(f"{self.url_prefix}/"):
            return False
        file_path = self.base_dir / url[len(self.url_prefix) + 1:]
        if file_path.exists():
            file_path.unlink()
            return True
        return False
