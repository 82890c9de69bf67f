import logging
import os
import uuid
from typing import BinaryIO, Iterable, NamedTuple, Optional

from ..config import settings
from ..exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1MB


class FileDescriptor(NamedTuple):
    name: str
    path: str
    media_type: str
    size: int


class FileStorage:
    """Local-disk storage for uploaded book files."""

    def __init__(
        self,
        upload_dir: str = None,
        max_file_size: int = None,
        allowed_extensions: Optional[Iterable[str]] = None,
    ):
        self.upload_dir = upload_dir or settings.upload_dir
        self.max_file_size = (
            settings.max_file_size if max_file_size is None else max_file_size
        )
        self.allowed_extensions = {
            ext.lower()
            for ext in (
                settings.allowed_extensions
                if allowed_extensions is None
                else allowed_extensions
            )
        }

    def check_format(self, original_name: str):
        """Reject unsupported formats before any byte is written"""
        extension = os.path.splitext(original_name or "")[1].lower()
        if extension not in self.allowed_extensions:
            raise ValidationError(
                "Invalid file format. Accepted formats: "
                + ", ".join(sorted(self.allowed_extensions))
            )

    def store(
        self, source: BinaryIO, original_name: str, media_type: str
    ) -> FileDescriptor:
        """Stream an uploaded file to disk and return its descriptor"""
        self.check_format(original_name)

        os.makedirs(self.upload_dir, exist_ok=True)

        # Generate unique filename
        file_extension = os.path.splitext(original_name)[1]
        unique_filename = f"{uuid.uuid4()}{file_extension}"
        file_path = os.path.join(self.upload_dir, unique_filename)

        file_size = 0
        try:
            with open(file_path, "wb") as f:
                while chunk := source.read(CHUNK_SIZE):
                    file_size += len(chunk)
                    if file_size > self.max_file_size:
                        break
                    f.write(chunk)
        except OSError as e:
            self.dispose(file_path)
            logger.error("Failed to write %s: %s", file_path, e)
            raise StorageError("Failed to save file") from e

        if file_size > self.max_file_size:
            self.dispose(file_path)
            raise ValidationError("File too large")

        return FileDescriptor(
            name=original_name,
            path=file_path,
            media_type=media_type or "application/octet-stream",
            size=file_size,
        )

    def dispose(self, file_path: str):
        """Delete a file from filesystem"""
        if file_path and os.path.exists(file_path):
            os.remove(file_path)
            logger.info("Disposed file %s", file_path)

    def exists(self, file_path: str) -> bool:
        return bool(file_path) and os.path.exists(file_path)
