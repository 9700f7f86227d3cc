"""
TrackMyStartup - File Storage Service

Stores employee contracts, financial record attachments and investment
proofs on the local filesystem under the configured storage path.

Layout: startup_id/category/year/month/unique_id_filename
"""

import hashlib
import logging
import mimetypes
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from app.config import settings
from app.utils.error_handling import InvalidFileException

logger = logging.getLogger(__name__)


URL_PREFIX = "/uploads/"

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/csv",
}


class FileCategory(str, Enum):
    """File category types."""
    CONTRACT = "contract"
    FINANCIAL_ATTACHMENT = "financial_attachment"
    INVESTMENT_PROOF = "investment_proof"


class FileStorageService:
    """Local file storage for startup documents."""

    def __init__(self, root: Optional[str] = None):
        self.local_storage_path = Path(root or settings.storage_local_path)
        self.max_size = settings.max_upload_size_bytes

    def _generate_blob_name(
        self,
        startup_id: uuid.UUID,
        category: FileCategory,
        original_filename: str,
    ) -> str:
        """
        Generate a unique blob name with organized path structure.

        Format: startup_id/category/year/month/unique_id_filename
        """
        now = datetime.utcnow()
        file_id = uuid.uuid4().hex[:12]

        safe_filename = "".join(
            c if c.isalnum() or c in ".-_" else "_"
            for c in original_filename
        ) or "file"

        return f"{startup_id}/{category.value}/{now.year}/{now.month:02d}/{file_id}_{safe_filename}"

    def validate_upload(self, file_content: bytes, filename: str, content_type: Optional[str]) -> str:
        """
        Check size and type of an upload.

        Returns:
            The content type to store, guessed from the name when not given
        """
        if not file_content:
            raise InvalidFileException("Uploaded file is empty")
        if len(file_content) > self.max_size:
            raise InvalidFileException(
                f"File exceeds the {settings.max_upload_size_mb} MB upload limit"
            )

        if not content_type or content_type == "application/octet-stream":
            content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise InvalidFileException(f"File type {content_type} is not allowed")
        return content_type

    async def upload_file(
        self,
        startup_id: uuid.UUID,
        file_content: bytes,
        filename: str,
        content_type: Optional[str],
        category: FileCategory,
    ) -> Dict[str, Any]:
        """
        Store a file.

        Returns:
            Dict with file_id, url, and metadata
        """
        content_type = self.validate_upload(file_content, filename, content_type)
        blob_name = self._generate_blob_name(startup_id, category, filename)

        file_path = self.local_storage_path / blob_name
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(file_content)

        logger.info(f"Stored {category.value} {blob_name} ({len(file_content)} bytes)")

        return {
            "file_id": blob_name,
            "url": f"{URL_PREFIX}{blob_name}",
            "filename": filename,
            "content_type": content_type,
            "size": len(file_content),
            "hash": hashlib.md5(file_content).hexdigest(),
            "category": category.value,
            "uploaded_at": datetime.utcnow().isoformat(),
        }

    def _path_for(self, url_or_id: str) -> Optional[Path]:
        """Local path of a stored file; None for URLs stored elsewhere."""
        blob_name = url_or_id
        if blob_name.startswith(URL_PREFIX):
            blob_name = blob_name[len(URL_PREFIX):]
        elif "://" in blob_name:
            return None

        root = self.local_storage_path.resolve()
        path = (root / blob_name).resolve()
        if root not in path.parents:
            return None
        return path

    async def download_file(self, file_id: str) -> Tuple[bytes, str]:
        """
        Read a stored file.

        Returns:
            Tuple of (file_content, content_type)
        """
        path = self._path_for(file_id)
        if path is None or not path.exists():
            raise FileNotFoundError(f"File not found: {file_id}")

        content_type, _ = mimetypes.guess_type(str(path))
        return path.read_bytes(), content_type or "application/octet-stream"

    async def delete_file(self, url_or_id: Optional[str]) -> bool:
        """
        Delete a stored file.

        Returns:
            True if a local file was removed
        """
        if not url_or_id:
            return False
        path = self._path_for(url_or_id)
        if path is None or not path.exists():
            return False

        path.unlink()
        logger.info(f"Deleted stored file {url_or_id}")
        return True

    def resolve_download_url(self, url: Optional[str]) -> Optional[str]:
        """Absolute URLs pass through; stored files resolve against the base URL."""
        if not url:
            return None
        if "://" in url:
            return url
        if not url.startswith(URL_PREFIX):
            url = f"{URL_PREFIX}{url}"
        return f"{settings.base_url.rstrip('/')}{url}"


file_storage_service = FileStorageService()
