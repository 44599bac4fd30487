"""
Storage Service - Supabase Storage buckets

Buckets:
- testimonial-photos: customer avatars and review screenshots
- refund-proofs: files attached to refund tickets, under <ticket_id>/<filename>

Author: TM3
Date: 2026-03-07
"""
import os
import time
import secrets
import string
import logging
from typing import Optional

from toolsy.core.database import get_supabase

logger = logging.getLogger(__name__)

TESTIMONIAL_PHOTOS_BUCKET = 'testimonial-photos'
REFUND_PROOFS_BUCKET = 'refund-proofs'

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits


def unique_filename(original_name: str) -> str:
    """<epoch ms>-<random>.<ext>, keeping the original extension"""
    _, ext = os.path.splitext(original_name or '')
    random_part = ''.join(secrets.choice(_RANDOM_ALPHABET) for _ in range(11))
    return f"{int(time.time() * 1000)}-{random_part}{ext.lower()}"


class StorageService:

    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> dict:
        """
        Upload bytes and return {"url", "path"}

        Raises whatever the storage client raises on failure.
        """
        file_options = {"cache-control": "3600", "upsert": "false"}
        if content_type:
            file_options["content-type"] = content_type

        self.client.storage.from_(bucket).upload(path=path, file=content, file_options=file_options)
        url = self.client.storage.from_(bucket).get_public_url(path)

        logger.info(f"Uploaded {len(content)} bytes to {bucket}/{path}")
        return {"url": url, "path": path}

    def upload_testimonial_photo(self, filename: str, content: bytes, content_type: Optional[str], folder: str = 'customers') -> dict:
        if content_type and not content_type.startswith('image/'):
            raise ValueError("Only image files are allowed")
        path = f"{folder}/{unique_filename(filename)}"
        return self.upload(TESTIMONIAL_PHOTOS_BUCKET, path, content, content_type)


def get_storage_service() -> StorageService:
    return StorageService()
