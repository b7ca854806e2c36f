# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles product image upload/removal with Supabase Storage.
# Images live in the PRODUCT_IMAGES_BUCKET bucket under products/<uuid><ext>
# and are served through the bucket's public URL.
# =============================================================================

import logging
import os
from uuid import uuid4

from lib.supabase_client import SupabaseClient
from app.config import settings
from app.exceptions import StorageUploadError

logger = logging.getLogger(__name__)


def resolve_extension(filename: str | None, mime_type: str | None) -> str:
    """
    Pick a file extension for an upload.

    The filename's extension wins; otherwise the MIME subtype is used,
    except for application/octet-stream.
    """
    if filename:
        extension = os.path.splitext(filename)[1].lower()
        if extension:
            return extension

    if mime_type and "/" in mime_type:
        extension = f".{mime_type.rsplit('/', 1)[-1].lower()}"
        if extension != ".octet-stream":
            return extension

    return ""


class StorageService:
    """
    Service for Supabase Storage operations.

    Handles uploading and deleting product images.
    """

    @staticmethod
    def upload_product_image(
        content: bytes,
        filename: str | None,
        mime_type: str | None,
    ) -> dict[str, str]:
        """
        Upload an image to storage.

        Args:
            content: Image bytes
            filename: Original filename (used for the extension)
            mime_type: Content type sent by the client

        Returns:
            {"key": storage path, "url": public URL, "mime_type": content type}

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()
        content_type = mime_type or "application/octet-stream"
        key = f"products/{uuid4()}{resolve_extension(filename, mime_type)}"

        try:
            bucket = client.storage.from_(settings.PRODUCT_IMAGES_BUCKET)
            bucket.upload(
                path=key,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
            url = bucket.get_public_url(key)

            logger.info(f"Uploaded product image to storage: {key}")
            return {"key": key, "url": url, "mime_type": content_type}

        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

    @staticmethod
    def delete_file(storage_path: str) -> bool:
        """
        Delete a file from storage.

        Failures are logged and reported as False.
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(settings.PRODUCT_IMAGES_BUCKET).remove([storage_path])
            logger.info(f"Deleted file from storage: {storage_path}")
            return True

        except Exception as e:
            logger.error(f"Failed to delete file {storage_path}: {e}")
            return False
