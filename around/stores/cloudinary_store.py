"""Cloudinary blob store for post media"""

import io
from typing import Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from ..utils.exceptions import StoreUnavailable
from ..utils.logger import get_logger
from .base import BlobStore

logger = get_logger(__name__)


class CloudinaryBlobStore(BlobStore):
    """
    Uploads land as authenticated assets; set_public_readable flips the
    access mode so the returned URL becomes dereferenceable by anyone.
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "around",
        timeout_seconds: float = 5.0,
    ):
        if not cloud_name or not api_key or not api_secret:
            raise ValueError("Cloudinary credentials are required")
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True  # Always use HTTPS
        )
        self.folder = folder
        self.timeout_seconds = timeout_seconds

    def public_id(self, key: str) -> str:
        return f"{self.folder}/{key}" if self.folder else key

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                public_id=self.public_id(key),
                resource_type="image",
                access_mode="authenticated",
                overwrite=False,
                timeout=self.timeout_seconds,
            )
        except (CloudinaryError, OSError) as e:
            raise StoreUnavailable(self.name, e) from e

        url = result.get("secure_url") or result.get("url")
        logger.info("Media saved to Cloudinary", key=key, url=url)
        return url

    def set_public_readable(self, key: str) -> None:
        try:
            cloudinary.api.update(
                self.public_id(key),
                resource_type="image",
                access_mode="public",
                timeout=self.timeout_seconds,
            )
        except (CloudinaryError, OSError) as e:
            raise StoreUnavailable(self.name, e) from e
