"""S3 blob store for post media"""

import io
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..utils.exceptions import StoreUnavailable
from ..utils.logger import get_logger
from .base import BlobStore

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class S3BlobStore(BlobStore):

    def __init__(
        self,
        bucket: str,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        timeout_seconds: float = 5.0,
        client=None,
    ):
        assert bucket, "S3 bucket not found."
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.s3 = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=Config(
                s3={"addressing_style": "virtual"},
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"total_max_attempts": 1},
            ),
        )

    def ensure_ready(self) -> None:
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(self.name, e) from e

    def public_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        try:
            self.s3.upload_fileobj(
                Fileobj=io.BytesIO(data),
                Bucket=self.bucket,
                Key=key,
                ExtraArgs={"ContentType": content_type or DEFAULT_CONTENT_TYPE},
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(self.name, e) from e
        url = self.public_url(key)
        logger.info("Media saved to S3", key=key, url=url)
        return url

    def set_public_readable(self, key: str) -> None:
        try:
            self.s3.put_object_acl(Bucket=self.bucket, Key=key, ACL="public-read")
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(self.name, e) from e
