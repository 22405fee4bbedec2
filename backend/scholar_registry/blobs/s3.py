"""
Scholar Registry: S3 Blob Store
================================

What:  Stores scholar images in an S3 bucket (or an S3-compatible service
       such as MinIO when S3_ENDPOINT_URL is set).
How:   boto3 client calls are blocking, so each one runs in Starlette's
       threadpool; the request coroutine suspends until the call returns.
       No retries beyond botocore's own defaults.

URL format:
    AWS:       https://<bucket>.s3.<region>.amazonaws.com/<key>
    Endpoint:  <endpoint_url>/<bucket>/<key>
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from scholar_registry.blobs.base import BlobStore
from scholar_registry.config import Settings
from scholar_registry.exceptions import BlobStorageError

logger = logging.getLogger(__name__)


class S3BlobStore(BlobStore):
    """BlobStore backed by a single S3 bucket."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-2",
        endpoint_url: Optional[str] = None,
        client: Any = None,
        **credentials: Optional[str],
    ):
        """
        Args:
            bucket: Target bucket name.
            region: AWS region of the bucket.
            endpoint_url: Override for S3-compatible services.
            client: Pre-built boto3 S3 client (tests inject a mock here).
            credentials: aws_access_key_id / aws_secret_access_key. Omitted
                values fall back to boto3's default credential chain.
        """
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url.rstrip("/") if endpoint_url else None
        if client is None:
            client = boto3.client(
                "s3",
                region_name=region,
                endpoint_url=self.endpoint_url,
                **{k: v for k, v in credentials.items() if v},
            )
        self.client = client
        logger.info("S3BlobStore initialized with bucket=%s region=%s", bucket, region)

    @classmethod
    def from_settings(cls, config: Settings) -> "S3BlobStore":
        return cls(
            bucket=config.aws_bucket_name,
            region=config.aws_region,
            endpoint_url=config.s3_endpoint_url,
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
        )

    def url_for(self, key: str) -> str:
        quoted = quote(key)
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{quoted}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quoted}"

    async def upload(self, key: str, content: bytes, content_type: Optional[str] = None) -> str:
        params = {"Bucket": self.bucket, "Key": key, "Body": content}
        if content_type:
            params["ContentType"] = content_type

        try:
            await run_in_threadpool(self.client.put_object, **params)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for %s: %s", key, str(e))
            raise BlobStorageError(
                message="Failed to upload image. Please try again.",
                context={"key": key, "bucket": self.bucket, "error": str(e)},
            )

        logger.info("Uploaded %s to s3://%s (%d bytes)", key, self.bucket, len(content))
        return self.url_for(key)

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise BlobStorageError(
                message="Failed to delete image.",
                context={"key": key, "bucket": self.bucket, "error": str(e)},
            )

    async def health_check(self) -> bool:
        try:
            await run_in_threadpool(self.client.head_bucket, Bucket=self.bucket)
            return True
        except Exception as e:
            logger.warning("S3 health check failed: %s", str(e))
            return False
