import logging
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from imagegen.services.storage.base import BlobStore, UploadResult, expand_path_template

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000"  # 1 year


class S3Storage(BlobStore):
    """S3-compatible bucket storage (Cloudflare R2 and friends)."""

    name = "r2"

    def __init__(
        self,
        bucket,
        public_url_prefix,
        endpoint_url=None,
        access_key=None,
        secret_key=None,
        region="auto",
        path_template="{year}/{month}/{filename}",
        client=None,
    ):
        self.bucket = bucket
        self.public_url_prefix = public_url_prefix.rstrip("/")
        self.path_template = path_template
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=BotoConfig(signature_version="s3v4"),
        )

    def upload(self, data, filename, content_type, metadata=None):
        key = expand_path_template(self.path_template, filename)
        self._client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            Metadata=metadata or {},
            CacheControl=CACHE_CONTROL,
        )
        logger.info("Uploaded %s to bucket %s (%d bytes)", key, self.bucket, len(data))
        return UploadResult(
            key=key,
            public_url=f"{self.public_url_prefix}/{key}",
            size=len(data),
        )

    def delete(self, key):
        self._client.delete_object(Bucket=self.bucket, Key=key)

    def health_check(self):
        try:
            self._client.head_bucket(Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError):
            logger.exception("Bucket %s is not reachable", self.bucket)
            return False
