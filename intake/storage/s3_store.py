import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from intake.storage.base import AbstractObjectStore, StorageError

logger = logging.getLogger(__name__)


class S3ObjectStore(AbstractObjectStore):
    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        client=None,
    ) -> None:
        self._bucket = bucket
        if client is None:
            credentials = {}
            # Fall back to the default boto3 credential chain unless both parts are set
            if access_key_id and secret_access_key:
                credentials = {
                    "aws_access_key_id": access_key_id,
                    "aws_secret_access_key": secret_access_key,
                }
            client = boto3.client("s3", region_name=region, **credentials)
        self._client = client

    def store(self, data: bytes, key: str, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="private",
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"put_object failed for {key}: {exc}") from exc
        logger.info("[storage] stored | bucket=%s | key=%s | bytes=%d", self._bucket, key, len(data))

    def presign(self, key: str, ttl_seconds: int = 86400) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"presign failed for {key}: {exc}") from exc
