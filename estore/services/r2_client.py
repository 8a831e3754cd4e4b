# estore/services/r2_client.py
import logging
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from estore.config import settings
from estore.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class R2Storage:
    """Product files in a Cloudflare R2 bucket, addressed by opaque key."""

    def __init__(self, client, bucket: str, expires: int = 900):
        self.client = client
        self.bucket = bucket
        self.expires = expires

    def get_reference(self, key: str) -> str:
        # files hosted elsewhere (e.g. public drive links) are stored as URLs
        if key.startswith(("http://", "https://")):
            return key

        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ResponseContentDisposition": "attachment",
                },
                ExpiresIn=self.expires,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageUnavailable("Failed to generate download link") from e

    def delete(self, key: str):
        if key.startswith(("http://", "https://")):
            return

        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {key} from R2: {e}")


@lru_cache(maxsize=1)
def get_blob_store() -> R2Storage:
    s3_client = boto3.client(
        "s3",
        endpoint_url=f"https://{settings.R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.R2_ACCESS_KEY_ID,
        aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        region_name="auto",
    )
    return R2Storage(
        s3_client,
        settings.R2_BUCKET_NAME,
        expires=settings.DOWNLOAD_URL_EXPIRES_SECONDS,
    )
