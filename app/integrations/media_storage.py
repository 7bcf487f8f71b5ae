from dataclasses import dataclass
from typing import Optional
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.database.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class MediaStorageError(Exception):
    pass


@dataclass(frozen=True)
class StoredObject:
    path: str
    url: str


class SupabaseMediaStorage:
    """Objects live in a Supabase Storage bucket and are served from its public URL."""

    def __init__(self, client=None, bucket: str = None):
        self.client = client or SupabaseClient.get_service_client()
        self.bucket = bucket or settings.media_bucket

    def upload(self, contents: bytes, path: str, content_type: str) -> StoredObject:
        try:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(path, contents, {"content-type": content_type})
            url = bucket.get_public_url(path)
        except Exception as e:
            logger.error(f"Failed to upload {path} to bucket {self.bucket}: {e}")
            raise MediaStorageError(str(e)) from e
        return StoredObject(path=path, url=url)

    def delete(self, path: str) -> bool:
        try:
            self.client.storage.from_(self.bucket).remove([path])
            return True
        except Exception as e:
            logger.error(f"Failed to delete {path} from bucket {self.bucket}: {e}")
            return False


class S3MediaStorage:
    def __init__(self, s3_client=None, bucket_name: Optional[str] = None):
        bucket_name = bucket_name or settings.s3_bucket_name
        if s3_client is None:
            if not all([settings.aws_access_key_id, settings.aws_secret_access_key, bucket_name]):
                raise ValueError("AWS S3 credentials and bucket name must be configured")
            s3_client = boto3.client(
                's3',
                aws_access_key_id=settings.aws_access_key_id,
                aws_secret_access_key=settings.aws_secret_access_key,
                region_name=settings.aws_region
            )
        self.s3_client = s3_client
        self.bucket_name = bucket_name

    def upload(self, contents: bytes, path: str, content_type: str) -> StoredObject:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=path,
                Body=contents,
                ContentType=content_type
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {path} to S3: {str(e)}")
            raise MediaStorageError(str(e)) from e
        url = f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com/{path}"
        return StoredObject(path=path, url=url)

    def delete(self, path: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=path)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {path} from S3: {str(e)}")
            return False


def get_media_storage():
    if settings.media_storage_backend == "s3":
        return S3MediaStorage()
    return SupabaseMediaStorage()
