import boto3
from botocore.exceptions import ClientError
from supabase import Client
from app.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPE = "image/png"


class S3ImageBackend:
    """Cover images as public objects under <image_bucket>/ in the configured S3 bucket"""

    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name
        self.base_url = f"https://{self.bucket_name}.s3.{settings.aws_region}.amazonaws.com"

    def key_for(self, file_name: str) -> str:
        return f"{settings.image_bucket}/{file_name}"

    def owns(self, image_url: str) -> bool:
        return image_url.startswith(self.base_url + "/")

    def put(self, file_name: str, content: bytes) -> str:
        key = self.key_for(file_name)
        logger.info(f"Uploading image to S3: {key}")
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=IMAGE_CONTENT_TYPE
            )
        except ClientError as e:
            logger.error(f"Failed to upload image to S3: {str(e)}")
            raise
        return f"{self.base_url}/{key}"

    def remove(self, file_name: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=self.key_for(file_name))
        except ClientError as e:
            logger.error(f"Failed to delete image from S3: {str(e)}")


class SupabaseImageBackend:
    """Cover images in a public Supabase Storage bucket"""

    def __init__(self, supabase: Client):
        self.bucket = supabase.storage.from_(settings.image_bucket)

    def put(self, file_name: str, content: bytes) -> str:
        self.bucket.upload(
            file_name,
            content,
            {"content-type": IMAGE_CONTENT_TYPE, "upsert": "true"},
        )
        return self.bucket.get_public_url(file_name)

    def remove(self, file_name: str) -> None:
        self.bucket.remove([file_name])


def _file_name(image_url: str) -> str:
    return image_url.rsplit("/", 1)[-1].split("?", 1)[0]


class ImageStorage:
    """Stores automation cover images in S3 when configured, otherwise in the Supabase bucket."""

    def __init__(self, supabase: Client):
        self.supabase_backend = SupabaseImageBackend(supabase)
        self.s3_backend: Optional[S3ImageBackend] = None
        if settings.s3_configured:
            try:
                self.s3_backend = S3ImageBackend()
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")

    def upload_image(self, file_name: str, content: bytes) -> str:
        """Upload PNG bytes and return the public URL."""
        backend = self.s3_backend or self.supabase_backend
        return backend.put(file_name, content)

    def delete_image(self, image_url: str) -> None:
        """Best-effort removal of a stored image by its public URL."""
        file_name = _file_name(image_url)
        backend = self.s3_backend if self.s3_backend and self.s3_backend.owns(image_url) else self.supabase_backend
        try:
            backend.remove(file_name)
        except Exception as e:
            logger.warning(f"Failed to delete image {file_name}: {e}")
