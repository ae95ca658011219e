import boto3
from botocore.exceptions import ClientError
from flask import current_app
from urllib.parse import urlparse, unquote
from uuid import uuid4
import logging
import mimetypes
import os
from mediatank.utils.errors import StorageError

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = ('NoSuchKey', '404', 'NotFound')

class S3Service:
    def __init__(self, bucket_name, region=None):
        self.region = region or os.environ.get('AWS_REGION', 'us-east-1')
        self.s3 = boto3.client(
            's3',
            aws_access_key_id=os.environ.get('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=os.environ.get('AWS_SECRET_ACCESS_KEY'),
            region_name=self.region
        )
        self.bucket_name = bucket_name

    def get_file_url(self, file_key):
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{file_key}"

    def object_key_from_url(self, url):
        """
        Work out the object key a stored URL points at.

        Accepts virtual-hosted URLs (bucket.s3.region.amazonaws.com/key),
        path-style URLs (s3.region.amazonaws.com/bucket/key) and bare keys.
        Returns None when nothing usable can be extracted.
        """
        if not url:
            return None

        parsed = urlparse(url)
        if not parsed.scheme:
            key = url.lstrip('/')
            return key or None
        if not parsed.netloc:
            return None

        path = unquote(parsed.path).lstrip('/')
        if not parsed.netloc.startswith(f"{self.bucket_name}.") and path.startswith(f"{self.bucket_name}/"):
            path = path[len(self.bucket_name) + 1:]
        return path or None

    def delete_if_exists(self, file_key):
        """Delete an object; a key that is already gone is not an error."""
        try:
            self.s3.delete_object(Bucket=self.bucket_name, Key=file_key)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code')
            if code in MISSING_OBJECT_CODES:
                logger.info(f"Object {file_key} already absent from {self.bucket_name}")
                return
            raise StorageError(f"Failed to delete {file_key}: {str(e)}")

    def delete_media_files(self, media):
        """Delete the primary file and the thumbnail of a media item."""
        for url in (media.url, media.thumbnail_url):
            file_key = self.object_key_from_url(url)
            if file_key:
                self.delete_if_exists(file_key)

    def generate_upload_url(self, user_id, filename, content_type=None, expires_in=3600):
        """Presigned PUT URL so the browser uploads straight to the bucket."""
        file_extension = os.path.splitext(filename)[1]
        content_type = content_type or mimetypes.guess_type(filename)[0] or 'application/octet-stream'
        file_key = f"media/{user_id}/{uuid4()}{file_extension}"

        try:
            upload_url = self.s3.generate_presigned_url(
                'put_object',
                Params={
                    'Bucket': self.bucket_name,
                    'Key': file_key,
                    'ContentType': content_type
                },
                ExpiresIn=expires_in
            )
        except ClientError as e:
            raise StorageError(f"Failed to create upload URL: {str(e)}")

        return {
            'upload_url': upload_url,
            'file_key': file_key,
            'file_url': self.get_file_url(file_key),
            'content_type': content_type
        }

    def generate_download_url(self, url, filename=None, expires_in=3600):
        file_key = self.object_key_from_url(url)
        if not file_key:
            return None

        params = {'Bucket': self.bucket_name, 'Key': file_key}
        if filename:
            params['ResponseContentDisposition'] = f'attachment; filename="{filename}"'
        try:
            return self.s3.generate_presigned_url('get_object', Params=params, ExpiresIn=expires_in)
        except ClientError as e:
            raise StorageError(f"Failed to create download URL: {str(e)}")


def get_storage():
    storage = current_app.extensions.get('storage')
    if storage is None:
        storage = S3Service(
            bucket_name=current_app.config.get('AWS_S3_BUCKET'),
            region=current_app.config.get('AWS_REGION')
        )
        current_app.extensions['storage'] = storage
    return storage
