"""
Blob storage for the public media bucket.

Object bytes live on local disk (aiofiles) or in S3 (aioboto3). Only the
bytes are handled here; the metadata row that carries the write policy is
managed by app.crud, which always writes that row first.
"""

import io
import os
import logging
import aiofiles
import aioboto3
from botocore.config import Config
from botocore.exceptions import ClientError
from PIL import Image, UnidentifiedImageError
from .errors import ConstraintViolation, NotFound

logger = logging.getLogger(__name__)

MEDIA_STORAGE_BACKEND = os.getenv('MEDIA_STORAGE_BACKEND', 'local')
MEDIA_ROOT = os.getenv('MEDIA_ROOT', 'static/media')
MEDIA_PUBLIC_BASE_URL = os.getenv('MEDIA_PUBLIC_BASE_URL', '/storage/v1/object/public')
MAX_OBJECT_SIZE = int(os.getenv('MEDIA_MAX_OBJECT_SIZE', str(50 * 1024 * 1024)))

# Support both AWS_S3_BUCKET (preferred) and legacy AWS_S3_BUCKET_NAME
S3_BUCKET = os.getenv('AWS_S3_BUCKET') or os.getenv('AWS_S3_BUCKET_NAME')
S3_REGION = os.getenv('AWS_S3_REGION') or os.getenv('AWS_REGION', 'us-east-1')

# raster formats Pillow can measure
NON_RASTER_IMAGES = {'image/svg+xml'}


def normalize_object_name(name: str) -> str:
    """Relative object path inside a bucket; rejects absolute paths and '..'."""
    name = (name or '').strip().replace('\\', '/')
    if name.startswith('/'):
        raise ConstraintViolation('Object name must be relative')
    parts = [p for p in name.split('/') if p not in ('', '.')]
    if not parts or '..' in parts:
        raise ConstraintViolation('Invalid object name')
    return '/'.join(parts)


def describe_blob(data: bytes, content_type: str = None) -> dict:
    """Object metadata stored alongside the row: size, mimetype and image dimensions."""
    if len(data) > MAX_OBJECT_SIZE:
        raise ConstraintViolation(f'Object too large. Max size is {MAX_OBJECT_SIZE} bytes')
    content_type = content_type or 'application/octet-stream'
    meta = {'size': len(data), 'mimetype': content_type}
    if content_type.startswith('image/') and content_type not in NON_RASTER_IMAGES:
        try:
            with Image.open(io.BytesIO(data)) as img:
                meta['width'], meta['height'] = img.size
        except (UnidentifiedImageError, OSError):
            raise ConstraintViolation('Invalid image file')
    return meta


class LocalMediaStorage:
    """Bucket objects as files under MEDIA_ROOT/<bucket>/<name>."""

    def __init__(self, root: str = MEDIA_ROOT, base_url: str = MEDIA_PUBLIC_BASE_URL):
        self.root = root
        self.base_url = base_url.rstrip('/')

    def _path(self, bucket: str, name: str) -> str:
        return os.path.join(self.root, bucket, *name.split('/'))

    def public_url(self, bucket: str, name: str) -> str:
        return f"{self.base_url}/{bucket}/{name}"

    async def put(self, bucket: str, name: str, data: bytes, content_type: str = None) -> None:
        path = self._path(bucket, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        async with aiofiles.open(path, 'wb') as f:
            await f.write(data)

    async def get(self, bucket: str, name: str) -> bytes:
        path = self._path(bucket, name)
        if not os.path.exists(path):
            raise NotFound(f'Object {name} not found')
        async with aiofiles.open(path, 'rb') as f:
            return await f.read()

    async def delete(self, bucket: str, name: str) -> bool:
        path = self._path(bucket, name)
        if os.path.exists(path):
            os.remove(path)
            return True
        return False


class S3MediaStorage:
    """Bucket objects as S3 keys <bucket>/<name> in AWS_S3_BUCKET."""

    def __init__(self, s3_bucket: str = S3_BUCKET, region: str = S3_REGION):
        if not s3_bucket:
            raise ValueError('AWS_S3_BUCKET must be set for the s3 media backend')
        self.s3_bucket = s3_bucket
        self.region = region
        self.session = aioboto3.Session()

    def _client(self):
        return self.session.client('s3', region_name=self.region,
                                   aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
                                   aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                                   config=Config(signature_version='s3v4'))

    @staticmethod
    def _key(bucket: str, name: str) -> str:
        return f"{bucket}/{name}"

    def public_url(self, bucket: str, name: str) -> str:
        return f"https://{self.s3_bucket}.s3.{self.region}.amazonaws.com/{self._key(bucket, name)}"

    async def put(self, bucket: str, name: str, data: bytes, content_type: str = None) -> None:
        async with self._client() as client:
            await client.put_object(Bucket=self.s3_bucket, Key=self._key(bucket, name), Body=data,
                                    ContentType=content_type or 'application/octet-stream',
                                    CacheControl='max-age=3600')

    async def get(self, bucket: str, name: str) -> bytes:
        async with self._client() as client:
            try:
                response = await client.get_object(Bucket=self.s3_bucket, Key=self._key(bucket, name))
            except ClientError as e:
                if e.response.get('Error', {}).get('Code') in ('NoSuchKey', '404'):
                    raise NotFound(f'Object {name} not found')
                raise
            async with response['Body'] as stream:
                return await stream.read()

    async def delete(self, bucket: str, name: str) -> bool:
        async with self._client() as client:
            try:
                await client.delete_object(Bucket=self.s3_bucket, Key=self._key(bucket, name))
                return True
            except ClientError as e:
                logger.warning(f'S3 delete failed for {name}: {e}')
                return False


_media_storage = None


def get_media_storage():
    global _media_storage
    if _media_storage is None:
        if MEDIA_STORAGE_BACKEND == 's3':
            _media_storage = S3MediaStorage()
        else:
            _media_storage = LocalMediaStorage()
    return _media_storage


def set_media_storage(storage):
    """Swap the backend (used by tests and by scripts that target another root)."""
    global _media_storage
    _media_storage = storage
