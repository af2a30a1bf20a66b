"""
Blob storage backends for patient images.

S3 is used when it is fully configured, otherwise files are written to the
local upload directory and served by the app's static mount. Both backends
keep objects under the IMAGE_KEY_PREFIX path segment so a public URL can be
mapped back to its object name without knowing which backend produced it.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Optional
from urllib.parse import urlparse, unquote

import boto3  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore

from core import config
from core.constants import IMAGE_CACHE_CONTROL, IMAGE_KEY_PREFIX

logger = logging.getLogger(__name__)

# Object names are generated by us: token, timestamp and an optional extension
_OBJECT_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*(\.[A-Za-z0-9]+)?$")


class BlobStoreError(Exception):
    """Raised when the underlying storage backend fails."""


class BlobStore(ABC):
    """Object storage keyed by caller-generated object names."""

    @abstractmethod
    def put(self, object_name: str, data: bytes, content_type: str) -> str:
        """Write data under object_name and return its public URL."""

    @abstractmethod
    def delete(self, object_name: str) -> None:
        """Remove an object. Deleting a missing object is not an error."""

    @abstractmethod
    def exists(self, object_name: str) -> bool:
        """Check whether an object is currently stored."""

    @abstractmethod
    def public_url(self, object_name: str) -> str:
        """Resolvable URL for an object name."""

    def object_name_from_url(self, url: Optional[str]) -> Optional[str]:
        """
        Extract the object name from a URL produced by this store.

        Returns None for empty input and for URLs that do not follow the
        storage path pattern (.../patient-images/<name>).
        """
        if not url or not isinstance(url, str):
            return None
        path = unquote(urlparse(url).path)
        marker = f"/{IMAGE_KEY_PREFIX}/"
        if marker not in path:
            return None
        object_name = path.split(marker, 1)[1]
        if not _OBJECT_NAME_RE.match(object_name):
            return None
        return object_name


class S3BlobStore(BlobStore):
    """Blob store backed by an S3 (or S3-compatible) bucket."""

    def __init__(
        self,
        bucket: str,
        region: str,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        custom_domain: Optional[str] = None,
        client: Any = None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.custom_domain = custom_domain
        self.s3_client: Any = client or boto3.client(  # type: ignore
            's3',
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            endpoint_url=endpoint_url,
        )

    def _key(self, object_name: str) -> str:
        return f"{IMAGE_KEY_PREFIX}/{object_name}"

    def put(self, object_name: str, data: bytes, content_type: str) -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=self._key(object_name),
                Body=data,
                ContentType=content_type,
                CacheControl=IMAGE_CACHE_CONTROL,
            )
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"S3 upload of {object_name} failed: {e}") from e
        return self.public_url(object_name)

    def delete(self, object_name: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=self._key(object_name))
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"S3 delete of {object_name} failed: {e}") from e

    def exists(self, object_name: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=self._key(object_name))
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise BlobStoreError(f"S3 lookup of {object_name} failed: {e}") from e
        except BotoCoreError as e:
            raise BlobStoreError(f"S3 lookup of {object_name} failed: {e}") from e

    def public_url(self, object_name: str) -> str:
        key = self._key(object_name)
        if self.custom_domain:
            return f"https://{self.custom_domain}/{key}"
        if self.endpoint_url:
            # MinIO / localstack style path addressing
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


class LocalBlobStore(BlobStore):
    """Blob store on the local filesystem, for development without S3."""

    def __init__(self, root_dir: str, base_url: str):
        self.root_dir = root_dir
        self.base_url = base_url.rstrip("/")
        self.image_dir = os.path.join(root_dir, IMAGE_KEY_PREFIX)

    def _path(self, object_name: str) -> str:
        return os.path.join(self.image_dir, object_name)

    def put(self, object_name: str, data: bytes, content_type: str) -> str:
        try:
            os.makedirs(self.image_dir, exist_ok=True)
            # "xb" refuses to overwrite an existing object
            with open(self._path(object_name), "xb") as out_file:
                out_file.write(data)
        except OSError as e:
            raise BlobStoreError(f"Local write of {object_name} failed: {e}") from e
        return self.public_url(object_name)

    def delete(self, object_name: str) -> None:
        try:
            os.remove(self._path(object_name))
        except FileNotFoundError:
            return
        except OSError as e:
            raise BlobStoreError(f"Local delete of {object_name} failed: {e}") from e

    def exists(self, object_name: str) -> bool:
        return os.path.isfile(self._path(object_name))

    def public_url(self, object_name: str) -> str:
        return f"{self.base_url}/static/uploads/{IMAGE_KEY_PREFIX}/{object_name}"


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    """
    Blob store for the running application.

    Prioritizes S3 if configured, otherwise falls back to local storage.
    """
    if config.is_s3_configured():
        logger.info(f"Using S3 blob store (bucket={config.S3_BUCKET})")
        return S3BlobStore(
            bucket=config.S3_BUCKET,
            region=config.S3_REGION,
            access_key=config.S3_ACCESS_KEY,
            secret_key=config.S3_SECRET_KEY,
            endpoint_url=config.S3_ENDPOINT_URL,
            custom_domain=config.S3_CUSTOM_DOMAIN,
        )
    logger.info(f"Using local blob store at {config.UPLOAD_DIR}")
    return LocalBlobStore(root_dir=config.UPLOAD_DIR, base_url=config.API_BASE_URL)
