from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import BinaryIO

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from lazygallery.core.config import Settings, settings

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


class StorageError(Exception):
    """Any object store failure other than a missing key."""


class ObjectNotFound(Exception):
    """The requested bucket or key does not exist."""


@dataclass(frozen=True)
class ObjectStat:
    size: int
    etag: str
    content_type: str | None


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", "UnknownError"))


def _endpoint_url(endpoint: str, secure: bool) -> str:
    if "://" in endpoint:
        return endpoint
    scheme = "https" if secure else "http"
    return f"{scheme}://{endpoint}"


def _quote_etag(etag: str) -> str:
    if etag.startswith('"') or etag.startswith("W/"):
        return etag
    return f'"{etag}"'


class ObjectStore:
    def __init__(self, client, region: str | None = None) -> None:
        self._client = client
        self._region = region

    @classmethod
    def from_settings(cls, config: Settings) -> "ObjectStore":
        client = boto3.client(
            "s3",
            endpoint_url=_endpoint_url(config.S3_ENDPOINT, config.S3_SECURE),
            aws_access_key_id=config.S3_ACCESS_KEY,
            aws_secret_access_key=config.S3_SECRET_KEY,
            region_name=config.S3_REGION or "us-east-1",
            use_ssl=config.S3_SECURE,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": "path"},
                # callers decide whether to retry
                retries={"max_attempts": 1, "mode": "standard"},
            ),
        )
        return cls(client, region=config.S3_REGION)

    def ensure_bucket(self, name: str) -> None:
        try:
            self._client.head_bucket(Bucket=name)
            return
        except ClientError as exc:
            if _error_code(exc) not in _NOT_FOUND_CODES:
                raise StorageError(f"Cannot inspect bucket {name}: {_error_code(exc)}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Cannot inspect bucket {name}: {exc.__class__.__name__}") from exc

        logger.info("Creating bucket %s", name)
        params = {"Bucket": name}
        if self._region and self._region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self._region}
        try:
            self._client.create_bucket(**params)
        except ClientError as exc:
            if _error_code(exc) in {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}:
                return
            raise StorageError(f"Cannot create bucket {name}: {_error_code(exc)}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"Cannot create bucket {name}: {exc.__class__.__name__}") from exc

    def put(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> None:
        params = {
            "Bucket": bucket,
            "Key": key,
            "Body": data,
            "ContentType": content_type,
        }
        if metadata:
            params["Metadata"] = metadata
        self._call("put_object", params)

    def stat(self, bucket: str, key: str) -> ObjectStat:
        response = self._call("head_object", {"Bucket": bucket, "Key": key})
        return ObjectStat(
            size=int(response.get("ContentLength", 0)),
            etag=_quote_etag(response.get("ETag", "")),
            content_type=response.get("ContentType"),
        )

    def get(self, bucket: str, key: str) -> BinaryIO:
        response = self._call("get_object", {"Bucket": bucket, "Key": key})
        return response["Body"]

    def read(self, bucket: str, key: str) -> bytes:
        body = self.get(bucket, key)
        try:
            return body.read()
        finally:
            body.close()

    def remove(self, bucket: str, key: str) -> None:
        self._call("delete_object", {"Bucket": bucket, "Key": key})

    def _call(self, operation: str, params: dict) -> dict:
        try:
            return getattr(self._client, operation)(**params)
        except ClientError as exc:
            code = _error_code(exc)
            if code in _NOT_FOUND_CODES:
                raise ObjectNotFound(f"{params['Bucket']}/{params.get('Key', '')}") from exc
            raise StorageError(f"{operation} failed: {code}") from exc
        except BotoCoreError as exc:
            raise StorageError(f"{operation} failed: {exc.__class__.__name__}") from exc


@lru_cache(maxsize=1)
def get_object_store() -> ObjectStore:
    return ObjectStore.from_settings(settings)
