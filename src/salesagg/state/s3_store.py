"""S3 state store — JSON objects under an optional key prefix in one bucket."""

from __future__ import annotations

import json
import logging
from typing import Any

from salesagg.errors import ConfigurationError, StateStoreError
from salesagg.state.base import StateStore

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class S3StateStore(StateStore):
    """Bucket-backed store; credentials come from the default boto3 chain."""

    def __init__(
        self,
        bucket: str | None = None,
        prefix: str = "",
        region: str | None = None,
        client: Any = None,
    ):
        import boto3
        from botocore.exceptions import BotoCoreError, ClientError

        if not bucket:
            raise ConfigurationError("S3 state store requires a bucket name")

        self.bucket = bucket
        self.prefix = prefix.strip("/")
        if self.prefix:
            self.prefix += "/"
        self._client_error = ClientError
        self._errors = (ClientError, BotoCoreError)
        self._s3 = client or boto3.client("s3", region_name=region)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> dict[str, Any] | None:
        try:
            obj = self._s3.get_object(Bucket=self.bucket, Key=self._key(key))
            body = obj["Body"].read()
        except self._client_error as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise StateStoreError(f"Failed to read s3://{self.bucket}/{self._key(key)}", detail=str(exc)) from exc
        except self._errors as exc:
            raise StateStoreError(f"Failed to read s3://{self.bucket}/{self._key(key)}", detail=str(exc)) from exc

        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise StateStoreError(f"Corrupt JSON at {self._key(key)}", detail=str(exc)) from exc

    def put(self, key: str, value: dict[str, Any]) -> None:
        try:
            self._s3.put_object(
                Bucket=self.bucket,
                Key=self._key(key),
                Body=json.dumps(value).encode("utf-8"),
                ContentType="application/json",
            )
        except self._errors as exc:
            raise StateStoreError(f"Failed to write s3://{self.bucket}/{self._key(key)}", detail=str(exc)) from exc

    def delete(self, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=self._key(key))
        except self._errors as exc:
            raise StateStoreError(f"Failed to delete s3://{self.bucket}/{self._key(key)}", detail=str(exc)) from exc

    def delete_prefix(self, prefix: str) -> int:
        deleted = 0
        try:
            paginator = self._s3.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=self._key(prefix)):
                keys = [{"Key": obj["Key"]} for obj in page.get("Contents", [])]
                if not keys:
                    continue
                self._s3.delete_objects(Bucket=self.bucket, Delete={"Objects": keys, "Quiet": True})
                deleted += len(keys)
        except self._errors as exc:
            raise StateStoreError(f"Failed to delete prefix {self._key(prefix)}", detail=str(exc)) from exc
        logger.info("S3StateStore deleted %d keys under '%s'", deleted, self._key(prefix))
        return deleted
