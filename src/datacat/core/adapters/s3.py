from __future__ import annotations

import logging

from botocore.exceptions import BotoCoreError, ClientError

from datacat.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


def split_root(root: str) -> tuple[str, str]:
    """Split `bucket[/base/path]` (optionally `s3://`-prefixed) into (bucket, base)."""
    text = root.strip()
    if text.startswith("s3://"):
        text = text[len("s3://") :]
    bucket, _, base = text.partition("/")
    if not bucket:
        raise ValueError(f"Invalid S3 storage root '{root}'")
    return bucket, base.strip("/")


class S3StorageLister:
    """Adapter around boto3 `list_objects_v2` (paginated, read-only)."""

    def __init__(self, client) -> None:
        self.client = client

    def list_keys(self, root: str, prefix: str) -> list[str]:
        """
        Return every object key under `prefix`.

        Keys are relative to the storage root; when the root carries a base
        path it is prepended for the request and stripped from the result.
        """
        bucket, base = split_root(root)
        full_prefix = f"{base}/{prefix}" if base else prefix

        keys: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=full_prefix):
                for obj in page.get("Contents", []) or []:
                    key = obj.get("Key")
                    if not key:
                        continue
                    keys.append(key[len(base) + 1 :] if base else key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError(
                f"Listing s3://{bucket}/{full_prefix} failed: {exc}"
            ) from exc

        logger.debug("Listed %d objects under s3://%s/%s", len(keys), bucket, full_prefix)
        return keys
