"""Storage client construction.

This module centralizes creation of the SDK clients used by the storage
listers (a Databricks WorkspaceClient for volumes, a boto3 S3 client for
buckets) and applies small normalization rules (such as sanitizing the
Databricks host URL) to avoid subtle SDK and API issues. Credentials always
come from the SDKs' own configuration chains.
"""

from __future__ import annotations

import re

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ProfileNotFound
from databricks.sdk import WorkspaceClient
from databricks.sdk.core import Config

from datacat.core.models import PlatformKind, StorageLocation


class AuthError(RuntimeError):
    """Raised when storage client authentication cannot be configured."""


def _format_auth_error(message: str, profile: str | None) -> str:
    """Return a user-friendly Databricks auth error message."""
    login_match = re.search(r"databricks auth login ([^\s]+)", message)
    host = login_match.group(1) if login_match else None
    if host:
        cmd = "databricks auth login"
        if profile:
            cmd = f"{cmd} --profile {profile}"
        return (
            "Databricks authentication failed. Your refresh token is invalid.\n"
            f"Re-authenticate with:\n  $ {cmd}"
        )
    return f"Databricks authentication failed: {message}"


def _sanitize_host(host: str | None) -> str | None:
    """
    Normalize a Databricks host URL.

    - Removes query strings (e.g. '?o=123456789')
    - Removes trailing slashes
    """
    if not host:
        return host
    host = host.split("?", 1)[0]
    return host.rstrip("/")


def get_workspace_client(profile: str | None = None) -> WorkspaceClient:
    """
    Create a Databricks WorkspaceClient from the unified configuration
    (~/.databrickscfg or environment variables).
    """
    try:
        cfg = Config(profile=profile) if profile else Config()
    except ValueError as exc:
        raise AuthError(_format_auth_error(str(exc), profile)) from exc
    cfg.host = _sanitize_host(cfg.host)
    return WorkspaceClient(config=cfg)


def get_s3_client(location: StorageLocation):
    """
    Create a boto3 S3 client for a storage location.

    SDK retries are disabled; the caller owns the retry policy.
    """
    try:
        session = boto3.session.Session(profile_name=location.profile or None)
    except ProfileNotFound as exc:
        raise AuthError(f"AWS profile not found: {location.profile}") from exc
    return session.client(
        "s3",
        endpoint_url=location.endpoint_url or None,
        region_name=location.region or None,
        config=BotoConfig(retries={"total_max_attempts": 1, "mode": "standard"}),
    )


def build_listers(location: StorageLocation) -> dict:
    """Return `{platform: lister}` for an object-store location, else `{}`."""
    from datacat.core.adapters.s3 import S3StorageLister
    from datacat.core.adapters.volumes import VolumeStorageLister

    platform = PlatformKind(location.platform)
    if platform == PlatformKind.S3:
        return {platform: S3StorageLister(get_s3_client(location))}
    if platform == PlatformKind.VOLUMES:
        return {platform: VolumeStorageLister(get_workspace_client(location.profile))}
    return {}
