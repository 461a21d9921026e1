from __future__ import annotations

import logging

from databricks.sdk import WorkspaceClient
from databricks.sdk.errors import DatabricksError, NotFound

from datacat.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


class VolumeStorageLister:
    """Adapter around the Databricks Files API for Unity Catalog volumes."""

    def __init__(self, client: WorkspaceClient) -> None:
        self.client = client

    def _entries(self, directory: str):
        """List one directory; a missing directory has no entries."""
        try:
            return list(self.client.files.list_directory_contents(directory))
        except NotFound:
            return []

    def list_keys(self, root: str, prefix: str) -> list[str]:
        """
        Return every file path under `prefix`, relative to the volume root.

        The Files API lists directories rather than string prefixes, so the
        parent directory of the prefix is listed and entries whose name starts
        with the last prefix segment are walked recursively. This reproduces
        object-store prefix semantics, including false positives the prefix
        matcher later removes.
        """
        base = "/" + root.strip("/")
        parent, _, leaf = prefix.strip("/").rpartition("/")
        start = f"{base}/{parent}" if parent else base

        keys: list[str] = []
        try:
            pending = [
                e for e in self._entries(start) if (getattr(e, "name", "") or "").startswith(leaf)
            ]
            while pending:
                entry = pending.pop()
                path = getattr(entry, "path", None)
                if not path:
                    continue
                if getattr(entry, "is_directory", False):
                    pending.extend(self._entries(path))
                    continue
                keys.append(path[len(base) :].lstrip("/"))
        except DatabricksError as exc:
            raise StorageUnavailableError(
                f"Listing {start} for prefix '{prefix}' failed: {exc}"
            ) from exc

        logger.debug("Listed %d files under %s/%s", len(keys), base, prefix)
        return sorted(keys)
