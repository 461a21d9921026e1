"""Application context management for the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from datacat.cli.common.exits import catalog_errors, die
from datacat.core.adapters.jsonfile import JsonFileCatalogIndex
from datacat.core.clients import AuthError, build_listers
from datacat.core.config import AppConfig, ConfigStorageLocationResolver, load_config
from datacat.core.reconcile import ReconciliationEngine
from datacat.core.registration import RegistrationService

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application context holding configuration, storage resolver and catalog index."""

    config: AppConfig
    resolver: ConfigStorageLocationResolver
    index: JsonFileCatalogIndex

    def registration(self) -> RegistrationService:
        return RegistrationService(self.resolver, self.index)

    def engine(self, storage_name: str, *, listing: bool = True) -> ReconciliationEngine:
        """
        Build a reconciliation engine with a storage lister for `storage_name`.

        Clients are only created for the storage being reconciled. Locations on
        platforms that cannot be listed get no lister; the engine reports them.
        """
        if not listing:
            return ReconciliationEngine(self.resolver, self.index, {})
        with catalog_errors():
            location = self.resolver.resolve(storage_name)
        try:
            listers = build_listers(location)
        except AuthError as exc:
            die(str(exc), code=1)
        return ReconciliationEngine(self.resolver, self.index, listers)


def build_app_context(config_path: Path | str | None) -> AppContext:
    """Build and return the application context.

    Args:
        config_path: Optional configuration file; defaults apply when omitted.

    Returns:
        AppContext: Context with the configured resolver and catalog index.
    """
    with catalog_errors():
        config = load_config(config_path)
    try:
        index = JsonFileCatalogIndex(config.catalog_path)
    except ValueError as exc:
        die(str(exc), code=1)
    logger.debug("Using catalog %s", index.path)
    return AppContext(
        config=config,
        resolver=ConfigStorageLocationResolver.from_config(config),
        index=index,
    )
