"""Process startup wiring for the asset storage service."""

from __future__ import annotations

import logging

from assetstore.core.config import Settings, get_settings, load_storage_config
from assetstore.core.logging_config import configure_logging
from assetstore.services.storage import AssetStorageService

logger = logging.getLogger(__name__)


def create_storage_service(settings: Settings | None = None) -> AssetStorageService:
    """Load config once and build the storage service.

    The returned service owns its config; callers pass it to whatever
    needs storage instead of reaching for module-level state.

    Raises:
        ConfigurationError: If the selected backend is missing settings.
            The process should not continue.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    config = load_storage_config(settings)
    service = AssetStorageService.from_config(config)
    logger.info(f"Asset storage ready (provider={config.provider.value})")
    return service
