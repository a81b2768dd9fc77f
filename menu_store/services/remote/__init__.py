"""
Remote Store Factory

Provides a single entry point for obtaining a remote store instance.
Automatically selects Mock or HTTP based on ENV_MODE configuration.

Usage:
    from menu_store.services.remote import get_remote_store

    store = get_remote_store()
    categories = await store.request("/categories")

Version: 1.0.0
"""

import logging
from functools import lru_cache

from menu_store.core.config import get_settings
from menu_store.services.remote.base import BaseRemoteStore
from menu_store.services.remote.http import HttpRemoteStore
from menu_store.services.remote.mock import MockRemoteStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_remote_store() -> BaseRemoteStore:
    """
    Get the configured remote store instance.

    Returns:
        BaseRemoteStore: MockRemoteStore in development, HttpRemoteStore
        in production and staging
    """
    settings = get_settings()

    if settings.use_http_store:
        logger.info(
            f"Remote Store: Using HttpRemoteStore "
            f"({settings.env_mode.value} mode)"
        )
        return HttpRemoteStore()

    logger.info("Remote Store: Using MockRemoteStore (development mode)")
    return MockRemoteStore(
        failure_rate=settings.mock_failure_rate,
        min_latency=settings.mock_min_latency,
        max_latency=settings.mock_max_latency,
    )


def reset_remote_store() -> None:
    """
    Clear the cached remote store instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_remote_store.cache_clear()
    logger.debug("Remote store cache cleared")


__all__ = [
    "get_remote_store",
    "reset_remote_store",
    "BaseRemoteStore",
    "HttpRemoteStore",
    "MockRemoteStore",
]
