"""
                        Services Module

Contains the menu store's business logic.

Services:
    - remote: Remote store adapters (Mock for development, HTTP otherwise)
    - synchronizer: Optimistic in-memory copy of the menu collections
    - ordering: sortOrder bookkeeping and menu projections
    - auth: Admin sign-in gate
"""

from menu_store.services.auth import AdminSession
from menu_store.services.synchronizer import CollectionSynchronizer, SyncStatus

__all__ = ["AdminSession", "CollectionSynchronizer", "SyncStatus"]
