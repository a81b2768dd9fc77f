"""Pytest configuration and fixtures."""

import copy
from typing import Any

import pytest
import pytest_asyncio

from menu_store.services.remote import MockRemoteStore
from menu_store.services.synchronizer import CollectionSynchronizer

SEED_DOCUMENT: dict[str, Any] = {
    "branding": {
        "restaurantName": "Osh Markazi",
        "slogan": "Since 1998",
        "logoUrl": "https://cdn.example.com/logo.png",
        "primaryColor": "#f97316",
        "backgroundColor": "#f9fafb",
        "cardColor": "#ffffff",
        "textColor": "#111827",
        "mutedColor": "#6b7280",
        "accentColor": "#10b981",
    },
    "branches": [
        {"id": "b1", "name": "Chilonzor", "address": "Bunyodkor 12", "phone": "+998 71 200 00 01"},
        {"id": "b2", "name": "Yunusobod", "address": "Amir Temur 88", "phone": "+998 71 200 00 02"},
    ],
    # Stored out of display order on purpose
    "categories": [
        {"id": "c2", "name": "Soups", "sortOrder": 1, "viewType": "list"},
        {"id": "c1", "name": "Main dishes", "sortOrder": 0, "viewType": "grid"},
    ],
    "dishes": [
        {"id": "d1", "categoryId": "c1", "name": "Plov", "description": "", "price": 45000,
         "imageUrls": [], "isActive": True, "sortOrder": 0},
        {"id": "d2", "categoryId": "c1", "name": "Lagman", "description": "", "price": 38000,
         "imageUrls": [], "isActive": True, "sortOrder": 1},
        {"id": "d3", "categoryId": "c1", "name": "Manti", "description": "", "price": 30000,
         "imageUrls": [], "isActive": True, "sortOrder": 2, "availableBranchIds": ["b2"]},
        {"id": "d4", "categoryId": "c2", "name": "Shurpa", "description": "", "price": 32000,
         "imageUrls": [], "isActive": False, "sortOrder": 0},
        {"id": "d5", "categoryId": "c2", "name": "Mastava", "description": "", "price": 28000,
         "imageUrls": [], "isActive": True, "sortOrder": 1},
    ],
}


@pytest.fixture
def seed() -> dict[str, Any]:
    """A fresh copy of the seed document."""
    return copy.deepcopy(SEED_DOCUMENT)


@pytest.fixture
def store(seed) -> MockRemoteStore:
    """Mock store without latency or random failures."""
    return MockRemoteStore(initial=seed)


@pytest_asyncio.fixture
async def sync(store) -> CollectionSynchronizer:
    """Initialized synchronizer over the mock store."""
    synchronizer = CollectionSynchronizer(store, request_timeout=2.0)
    await synchronizer.initialize()
    store.calls.clear()
    return synchronizer
