"""
Error Taxonomy

    MenuStoreError
     ├── TransportError   - non-2xx response, network failure or deadline
     ├── SyncError        - a mutation failed and local state was restored
     ├── InitError        - the initial load failed (or never happened)
     └── AuthenticationError

InvalidDishError is a ValueError: it is raised for bad input before any
remote call is made.
"""

from typing import Optional


class MenuStoreError(Exception):
    """Base class for all menu store errors."""


class TransportError(MenuStoreError):
    """
    A remote call did not succeed.

    Attributes:
        status: HTTP status code, or None for network/timeout failures
        message: Human-readable message (body "message" or status text)
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.status}: {self.message}"


class SyncError(MenuStoreError):
    """A mutation failed; the affected collection was rolled back or re-read."""

    def __init__(self, message: str, cause: Optional[TransportError] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class InitError(MenuStoreError):
    """The synchronizer has no valid data."""


class AuthenticationError(MenuStoreError):
    """Wrong admin credentials."""


class InvalidDishError(ValueError):
    """Dish payload cannot be priced (variant pricing without variants)."""
