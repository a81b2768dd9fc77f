"""
Remote Store Abstract Base Class

Defines the interface contract for the document store the synchronizer
talks to. Both MockRemoteStore and HttpRemoteStore implement it, so the
synchronizer behaves identically regardless of which one is active.

Design Pattern: Strategy Pattern
    - The HTTP store is used against the real REST server
    - The mock store keeps documents in memory and can simulate failures

Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class BaseRemoteStore(ABC):
    """
    Abstract base class for remote document stores.

    ``request`` is the only I/O boundary of the synchronizer. It never
    retries; a non-2xx response or a network failure raises TransportError.

    Example:
        >>> store = get_remote_store()
        >>> dishes = await store.request("/dishes")
        >>> await store.request("/dishes/abc", "PATCH", {"sortOrder": 2})
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the store provider.

        Returns:
            str: Provider name (e.g., "mock", "http")
        """
        pass

    @abstractmethod
    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Any] = None,
    ) -> Any:
        """
        Perform one request against the store.

        Args:
            path: Resource path (e.g., "/categories/42")
            method: GET, POST, PUT, PATCH or DELETE
            body: JSON-serializable request body

        Returns:
            The decoded JSON response (None for an empty body)

        Raises:
            TransportError: Non-2xx response or network failure
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the store.

        Returns:
            bool: True if the store answers
        """
        pass

    async def aclose(self) -> None:
        """Release held resources. No-op by default."""
        return None
