"""
Mock Remote Store Implementation

Simulates the JSON REST server without any network.
Used in development mode (ENV_MODE=development) and throughout the tests.

Behavior:
    - Documents live in an in-memory JsonDocumentStore
    - Same resource table and verbs as the REST server
    - Optional simulated latency and random failure rate
    - Deterministic failure injection for exercising rollback paths
    - Every call is recorded in ``calls``

Version: 1.0.0
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Optional

from menu_store.exceptions import TransportError
from menu_store.services.remote.base import BaseRemoteStore
from menu_store.storage import (
    COLLECTIONS,
    SINGLETONS,
    DocumentNotFound,
    JsonDocumentStore,
)

logger = logging.getLogger(__name__)


@dataclass
class InjectedFailure:
    """
    A failure armed against matching requests.

    Attributes:
        method: HTTP verb to match (None matches any)
        path: Exact path, or a collection path matching all its members
        status: Status code reported in the TransportError
        message: Message reported in the TransportError
        remaining: How many more requests fail (None = unlimited)
    """
    method: Optional[str]
    path: Optional[str]
    status: int
    message: str
    remaining: Optional[int]

    def matches(self, method: str, path: str) -> bool:
        if self.method is not None and self.method != method:
            return False
        if self.path is None:
            return True
        prefix = self.path.rstrip("/")
        return path == prefix or path.startswith(prefix + "/")


@dataclass
class RecordedCall:
    method: str
    path: str
    body: Any


class MockRemoteStore(BaseRemoteStore):
    """
    In-memory implementation of the remote store.

    Attributes:
        documents: Underlying document store (inspect it in tests)
        failure_rate: Probability of a random 503 (0.0-1.0)
        min_latency: Minimum response time in seconds
        max_latency: Maximum response time in seconds
        calls: Log of every request received

    Example:
        >>> store = MockRemoteStore(initial={"categories": [...]})
        >>> store.inject_failure("PATCH", "/categories")
        >>> await store.request("/categories/c1", "PATCH", {"sortOrder": 0})
        Traceback (most recent call last):
        TransportError: 500: Internal Server Error
    """

    def __init__(
        self,
        initial: Optional[dict[str, Any]] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        self.documents = JsonDocumentStore(initial=initial)
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(max_latency, min_latency)
        self.calls: list[RecordedCall] = []
        self._failures: list[InjectedFailure] = []

        logger.info(
            f"MockRemoteStore initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency:.2f}-{self.max_latency:.2f}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    # =========================================================================
    # TEST HOOKS
    # =========================================================================

    def inject_failure(
        self,
        method: Optional[str] = None,
        path: Optional[str] = None,
        status: int = 500,
        message: str = "Internal Server Error",
        times: Optional[int] = 1,
    ) -> None:
        """Make the next ``times`` matching requests fail."""
        self._failures.append(
            InjectedFailure(
                method=method.upper() if method else None,
                path=path,
                status=status,
                message=message,
                remaining=times,
            )
        )

    def calls_for(self, method: str) -> list[RecordedCall]:
        return [call for call in self.calls if call.method == method.upper()]

    # =========================================================================
    # SIMULATION
    # =========================================================================

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _take_failure(self, method: str, path: str) -> Optional[InjectedFailure]:
        for failure in self._failures:
            if failure.matches(method, path):
                if failure.remaining is not None:
                    failure.remaining -= 1
                    if failure.remaining <= 0:
                        self._failures.remove(failure)
                return failure
        return None

    def _dispatch(self, method: str, path: str, body: Any) -> Any:
        parts = [part for part in path.split("?")[0].split("/") if part]
        if not parts or len(parts) > 2:
            raise TransportError("Not Found", status=404)

        resource = parts[0]
        doc_id = parts[1] if len(parts) == 2 else None

        if resource in SINGLETONS and doc_id is None:
            if method == "GET":
                return self.documents.get_singleton(resource)
            if method == "PUT":
                return self.documents.replace_singleton(resource, body or {})
            if method == "PATCH":
                return self.documents.patch_singleton(resource, body or {})

        elif resource in COLLECTIONS and doc_id is None:
            if method == "GET":
                return self.documents.list_documents(resource)
            if method == "POST":
                return self.documents.create(resource, body or {})

        elif resource in COLLECTIONS:
            try:
                if method == "GET":
                    return self.documents.get(resource, doc_id)
                if method == "PUT":
                    return self.documents.replace(resource, doc_id, body or {})
                if method == "PATCH":
                    return self.documents.patch(resource, doc_id, body or {})
                if method == "DELETE":
                    return self.documents.delete(resource, doc_id)
            except DocumentNotFound:
                raise TransportError("Not Found", status=404)

        else:
            raise TransportError("Not Found", status=404)

        raise TransportError("Method Not Allowed", status=405)

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Any] = None,
    ) -> Any:
        """Serve the request from memory (mock implementation)."""
        method = method.upper()
        self.calls.append(RecordedCall(method=method, path=path, body=body))
        logger.debug(f"Mock: {method} {path}")

        await self._simulate_latency()

        failure = self._take_failure(method, path)
        if failure is not None:
            logger.debug(f"Mock: Injected failure for {method} {path}")
            raise TransportError(failure.message, status=failure.status)

        if self.failure_rate and random.random() < self.failure_rate:
            logger.debug(f"Mock: Simulated failure for {method} {path}")
            raise TransportError("Service temporarily unavailable", status=503)

        return self._dispatch(method, path, body)

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Store health check passed")
        return True
