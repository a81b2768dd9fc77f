"""
Collection Synchronizer

Owns the in-memory copies of the four menu collections (branding,
branches, categories, dishes) and keeps them in step with the remote
store.

Mutation pattern (branding, branches, categories, dishes):
    1. Snapshot the affected collection
    2. Apply the change locally, so subscribers see it immediately
    3. Issue the remote call (POST / PUT / PATCH / DELETE)
    4. Success: creates swap their placeholder entity for the stored one
    5. Failure: restore the snapshot and raise SyncError

Exceptions to the pattern:
    - delete_category waits for the whole cascade before touching memory,
      and re-reads categories and dishes if any part of it fails
    - move_dish patches first and then re-reads the dish collection

Operations are not serialized against each other; callers issue them from
a single event loop and decide themselves whether to await one before
starting the next.

Usage:
    sync = CollectionSynchronizer(get_remote_store())
    await sync.initialize()
    drinks = await sync.add_category("Drinks")
    await sync.reorder_categories([drinks, *sync.categories[:-1]])

Version: 1.0.0
"""

import asyncio
import itertools
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence, Union

from pydantic import ValidationError

from menu_store.core.config import get_settings
from menu_store.exceptions import InitError, SyncError, TransportError
from menu_store.schemas import (
    Branch,
    BranchDraft,
    BrandingConfig,
    Category,
    CategoryViewType,
    Dish,
    DishDraft,
    MoveDirection,
)
from menu_store.services import ordering
from menu_store.services.remote.base import BaseRemoteStore

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]

_UNSET: Any = object()


# =============================================================================
# PLACEHOLDER IDS
# =============================================================================

# Stored ids are generated by the server and never contain ":".
PLACEHOLDER_PREFIX = "pending:"

_placeholder_counter = itertools.count(1)


def new_placeholder_id(tag: str) -> str:
    """Process-unique id for an entity that has not been stored yet."""
    return f"{PLACEHOLDER_PREFIX}{tag}:{time.monotonic_ns()}:{next(_placeholder_counter)}"


def is_placeholder(entity_id: str) -> bool:
    return entity_id.startswith(PLACEHOLDER_PREFIX)


class SyncStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class CollectionSynchronizer:
    """
    Optimistic in-memory view of the menu.

    Collections are exposed as fresh lists; only the synchronizer's own
    operations replace the underlying state.

    Attributes:
        store: Remote store used for every read and write
        request_timeout: Deadline in seconds per remote call (None = none)
        status: IDLE until initialize(), then READY or ERROR
        error: Message of the failed initialization, if any
    """

    def __init__(
        self,
        store: BaseRemoteStore,
        request_timeout: Optional[float] = _UNSET,
    ):
        self.store = store
        self.request_timeout = (
            get_settings().request_timeout if request_timeout is _UNSET else request_timeout
        )
        self.status = SyncStatus.IDLE
        self.error: Optional[str] = None

        self._branding: Optional[BrandingConfig] = None
        self._branches: list[Branch] = []
        self._categories: list[Category] = []
        self._dishes: list[Dish] = []
        self._listeners: list[Listener] = []

    # =========================================================================
    # STATE ACCESS
    # =========================================================================

    @property
    def loading(self) -> bool:
        return self.status in (SyncStatus.IDLE, SyncStatus.LOADING)

    @property
    def branding(self) -> Optional[BrandingConfig]:
        return self._branding

    @property
    def branches(self) -> list[Branch]:
        return list(self._branches)

    @property
    def categories(self) -> list[Category]:
        return list(self._categories)

    @property
    def dishes(self) -> list[Dish]:
        return list(self._dishes)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked with the collection name on every change.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, name: str, value: Any) -> None:
        setattr(self, f"_{name}", value)
        for listener in list(self._listeners):
            try:
                listener(name)
            except Exception:
                logger.exception(f"Listener failed while handling '{name}' change")

    def _require_ready(self) -> None:
        if self.status != SyncStatus.READY:
            raise InitError(self.error or "Menu data has not been loaded")

    @staticmethod
    def _require_stored(entity_id: str, kind: str) -> None:
        if is_placeholder(entity_id):
            raise SyncError(f"{kind} {entity_id} is still being saved")

    # =========================================================================
    # REMOTE CALLS
    # =========================================================================

    async def _call(self, method: str, path: str, body: Optional[Any] = None) -> Any:
        """One remote call, bounded by the request deadline."""
        pending = self.store.request(path, method, body)
        if self.request_timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, self.request_timeout)
        except asyncio.TimeoutError:
            raise TransportError(
                f"{method} {path} timed out after {self.request_timeout}s"
            ) from None

    @staticmethod
    async def _join(calls: Iterable[Awaitable[Any]]) -> list[Any]:
        """Await every call; fail with the first error once all have settled."""
        results = await asyncio.gather(*calls, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return results

    async def _mutate(
        self,
        name: str,
        updated: Any,
        method: str,
        path: str,
        body: Optional[Any],
        action: str,
    ) -> Any:
        """Apply ``updated`` to collection ``name`` now, undo it if the call fails."""
        snapshot = getattr(self, f"_{name}")
        self._set(name, updated)
        try:
            return await self._call(method, path, body)
        except TransportError as e:
            self._set(name, snapshot)
            logger.warning(f"{action} failed, {name} rolled back - {e}")
            raise SyncError(f"{action} failed: {e.message}", cause=e) from e

    async def _reconcile_created(
        self,
        name: str,
        model: type,
        placeholder_id: str,
        body: dict[str, Any],
        response: Any,
    ) -> Any:
        """Swap the placeholder entity for the one the store returned."""
        try:
            created = model.model_validate({**body, **(response or {})})
        except (ValidationError, TypeError) as e:
            logger.error(f"Store returned a malformed {name} entity, re-reading - {e}")
            await self._resync_after_failure(name)
            self._set(name, [item for item in getattr(self, f"_{name}") if item.id != placeholder_id])
            raise SyncError(f"Store returned a malformed {name} entity") from e

        self._set(
            name,
            [created if item.id == placeholder_id else item for item in getattr(self, f"_{name}")],
        )
        return created

    async def _refetch(self, *names: str) -> None:
        responses = await self._join(self._call("GET", f"/{name}") for name in names)
        for name, response in zip(names, responses):
            if name == "categories":
                self._set(name, ordering.sort_by_order(Category.model_validate(c) for c in response))
            elif name == "dishes":
                self._set(name, [Dish.model_validate(d) for d in response])
            elif name == "branches":
                self._set(name, [Branch.model_validate(b) for b in response])

    async def _resync_after_failure(self, *names: str) -> None:
        try:
            await self._refetch(*names)
        except (TransportError, ValidationError) as e:
            logger.error(f"Could not re-read {', '.join(names)} after a failed write - {e}")

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    async def initialize(self) -> None:
        """
        Load all four collections concurrently.

        Runs once: a second call after success is a no-op, a call after a
        failure tries again. Nothing is exposed unless every fetch succeeds.

        Raises:
            InitError: Any fetch failed or returned malformed data
        """
        if self.status == SyncStatus.READY:
            return

        self.status = SyncStatus.LOADING
        self.error = None
        logger.info(f"Loading menu data from {self.store.provider_name} store")

        try:
            branding_raw, branches_raw, categories_raw, dishes_raw = await self._join([
                self._call("GET", "/branding"),
                self._call("GET", "/branches"),
                self._call("GET", "/categories"),
                self._call("GET", "/dishes"),
            ])
            branding = BrandingConfig.model_validate(branding_raw)
            branches = [Branch.model_validate(b) for b in branches_raw]
            categories = ordering.sort_by_order(Category.model_validate(c) for c in categories_raw)
            dishes = [Dish.model_validate(d) for d in dishes_raw]
        except (TransportError, ValidationError, TypeError) as e:
            self.status = SyncStatus.ERROR
            self.error = f"Failed to load menu data: {e}"
            logger.error(self.error)
            raise InitError(self.error) from e

        self._set("branding", branding)
        self._set("branches", branches)
        self._set("categories", categories)
        self._set("dishes", dishes)
        self.status = SyncStatus.READY

        logger.info(
            f"Menu loaded: {len(branches)} branches, "
            f"{len(categories)} categories, {len(dishes)} dishes"
        )

    async def aclose(self) -> None:
        await self.store.aclose()

    # =========================================================================
    # BRANDING
    # =========================================================================

    async def update_branding(self, branding: BrandingConfig) -> BrandingConfig:
        """Replace the branding singleton."""
        self._require_ready()
        await self._mutate(
            "branding", branding, "PUT", "/branding", branding.to_wire(), "Saving branding"
        )
        return branding

    # =========================================================================
    # BRANCHES
    # =========================================================================

    async def add_branch(self, draft: BranchDraft) -> Branch:
        self._require_ready()
        placeholder = Branch.model_validate({**draft.model_dump(), "id": new_placeholder_id("branch")})
        body = draft.to_wire(exclude={"id"})

        response = await self._mutate(
            "branches", [*self._branches, placeholder], "POST", "/branches", body, "Adding branch"
        )
        created = await self._reconcile_created("branches", Branch, placeholder.id, body, response)
        logger.info(f"Branch created: {created.name} ({created.id})")
        return created

    async def update_branch(self, branch_id: str, data: Union[Branch, BranchDraft]) -> Branch:
        self._require_ready()
        self._require_stored(branch_id, "Branch")
        branch = Branch.model_validate({**data.model_dump(exclude={"id"}), "id": branch_id})

        await self._mutate(
            "branches",
            [branch if b.id == branch_id else b for b in self._branches],
            "PUT",
            f"/branches/{branch_id}",
            branch.to_wire(),
            f"Updating branch {branch_id}",
        )
        return branch

    async def delete_branch(self, branch_id: str) -> None:
        self._require_ready()
        self._require_stored(branch_id, "Branch")
        await self._mutate(
            "branches",
            [b for b in self._branches if b.id != branch_id],
            "DELETE",
            f"/branches/{branch_id}",
            None,
            f"Deleting branch {branch_id}",
        )

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def add_category(
        self,
        name: str,
        view_type: Union[CategoryViewType, str] = CategoryViewType.GRID,
    ) -> Category:
        """Append a category after the current last one."""
        self._require_ready()
        placeholder = Category(
            id=new_placeholder_id("category"),
            name=name,
            sort_order=ordering.next_sort_order(self._categories),
            view_type=CategoryViewType(view_type),
        )
        body = placeholder.to_wire(exclude={"id"})

        response = await self._mutate(
            "categories",
            [*self._categories, placeholder],
            "POST",
            "/categories",
            body,
            "Adding category",
        )
        created = await self._reconcile_created("categories", Category, placeholder.id, body, response)
        logger.info(f"Category created: {created.name} ({created.id}, sortOrder={created.sort_order})")
        return created

    async def update_category(self, category_id: str, data: Category) -> Category:
        self._require_ready()
        self._require_stored(category_id, "Category")
        category = data.model_copy(update={"id": category_id})

        await self._mutate(
            "categories",
            [category if c.id == category_id else c for c in self._categories],
            "PUT",
            f"/categories/{category_id}",
            category.to_wire(),
            f"Updating category {category_id}",
        )
        return category

    async def delete_category(self, category_id: str) -> None:
        """
        Delete a category together with all of its dishes.

        Memory is only changed once every remote delete has succeeded. If
        any of them fails, categories and dishes are re-read from the store
        since an unknown subset of the cascade may already be gone.
        """
        self._require_ready()
        self._require_stored(category_id, "Category")
        doomed = [d.id for d in self._dishes if d.category_id == category_id]

        try:
            await self._join([
                *(self._call("DELETE", f"/dishes/{dish_id}") for dish_id in doomed),
                self._call("DELETE", f"/categories/{category_id}"),
            ])
        except TransportError as e:
            logger.warning(f"Deleting category {category_id} failed, re-reading menu - {e}")
            await self._resync_after_failure("categories", "dishes")
            raise SyncError(f"Deleting category failed: {e.message}", cause=e) from e

        self._set("dishes", [d for d in self._dishes if d.category_id != category_id])
        self._set("categories", [c for c in self._categories if c.id != category_id])
        logger.info(f"Category {category_id} deleted with {len(doomed)} dishes")

    async def reorder_categories(self, reordered: Sequence[Category]) -> list[Category]:
        """
        Persist a new category order (e.g. after drag and drop).

        Each category gets its index as sortOrder; all PATCHes must succeed
        or the previous order is restored.

        Raises:
            ValueError: ``reordered`` is not a permutation of the categories
            SyncError: A PATCH failed (order rolled back)
        """
        self._require_ready()
        if sorted(c.id for c in reordered) != sorted(c.id for c in self._categories):
            raise ValueError("Reordered categories must contain every category exactly once")

        resequenced = ordering.resequence(list(reordered))
        snapshot = self._categories
        self._set("categories", resequenced)

        try:
            await self._join(
                self._call("PATCH", f"/categories/{c.id}", {"sortOrder": c.sort_order})
                for c in resequenced
            )
        except TransportError as e:
            self._set("categories", snapshot)
            logger.warning(f"Reordering categories failed, order rolled back - {e}")
            raise SyncError(f"Reordering categories failed: {e.message}", cause=e) from e

        return list(resequenced)

    # =========================================================================
    # DISHES
    # =========================================================================

    async def add_dish(self, draft: DishDraft, use_variants: Optional[bool] = None) -> Dish:
        """
        Append a dish at the end of its category.

        Args:
            draft: Dish fields (sortOrder is assigned here)
            use_variants: False for simple pricing, True for variant
                pricing, None to infer from ``draft.variants``
        """
        self._require_ready()
        priced = ordering.apply_variant_pricing(draft, use_variants)
        sort_order = ordering.next_sort_order(
            d for d in self._dishes if d.category_id == priced.category_id
        )
        placeholder = Dish.model_validate({
            **priced.model_dump(exclude={"id"}),
            "sort_order": sort_order,
            "id": new_placeholder_id("dish"),
        })
        body = placeholder.to_wire(exclude={"id"})

        response = await self._mutate(
            "dishes", [*self._dishes, placeholder], "POST", "/dishes", body, "Adding dish"
        )
        created = await self._reconcile_created("dishes", Dish, placeholder.id, body, response)
        logger.info(f"Dish created: {created.name} ({created.id}, price={created.price})")
        return created

    async def update_dish(
        self,
        dish_id: str,
        data: Union[Dish, DishDraft],
        use_variants: Optional[bool] = None,
    ) -> Dish:
        self._require_ready()
        self._require_stored(dish_id, "Dish")
        priced = ordering.apply_variant_pricing(data, use_variants)
        updates: dict[str, Any] = {"id": dish_id}
        current = next((d for d in self._dishes if d.id == dish_id), None)
        if current is not None and current.category_id != priced.category_id:
            # Moving to another category appends it there
            updates["sort_order"] = ordering.next_sort_order(
                d for d in self._dishes if d.category_id == priced.category_id
            )
        dish = Dish.model_validate({**priced.model_dump(exclude={"id"}), **updates})

        await self._mutate(
            "dishes",
            [dish if d.id == dish_id else d for d in self._dishes],
            "PUT",
            f"/dishes/{dish_id}",
            dish.to_wire(),
            f"Updating dish {dish_id}",
        )
        return dish

    async def delete_dish(self, dish_id: str) -> None:
        self._require_ready()
        self._require_stored(dish_id, "Dish")
        await self._mutate(
            "dishes",
            [d for d in self._dishes if d.id != dish_id],
            "DELETE",
            f"/dishes/{dish_id}",
            None,
            f"Deleting dish {dish_id}",
        )

    async def set_dish_active(self, dish_id: str, is_active: bool) -> None:
        """Show or hide a dish on the customer menu."""
        self._require_ready()
        self._require_stored(dish_id, "Dish")
        await self._mutate(
            "dishes",
            [d.model_copy(update={"is_active": is_active}) if d.id == dish_id else d for d in self._dishes],
            "PATCH",
            f"/dishes/{dish_id}",
            {"isActive": is_active},
            f"Toggling dish {dish_id}",
        )

    async def reorder_dishes(self, updated: Sequence[Dish]) -> None:
        """
        Persist new sortOrder values for a batch of dishes.

        Only ``sort_order`` is taken from ``updated``. Applied immediately
        and rolled back if any PATCH fails.

        Raises:
            ValueError: Unknown dish, or duplicate sortOrder within a category
            SyncError: A dish is still being saved (no I/O), or a PATCH
                failed (order rolled back)
        """
        self._require_ready()
        new_orders = {d.id: d.sort_order for d in updated}
        for dish_id in new_orders:
            self._require_stored(dish_id, "Dish")
        known = {d.id for d in self._dishes}
        unknown = set(new_orders) - known
        if unknown:
            raise ValueError(f"Unknown dishes: {sorted(unknown)}")

        merged = [
            d.model_copy(update={"sort_order": new_orders[d.id]}) if d.id in new_orders else d
            for d in self._dishes
        ]
        touched = {d.category_id for d in merged if d.id in new_orders}
        for category_id in touched:
            if not ordering.has_unique_sort_orders(d for d in merged if d.category_id == category_id):
                raise ValueError(f"Duplicate sortOrder in category {category_id}")

        snapshot = self._dishes
        self._set("dishes", merged)
        try:
            await self._join(
                self._call("PATCH", f"/dishes/{dish_id}", {"sortOrder": order})
                for dish_id, order in new_orders.items()
            )
        except TransportError as e:
            self._set("dishes", snapshot)
            logger.warning(f"Reordering dishes failed, order rolled back - {e}")
            raise SyncError(f"Reordering dishes failed: {e.message}", cause=e) from e

    async def move_dish(self, dish_id: str, direction: Union[MoveDirection, str]) -> bool:
        """
        Move a dish one slot up or down within its category.

        The new values are written first and the dish collection is then
        re-read from the store.

        Returns:
            False when there was nothing to move (unknown dish, first/last)

        Raises:
            SyncError: A dish whose sortOrder would change is still being
                saved (no I/O), or a PATCH failed (dishes re-read)
        """
        self._require_ready()
        changes = ordering.plan_dish_move(self._dishes, dish_id, direction)
        if not changes:
            logger.debug(f"Dish {dish_id} cannot move {MoveDirection(direction).value}")
            return False
        for changed_id in changes:
            self._require_stored(changed_id, "Dish")

        try:
            await self._join(
                self._call("PATCH", f"/dishes/{changed_id}", {"sortOrder": order})
                for changed_id, order in changes.items()
            )
        except TransportError as e:
            logger.warning(f"Moving dish {dish_id} failed, re-reading dishes - {e}")
            await self._resync_after_failure("dishes")
            raise SyncError(f"Moving dish failed: {e.message}", cause=e) from e

        try:
            await self._refetch("dishes")
        except (TransportError, ValidationError) as e:
            logger.warning(f"Re-reading dishes after move failed, applying move locally - {e}")
            self._set("dishes", [
                d.model_copy(update={"sort_order": changes[d.id]}) if d.id in changes else d
                for d in self._dishes
            ])
        return True

    # =========================================================================
    # PROJECTIONS
    # =========================================================================

    def get_dishes_by_category(self, category_id: str) -> list[Dish]:
        """Active dishes of a category in display order. No I/O."""
        return ordering.dishes_by_category(self._dishes, category_id)

    def get_menu_for_branch(self, category_id: str, branch_id: str) -> list[Dish]:
        return ordering.menu_for_branch(self._dishes, category_id, branch_id)
