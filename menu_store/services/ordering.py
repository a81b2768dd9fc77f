"""
Ordering Helpers and Menu Projections

Pure functions over entity lists. Nothing here performs I/O or keeps
state, so the synchronizer and any presentation code can share them.

    - sortOrder bookkeeping (next value, dense resequencing, dish moves)
    - Variant price derivation for dish payloads
    - Category / branch projections of the dish collection

Version: 1.0.0
"""

from typing import Iterable, Optional, Sequence, TypeVar, Union

from menu_store.exceptions import InvalidDishError
from menu_store.schemas import Category, Dish, DishDraft, MoveDirection

Ordered = TypeVar("Ordered", Category, Dish)
DraftT = TypeVar("DraftT", DishDraft, Dish)


# =============================================================================
# SORT ORDER
# =============================================================================

def sort_by_order(items: Iterable[Ordered]) -> list[Ordered]:
    """Ascending by sortOrder; ties keep their original (insertion) order."""
    return sorted(items, key=lambda item: item.sort_order)


def next_sort_order(items: Iterable[Ordered]) -> int:
    """Slot after the current last item, 0 for an empty scope."""
    orders = [item.sort_order for item in items]
    return max(orders) + 1 if orders else 0


def resequence(items: Sequence[Ordered]) -> list[Ordered]:
    """Copies of ``items`` with sortOrder set to their index."""
    return [
        item if item.sort_order == index else item.model_copy(update={"sort_order": index})
        for index, item in enumerate(items)
    ]


def has_unique_sort_orders(items: Iterable[Ordered]) -> bool:
    orders = [item.sort_order for item in items]
    return len(orders) == len(set(orders))


def dishes_in_category(dishes: Iterable[Dish], category_id: str) -> list[Dish]:
    """All dishes of a category, active or not, in display order."""
    return sort_by_order(d for d in dishes if d.category_id == category_id)


def plan_dish_move(
    dishes: Sequence[Dish],
    dish_id: str,
    direction: Union[MoveDirection, str],
) -> Optional[dict[str, int]]:
    """
    Work out the sortOrder changes for moving a dish one slot.

    The move is scoped to the dish's category. When the category's
    sortOrder values are unique the two dishes simply swap values.
    Otherwise the whole category is renumbered densely with the move
    applied, so the values end up unique.

    Args:
        dishes: Full dish collection
        dish_id: Dish to move
        direction: "up" (towards index 0) or "down"

    Returns:
        Mapping of dish id to new sortOrder, or None when there is
        nothing to do (unknown dish, or already first/last)
    """
    direction = MoveDirection(direction)
    target = next((d for d in dishes if d.id == dish_id), None)
    if target is None:
        return None

    siblings = dishes_in_category(dishes, target.category_id)
    current = next(i for i, d in enumerate(siblings) if d.id == dish_id)
    destination = current - 1 if direction == MoveDirection.UP else current + 1
    if destination < 0 or destination >= len(siblings):
        return None

    adjacent = siblings[destination]
    if has_unique_sort_orders(siblings):
        return {
            target.id: adjacent.sort_order,
            adjacent.id: target.sort_order,
        }

    siblings[current], siblings[destination] = siblings[destination], siblings[current]
    return {
        dish.id: index
        for index, dish in enumerate(siblings)
        if dish.sort_order != index
    }


# =============================================================================
# PRICING
# =============================================================================

def apply_variant_pricing(dish: DraftT, use_variants: Optional[bool] = None) -> DraftT:
    """
    Keep ``price`` in sync with ``variants``.

    Args:
        dish: Payload about to be written
        use_variants: False for simple pricing (variants are dropped),
            True for variant pricing, None to infer from the payload

    Returns:
        A copy with price = min(variant prices), or with variants cleared

    Raises:
        InvalidDishError: Variant pricing requested without any variant
    """
    if use_variants is None:
        use_variants = dish.has_variants

    if not use_variants:
        if not dish.variants:
            return dish
        return dish.model_copy(update={"variants": []})

    if not dish.variants:
        raise InvalidDishError("Variant pricing needs at least one variant")

    return dish.model_copy(update={"price": min(v.price for v in dish.variants)})


# =============================================================================
# PROJECTIONS
# =============================================================================

def dishes_by_category(dishes: Iterable[Dish], category_id: str) -> list[Dish]:
    """Active dishes of a category in display order."""
    return sort_by_order(
        d for d in dishes if d.category_id == category_id and d.is_active
    )


def is_available(dish: Dish, branch_id: str) -> bool:
    """No branch restriction means every branch serves the dish."""
    if not dish.available_branch_ids:
        return True
    return branch_id in dish.available_branch_ids


def menu_for_branch(dishes: Iterable[Dish], category_id: str, branch_id: str) -> list[Dish]:
    """What a customer at ``branch_id`` sees under one category."""
    return [d for d in dishes_by_category(dishes, category_id) if is_available(d, branch_id)]
