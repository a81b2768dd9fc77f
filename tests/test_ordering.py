"""Tests for sortOrder helpers, variant pricing and menu projections."""

import pytest

from menu_store.exceptions import InvalidDishError
from menu_store.schemas import Category, Dish, DishDraft, DishVariant
from menu_store.services import ordering


def make_dish(dish_id: str, category_id: str = "c1", sort_order: int = 0, **extra) -> Dish:
    return Dish(id=dish_id, category_id=category_id, name=dish_id, sort_order=sort_order, **extra)


# ============== sortOrder ==============

def test_sort_by_order_keeps_insertion_order_for_ties():
    dishes = [make_dish("a", sort_order=1), make_dish("b", sort_order=0), make_dish("c", sort_order=1)]

    assert [d.id for d in ordering.sort_by_order(dishes)] == ["b", "a", "c"]


def test_next_sort_order():
    categories = [Category(id="x", name="X", sort_order=0), Category(id="y", name="Y", sort_order=1)]

    assert ordering.next_sort_order(categories) == 2
    assert ordering.next_sort_order([]) == 0


def test_resequence_assigns_indexes():
    categories = [
        Category(id="b", name="B", sort_order=5),
        Category(id="a", name="A", sort_order=5),
        Category(id="c", name="C", sort_order=0),
    ]

    result = ordering.resequence(categories)

    assert [(c.id, c.sort_order) for c in result] == [("b", 0), ("a", 1), ("c", 2)]
    # Inputs are left untouched
    assert categories[0].sort_order == 5


# ============== Dish moves ==============

def test_plan_dish_move_swaps_neighbours_within_category():
    dishes = [
        make_dish("d1", sort_order=0),
        make_dish("other", category_id="c2", sort_order=1),
        make_dish("d2", sort_order=3),
        make_dish("d3", sort_order=7),
    ]

    assert ordering.plan_dish_move(dishes, "d3", "up") == {"d3": 3, "d2": 7}
    assert ordering.plan_dish_move(dishes, "d1", "down") == {"d1": 3, "d2": 0}


def test_plan_dish_move_at_edges_is_noop():
    dishes = [make_dish("d1", sort_order=0), make_dish("d2", sort_order=1)]

    assert ordering.plan_dish_move(dishes, "d1", "up") is None
    assert ordering.plan_dish_move(dishes, "d2", "down") is None
    assert ordering.plan_dish_move(dishes, "missing", "up") is None


def test_plan_dish_move_with_ties_renumbers_category():
    dishes = [make_dish("t1"), make_dish("t2"), make_dish("t3")]

    changes = ordering.plan_dish_move(dishes, "t3", "up")

    assert changes == {"t3": 1, "t2": 2}
    final = {d.id: changes.get(d.id, d.sort_order) for d in dishes}
    assert sorted(final.values()) == [0, 1, 2]


def test_plan_dish_move_rejects_unknown_direction():
    with pytest.raises(ValueError):
        ordering.plan_dish_move([make_dish("d1")], "d1", "sideways")


# ============== Variant pricing ==============

def test_variant_price_is_minimum():
    draft = DishDraft(
        category_id="c1",
        name="Cola",
        price=99999,
        variants=[DishVariant(name="1L", price=25000), DishVariant(name="0.5L", price=15000)],
    )

    assert ordering.apply_variant_pricing(draft).price == 15000


def test_simple_pricing_clears_variants():
    draft = DishDraft(
        category_id="c1",
        name="Cola",
        price=12000,
        variants=[DishVariant(name="1L", price=25000)],
    )

    priced = ordering.apply_variant_pricing(draft, use_variants=False)

    assert priced.variants == []
    assert priced.price == 12000


def test_variant_pricing_without_variants_is_rejected():
    draft = DishDraft(category_id="c1", name="Cola", price=12000)

    with pytest.raises(InvalidDishError):
        ordering.apply_variant_pricing(draft, use_variants=True)


# ============== Projections ==============

def test_dishes_by_category_filters_inactive_and_sorts():
    dishes = [
        make_dish("late", sort_order=2),
        make_dish("hidden", sort_order=0, is_active=False),
        make_dish("early", sort_order=1),
        make_dish("elsewhere", category_id="c2"),
    ]

    assert [d.id for d in ordering.dishes_by_category(dishes, "c1")] == ["early", "late"]


@pytest.mark.parametrize(
    "branch_ids, branch, expected",
    [
        ([], "b1", True),
        (["b1", "b2"], "b2", True),
        (["b1"], "b2", False),
    ],
)
def test_is_available(branch_ids, branch, expected):
    dish = make_dish("d", available_branch_ids=branch_ids)

    assert ordering.is_available(dish, branch) is expected


def test_menu_for_branch():
    dishes = [
        make_dish("everywhere", sort_order=0),
        make_dish("only_b2", sort_order=1, available_branch_ids=["b2"]),
    ]

    assert [d.id for d in ordering.menu_for_branch(dishes, "c1", "b1")] == ["everywhere"]
    assert [d.id for d in ordering.menu_for_branch(dishes, "c1", "b2")] == ["everywhere", "only_b2"]
