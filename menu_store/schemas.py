"""
Pydantic Schemas for the Menu Entities

The REST store speaks camelCase JSON (``sortOrder``, ``categoryId``);
attributes here are snake_case and the wire names are generated aliases.
Entities are treated as immutable values: changes go through
``model_copy(update=...)`` so that snapshots taken before a mutation are
never affected by it.

Version: 1.0.0
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MenuModel(BaseModel):
    """Base model: camelCase aliases, numeric ids accepted as strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_wire(self, exclude: Optional[set] = None) -> dict[str, Any]:
        """Serialize to the JSON document shape the store expects."""
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


# =============================================================================
# ENUMS
# =============================================================================

class CategoryViewType(str, Enum):
    GRID = "grid"
    LIST = "list"


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


# =============================================================================
# BRANDING
# =============================================================================

class BrandingConfig(MenuModel):
    """Singleton restaurant branding, replaced wholesale on save."""
    restaurant_name: str = Field(..., min_length=1, examples=["Osh Markazi"])
    slogan: Optional[str] = None
    logo_url: str = ""
    background_image_url: Optional[str] = None
    header_image_url: Optional[str] = None

    # Theme colours
    primary_color: str = "#f97316"
    background_color: str = "#f9fafb"
    card_color: str = "#ffffff"
    text_color: str = "#111827"
    muted_color: str = "#6b7280"
    accent_color: str = "#10b981"

    # Text overrides
    welcome_text: Optional[str] = None
    menu_title: Optional[str] = None
    footer_text: Optional[str] = None


# =============================================================================
# BRANCHES
# =============================================================================

class BranchDraft(MenuModel):
    """Branch fields as submitted by the admin panel."""
    name: str = Field(..., min_length=1, examples=["Chilonzor"])
    address: str = ""
    phone: str = ""
    custom_color: Optional[str] = None
    logo_url: Optional[str] = None


class Branch(BranchDraft):
    id: str


# =============================================================================
# CATEGORIES
# =============================================================================

class Category(MenuModel):
    id: str
    name: str = Field(..., min_length=1, examples=["Drinks"])
    sort_order: int = 0
    view_type: CategoryViewType = CategoryViewType.GRID


# =============================================================================
# DISHES
# =============================================================================

class DishVariant(MenuModel):
    """A priced size/portion of a dish (e.g. 0.5L / 1L)."""
    name: str
    price: float = Field(..., ge=0)


class DishDraft(MenuModel):
    """Dish fields as submitted by the admin panel, without an id."""
    category_id: str
    name: str = Field(..., min_length=1, examples=["Plov"])
    description: str = ""
    price: float = Field(default=0.0, ge=0)
    image_urls: List[str] = Field(default_factory=list)
    variants: List[DishVariant] = Field(default_factory=list)
    badges: List[str] = Field(default_factory=list)
    is_active: bool = True
    is_featured: bool = False
    available_branch_ids: List[str] = Field(default_factory=list)
    sort_order: int = 0

    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0


class Dish(DishDraft):
    id: str


# =============================================================================
# ADMIN SESSION
# =============================================================================

class UserInfo(MenuModel):
    """The signed-in admin, as remembered between sessions."""
    name: str
    username: str
