# backEnd/app/schemas/menu.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.enums import MenuItemTypeEnum, MenuItemTargetEnum
from ..utils.slug_utils import SLUG_PATTERN
from .pagination import Pagination


def _check_slug_format(value: Optional[str]) -> Optional[str]:
    if value is not None and not SLUG_PATTERN.match(value):
        raise ValueError("Formato de slug inválido (solo minúsculas, números y guiones).")
    return value


# --- Menú ---
class MenuBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = None
    description: Optional[str] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _check_slug_format(value)


class MenuCreate(MenuBase):
    is_published: bool = False


class MenuUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = None
    description: Optional[str] = None
    is_published: Optional[bool] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _check_slug_format(value)


class MenuDuplicate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _check_slug_format(value)


class MenuInDB(BaseModel):
    id: str
    name: str
    slug: str
    position: Optional[str] = None
    description: Optional[str] = None
    is_published: bool
    version: int
    cache_key: str
    last_cached: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MenuSummary(MenuInDB):
    items_count: int = 0


class MenuPagination(Pagination[MenuSummary]):
    """Esquema para la respuesta paginada de menús (admin)."""
    pass


class PublicMenuSummary(BaseModel):
    id: str
    name: str
    slug: str
    position: Optional[str] = None
    description: Optional[str] = None
    version: int

    model_config = ConfigDict(from_attributes=True)


class PublicMenuPagination(Pagination[PublicMenuSummary]):
    pass


class PublicMenu(PublicMenuSummary):
    """Menú publicado con su árbol cacheado (forma persistida en items_cache)."""
    cache_key: str
    items: List[Dict[str, Any]] = Field(default_factory=list)


class MenuDetail(MenuInDB):
    """Menú con su árbol relacional en vivo (admin), en la misma forma que el caché."""
    items: List[Dict[str, Any]] = Field(default_factory=list)


# --- Ítems de menú ---
class MenuItemCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    type: MenuItemTypeEnum
    reference: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None
    target: MenuItemTargetEnum = MenuItemTargetEnum.self_
    css_class: Optional[str] = None
    parent_id: Optional[str] = None
    order: int = Field(0, ge=0)
    is_published: bool = True
    meta: Optional[Any] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _check_slug_format(value)


class MenuItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[MenuItemTypeEnum] = None
    reference: Optional[str] = None
    url: Optional[str] = None
    icon: Optional[str] = None
    target: Optional[MenuItemTargetEnum] = None
    css_class: Optional[str] = None
    parent_id: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)
    is_published: Optional[bool] = None
    meta: Optional[Any] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value):
        return _check_slug_format(value)


class MenuItemInDB(BaseModel):
    id: str
    menu_id: str
    parent_id: Optional[str] = None
    title: str
    slug: str
    type: MenuItemTypeEnum
    reference: Optional[str] = None
    url: Optional[str] = None
    href: Optional[str] = None  # URL navegable efectiva
    icon: Optional[str] = None
    target: MenuItemTargetEnum
    css_class: Optional[str] = None
    order: int
    is_published: bool
    meta: Optional[Any] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReorderItem(BaseModel):
    id: str
    order: int = Field(..., ge=0)
    parent_id: Optional[str] = None


class ReorderRequest(BaseModel):
    items: List[ReorderItem] = Field(..., min_length=1)


class RegenerateCacheResult(BaseModel):
    regenerated: int
