# backEnd/app/models/menu.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from .base import Base
from .enums import MenuItemTypeEnum, MenuItemTargetEnum

# JSONB en PostgreSQL, JSON genérico en el resto de motores (SQLite en pruebas)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_cache_key(slug: str, version: int) -> str:
    """Clave de generación de caché de un menú: `menu:{slug}:v{version}`."""
    return f"menu:{slug}:v{version}"


class Menu(Base):
    __tablename__ = 'menus'

    id = Column(String(36), primary_key=True, default=_new_uuid)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), nullable=False, unique=True, index=True)
    position = Column(String(50), nullable=True, index=True)  # 'header', 'footer', ...
    description = Column(Text, nullable=True)
    is_published = Column(Boolean, nullable=False, default=False)

    # Proyección desnormalizada del árbol publicado
    version = Column(Integer, nullable=False, default=1)
    cache_key = Column(String(200), nullable=False)
    items_cache = Column(JSONType, nullable=False, default=list)
    last_cached = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Todos los ítems del menú (cualquier nivel); al borrar el menú se borran en cascada
    items = relationship(
        "MenuItem",
        back_populates="menu",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Menu(id={self.id}, slug='{self.slug}', version={self.version})>"


class MenuItem(Base):
    __tablename__ = 'menu_items'

    id = Column(String(36), primary_key=True, default=_new_uuid)
    menu_id = Column(String(36), ForeignKey('menus.id', ondelete='CASCADE'), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=True, index=True)

    title = Column(String(200), nullable=False)
    slug = Column(String(120), nullable=False, unique=True, index=True)
    type = Column(
        Enum(MenuItemTypeEnum, name="menuitemtype", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    reference = Column(String(200), nullable=True)  # slug de la entidad referenciada
    url = Column(String(500), nullable=True)
    icon = Column(String(100), nullable=True)
    target = Column(
        Enum(MenuItemTargetEnum, name="menuitemtarget", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=MenuItemTargetEnum.self_,
    )
    css_class = Column(String(200), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)
    meta = Column(JSONType, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    menu = relationship("Menu", back_populates="items")
    parent = relationship("MenuItem", remote_side=[id], back_populates="children")
    # Al borrar un ítem se borran también sus descendientes
    children = relationship(
        "MenuItem",
        back_populates="parent",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<MenuItem(id={self.id}, slug='{self.slug}', parent_id={self.parent_id})>"
