# backEnd/app/services/menu_service.py

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import NotFoundError, ValidationFailedError
from ..models.enums import ENTITY_ITEM_TYPES, LINK_ITEM_TYPES, MenuItemTypeEnum
from ..models.menu import Menu, MenuItem, build_cache_key
from ..schemas.menu import (
    MenuCreate,
    MenuDetail,
    MenuInDB,
    MenuItemCreate,
    MenuItemUpdate,
    MenuUpdate,
    PublicMenu,
    PublicMenuSummary,
    ReorderItem,
)
from ..utils.pagination import paginate
from ..utils.slug_utils import handle_slug
from .cache_service import CacheService
from .menu_tree import MAX_TREE_DEPTH, build_tree, collect_descendant_ids, index_children

logger = logging.getLogger(__name__)

UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

# Patrón de las respuestas públicas de menús guardadas en el almacén clave-valor
PUBLIC_MENUS_PATTERN = "public:/menus*"


def validate_item_contract(item_type, reference: Optional[str], url: Optional[str]) -> List[str]:
    """
    Reglas tipo/reference/url de un ítem. Devuelve la lista de errores (vacía si es válido).
    """
    errors = []
    item_type = MenuItemTypeEnum(item_type)

    if item_type in ENTITY_ITEM_TYPES and not reference:
        errors.append(f"Se requiere 'reference' (slug) para ítems de tipo {item_type.value}.")

    if item_type in LINK_ITEM_TYPES:
        if not url:
            errors.append(f"Se requiere 'url' para ítems de tipo {item_type.value}.")
        elif item_type == MenuItemTypeEnum.external_link and not url.startswith(("http://", "https://")):
            errors.append("Los enlaces externos deben comenzar con http:// o https://.")

    return errors


class MenuService:
    """
    Árbol de menú relacional + proyección JSON cacheada.

    Toda mutación de ítems (alta, edición, baja, reordenamiento) termina
    regenerando el caché del menú, que incrementa `version` y recalcula
    `cache_key` en la misma escritura.
    """

    def __init__(self, db: Session, cache: Optional[CacheService] = None):
        self.db = db
        self.cache = cache

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error al {action}: {e}", exc_info=True)
            raise

    def _invalidate_public_cache(self) -> None:
        if self.cache is not None:
            self.cache.invalidate_pattern(PUBLIC_MENUS_PATTERN)

    @staticmethod
    def _identifier_filter(identifier: str):
        if UUID_RE.match(identifier):
            return Menu.id == identifier
        return Menu.slug == identifier

    def _get_menu_or_404(self, menu_id: str) -> Menu:
        menu = self.db.query(Menu).filter(Menu.id == menu_id).first()
        if menu is None:
            raise NotFoundError(detail="Menú no encontrado.")
        return menu

    def _get_item_or_404(self, menu_id: str, item_id: str) -> MenuItem:
        item = self.db.query(MenuItem).filter(MenuItem.id == item_id, MenuItem.menu_id == menu_id).first()
        if item is None:
            raise NotFoundError(detail="Ítem de menú no encontrado.")
        return item

    def _menu_items(self, menu_id: str) -> List[MenuItem]:
        return self.db.query(MenuItem).filter(MenuItem.menu_id == menu_id).all()

    def _check_contract(self, item_type, reference, url) -> None:
        errors = validate_item_contract(item_type, reference, url)
        if errors:
            raise ValidationFailedError(detail=errors)

    def _check_parent(self, menu_id: str, parent_id: str, moving_item: Optional[MenuItem] = None) -> None:
        parent = self.db.query(MenuItem).filter(MenuItem.id == parent_id).first()
        if parent is None or parent.menu_id != menu_id:
            raise ValidationFailedError(detail="El ítem padre no pertenece a este menú.")
        if moving_item is None:
            return
        if parent.id == moving_item.id:
            raise ValidationFailedError(detail="Un ítem no puede ser su propio padre.")
        if parent.id in collect_descendant_ids(self._menu_items(menu_id), moving_item.id):
            raise ValidationFailedError(detail="Un ítem no puede moverse debajo de uno de sus descendientes.")

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------
    def list_menus(
        self,
        page: int = 1,
        per_page: int = 10,
        position: Optional[str] = None,
        is_published: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Listado admin (incluye no publicados) con cantidad de ítems por menú."""
        query = self.db.query(Menu)
        if position:
            query = query.filter(Menu.position == position)
        if is_published is not None:
            query = query.filter(Menu.is_published == is_published)

        total = query.count()
        skip, limit = paginate(page, per_page)
        menus = query.order_by(Menu.created_at.desc()).offset(skip).limit(limit).all()

        counts = {}
        if menus:
            counts = dict(
                self.db.query(MenuItem.menu_id, func.count(MenuItem.id))
                .filter(MenuItem.menu_id.in_([m.id for m in menus]))
                .group_by(MenuItem.menu_id)
                .all()
            )

        items = [
            {**MenuInDB.model_validate(menu).model_dump(), "items_count": counts.get(menu.id, 0)}
            for menu in menus
        ]
        return {"items": items, "total": total, "page": page, "per_page": limit}

    def list_public_menus(self, page: int = 1, per_page: int = 10, position: Optional[str] = None) -> Dict[str, Any]:
        query = self.db.query(Menu).filter(Menu.is_published.is_(True))
        if position:
            query = query.filter(Menu.position == position)

        total = query.count()
        skip, limit = paginate(page, per_page)
        menus = query.order_by(Menu.created_at.desc()).offset(skip).limit(limit).all()
        items = [PublicMenuSummary.model_validate(menu) for menu in menus]
        return {"items": items, "total": total, "page": page, "per_page": limit}

    def _detail(self, menu: Menu) -> MenuDetail:
        # Árbol en vivo: incluye ítems no publicados
        tree = build_tree(self._menu_items(menu.id), published_only=False)
        return MenuDetail(**MenuInDB.model_validate(menu).model_dump(), items=tree)

    @staticmethod
    def _public(menu: Menu) -> PublicMenu:
        return PublicMenu(
            **PublicMenuSummary.model_validate(menu).model_dump(),
            cache_key=menu.cache_key,
            items=menu.items_cache or [],
        )

    def get_menu(self, identifier: str) -> MenuDetail:
        """Menú por id o slug con el árbol relacional completo (sin caché)."""
        menu = self.db.query(Menu).filter(self._identifier_filter(identifier)).first()
        if menu is None:
            raise NotFoundError(detail="Menú no encontrado.")
        return self._detail(menu)

    def get_public_menu(self, identifier: str) -> Optional[PublicMenu]:
        """Menú publicado por id o slug, leído del caché JSON. None si no existe o no está publicado."""
        menu = (
            self.db.query(Menu)
            .filter(Menu.is_published.is_(True), self._identifier_filter(identifier))
            .first()
        )
        if menu is None:
            return None
        return self._public(menu)

    def get_menu_by_position(self, position: str, use_cache: bool = True):
        if use_cache:
            menu = (
                self.db.query(Menu)
                .filter(Menu.position == position, Menu.is_published.is_(True))
                .order_by(Menu.created_at.asc())
                .first()
            )
            return self._public(menu) if menu else None

        menu = self.db.query(Menu).filter(Menu.position == position).order_by(Menu.created_at.asc()).first()
        if menu is None:
            raise NotFoundError(detail=f"No hay menú para la posición '{position}'.")
        return self._detail(menu)

    def get_public_item(self, slug: str) -> Optional[MenuItem]:
        """
        Ítem publicado por slug dentro de un menú publicado.
        Si algún ancestro no está publicado el ítem tampoco es visible, y los
        ítems por debajo de MAX_TREE_DEPTH no se exponen (no están en el caché).
        """
        item = (
            self.db.query(MenuItem)
            .join(Menu, Menu.id == MenuItem.menu_id)
            .filter(MenuItem.slug == slug, MenuItem.is_published.is_(True), Menu.is_published.is_(True))
            .first()
        )
        if item is None:
            return None

        depth = 1
        ancestor = item.parent
        while ancestor is not None:
            depth += 1
            if depth > MAX_TREE_DEPTH or not ancestor.is_published:
                return None
            ancestor = ancestor.parent
        return item

    # ------------------------------------------------------------------
    # Menús
    # ------------------------------------------------------------------
    def create_menu(self, data: MenuCreate) -> Menu:
        slug = handle_slug(self.db, Menu, data.name, data.slug)
        menu = Menu(
            name=data.name,
            slug=slug,
            position=data.position,
            description=data.description,
            is_published=data.is_published,
            version=1,
            cache_key=build_cache_key(slug, 1),
            items_cache=[],
        )
        self.db.add(menu)
        self._commit("crear el menú")
        self.db.refresh(menu)
        self._invalidate_public_cache()
        logger.info(f"Menú creado: {menu.slug} ({menu.id})")
        return menu

    def update_menu(self, menu_id: str, data: MenuUpdate) -> Menu:
        """
        Actualiza metadatos. No reconstruye el árbol; solo un cambio de slug
        incrementa la versión y recalcula cache_key.
        """
        menu = self._get_menu_or_404(menu_id)
        update_data = data.model_dump(exclude_unset=True)

        new_slug = update_data.pop("slug", None)
        if new_slug is not None:
            new_slug = handle_slug(self.db, Menu, update_data.get("name", menu.name), new_slug, exclude_id=menu.id)

        for field, value in update_data.items():
            if field in ("name", "is_published") and value is None:
                continue
            setattr(menu, field, value)

        if new_slug is not None and new_slug != menu.slug:
            menu.slug = new_slug
            menu.version = menu.version + 1
            menu.cache_key = build_cache_key(new_slug, menu.version)

        self._commit("actualizar el menú")
        self.db.refresh(menu)
        self._invalidate_public_cache()
        return menu

    def delete_menu(self, menu_id: str) -> None:
        menu = self._get_menu_or_404(menu_id)
        self.db.delete(menu)
        self._commit("eliminar el menú")
        self._invalidate_public_cache()
        logger.info(f"Menú eliminado: {menu_id}")

    def duplicate_menu(self, menu_id: str, new_name: Optional[str] = None, new_slug: Optional[str] = None) -> Menu:
        """Copia el menú (sin publicar) con todo su árbol de ítems y regenera el caché de la copia."""
        original = self._get_menu_or_404(menu_id)
        name = new_name or f"{original.name} (Copy)"
        slug = handle_slug(self.db, Menu, name, new_slug or f"{original.slug}-copy")

        duplicate = Menu(
            name=name,
            slug=slug,
            position=original.position,
            description=original.description,
            is_published=False,
            version=1,
            cache_key=build_cache_key(slug, 1),
            items_cache=[],
        )
        self.db.add(duplicate)
        self.db.flush()

        index = index_children(self._menu_items(original.id))

        def copy_level(parent_id: Optional[str], new_parent_id: Optional[str]) -> None:
            for item in index.get(parent_id, []):
                clone = MenuItem(
                    menu_id=duplicate.id,
                    parent_id=new_parent_id,
                    title=item.title,
                    slug=handle_slug(self.db, MenuItem, item.title, item.slug),
                    type=item.type,
                    reference=item.reference,
                    url=item.url,
                    icon=item.icon,
                    target=item.target,
                    css_class=item.css_class,
                    order=item.order,
                    is_published=item.is_published,
                    meta=item.meta,
                )
                self.db.add(clone)
                self.db.flush()
                copy_level(item.id, clone.id)

        try:
            copy_level(None, None)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error al duplicar el menú {menu_id}: {e}", exc_info=True)
            raise

        self._commit("duplicar el menú")
        return self.regenerate_cache(duplicate.id)

    # ------------------------------------------------------------------
    # Ítems
    # ------------------------------------------------------------------
    def add_item(self, menu_id: str, data: MenuItemCreate) -> MenuItem:
        menu = self._get_menu_or_404(menu_id)
        fields = data.model_dump()
        self._check_contract(fields["type"], fields.get("reference"), fields.get("url"))
        if fields.get("parent_id") is not None:
            self._check_parent(menu.id, fields["parent_id"])

        fields["slug"] = handle_slug(self.db, MenuItem, data.title, data.slug)
        item = MenuItem(menu_id=menu.id, **fields)
        self.db.add(item)
        self._commit("crear el ítem de menú")
        self.db.refresh(item)

        self.regenerate_cache(menu.id)
        return item

    def update_item(self, menu_id: str, item_id: str, data: MenuItemUpdate) -> MenuItem:
        item = self._get_item_or_404(menu_id, item_id)
        changes = data.model_dump(exclude_unset=True)

        # Se valida el estado final resultante, no solo los campos enviados
        self._check_contract(
            changes.get("type") or item.type,
            changes["reference"] if "reference" in changes else item.reference,
            changes["url"] if "url" in changes else item.url,
        )

        if changes.get("parent_id") is not None:
            self._check_parent(menu_id, changes["parent_id"], moving_item=item)

        if changes.get("slug") is not None or changes.get("title") is not None:
            changes["slug"] = handle_slug(
                self.db,
                MenuItem,
                changes.get("title") or item.title,
                changes.get("slug"),
                exclude_id=item.id,
            )

        for field, value in changes.items():
            if field in ("title", "slug", "type", "target", "order", "is_published") and value is None:
                continue
            setattr(item, field, value)

        self._commit("actualizar el ítem de menú")
        self.db.refresh(item)

        self.regenerate_cache(menu_id)
        return item

    def delete_item(self, menu_id: str, item_id: str) -> None:
        item = self._get_item_or_404(menu_id, item_id)
        # La relación children borra los descendientes en cascada
        self.db.delete(item)
        self._commit("eliminar el ítem de menú")

        self.regenerate_cache(menu_id)

    def reorder_items(self, menu_id: str, rows: Iterable[ReorderItem]) -> Menu:
        menu = self._get_menu_or_404(menu_id)
        rows = list(rows)

        items = {
            item.id: item
            for item in self.db.query(MenuItem).filter(MenuItem.id.in_([row.id for row in rows])).all()
        }
        missing = [row.id for row in rows if row.id not in items]
        if missing:
            raise NotFoundError(detail=f"Ítems de menú no encontrados: {', '.join(missing)}")

        foreign = [row.id for row in rows if items[row.id].menu_id != menu.id]
        if foreign:
            raise ValidationFailedError(detail=f"Los ítems {', '.join(foreign)} no pertenecen a este menú.")

        for row in rows:
            item = items[row.id]
            if "parent_id" in row.model_fields_set:
                if row.parent_id is not None:
                    self._check_parent(menu.id, row.parent_id, moving_item=item)
                item.parent_id = row.parent_id
            item.order = row.order

        self._commit("reordenar los ítems del menú")
        return self.regenerate_cache(menu.id)

    # ------------------------------------------------------------------
    # Proyección cacheada
    # ------------------------------------------------------------------
    def regenerate_cache(self, menu_id: str) -> Menu:
        """
        Relee el árbol publicado, lo serializa y lo guarda en items_cache junto
        con version+1, el nuevo cache_key y last_cached, en una sola escritura.
        """
        menu = self._get_menu_or_404(menu_id)
        tree = build_tree(self._menu_items(menu.id), published_only=True)

        new_version = (menu.version or 0) + 1
        menu.items_cache = tree
        menu.version = new_version
        menu.cache_key = build_cache_key(menu.slug, new_version)
        menu.last_cached = datetime.now(timezone.utc)

        self._commit(f"regenerar el caché del menú {menu_id}")
        self.db.refresh(menu)
        self._invalidate_public_cache()
        logger.info(f"Caché regenerado para el menú {menu.slug}: v{new_version}")
        return menu

    def regenerate_all_caches(self) -> int:
        menu_ids = [menu_id for (menu_id,) in self.db.query(Menu.id).all()]
        for menu_id in menu_ids:
            self.regenerate_cache(menu_id)
        logger.info(f"Caché regenerado para {len(menu_ids)} menús")
        return len(menu_ids)
