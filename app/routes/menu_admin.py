# backEnd/app/routes/menu_admin.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path, Response
from sqlalchemy.exc import SQLAlchemyError

from .. import auth as auth_utils
from ..schemas.menu import (
    MenuCreate,
    MenuDetail,
    MenuDuplicate,
    MenuInDB,
    MenuItemCreate,
    MenuItemInDB,
    MenuItemUpdate,
    MenuPagination,
    MenuUpdate,
    RegenerateCacheResult,
    ReorderRequest,
)
from ..services.menu_service import MenuService
from ..services.menu_tree import get_menu_item_url
from .deps import get_menu_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin/menus",
    tags=["menus (admin)"]
)


def _item_out(item) -> MenuItemInDB:
    return MenuItemInDB.model_validate(item).model_copy(update={"href": get_menu_item_url(item)})


def _store_error(action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Error al {action}."
    )


@router.get("/", response_model=MenuPagination)
def read_menus(
    page: int = Query(1, ge=1, description="Número de página"),
    limit: int = Query(10, ge=1, le=100, description="Menús por página"),
    position: Optional[str] = Query(None, description="Filtrar por posición (header, footer, ...)"),
    is_published: Optional[bool] = Query(None, description="Filtrar por estado de publicación"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_READ))
):
    """
    Lista todos los menús (incluye no publicados), del más reciente al más antiguo,
    con la cantidad de ítems de cada uno.
    """
    return service.list_menus(page=page, per_page=limit, position=position, is_published=is_published)


@router.get("/position/{position}", response_model=MenuDetail)
def read_menu_by_position(
    position: str,
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_READ))
):
    """Menú de una posición con su árbol en vivo (sin caché)."""
    return service.get_menu_by_position(position, use_cache=False)


@router.post("/regenerate-cache", response_model=RegenerateCacheResult)
def regenerate_all_caches(
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_UPDATE))
):
    """Regenera el caché de todos los menús (mantenimiento)."""
    try:
        return {"regenerated": service.regenerate_all_caches()}
    except SQLAlchemyError:
        raise _store_error("regenerar los cachés de menús")


@router.get("/{identifier}", response_model=MenuDetail)
def read_menu(
    identifier: str = Path(..., min_length=1, title="ID (UUID) o slug del menú"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_READ))
):
    """
    Obtiene un menú por ID o slug con el árbol relacional completo,
    incluidos los ítems no publicados. No usa el caché.
    """
    return service.get_menu(identifier)


@router.post("/", response_model=MenuInDB, status_code=status.HTTP_201_CREATED)
def create_menu(
    menu_data: MenuCreate,
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_CREATE))
):
    """
    Crea un menú vacío. Si no se envía slug se genera desde el nombre;
    si ya existe se agrega un sufijo (-2, -3, ...).
    """
    try:
        return service.create_menu(menu_data)
    except SQLAlchemyError:
        raise _store_error("crear el menú")


@router.put("/{menu_id}", response_model=MenuInDB)
def update_menu(
    menu_data: MenuUpdate,
    menu_id: str = Path(..., title="El ID del menú"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_UPDATE))
):
    """Actualiza los metadatos del menú."""
    try:
        return service.update_menu(menu_id, menu_data)
    except SQLAlchemyError:
        raise _store_error("actualizar el menú")


@router.delete("/{menu_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu(
    menu_id: str = Path(..., title="El ID del menú"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_DELETE))
):
    """Elimina el menú y todos sus ítems."""
    try:
        service.delete_menu(menu_id)
    except SQLAlchemyError:
        raise _store_error("eliminar el menú")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{menu_id}/duplicate", response_model=MenuInDB, status_code=status.HTTP_201_CREATED)
def duplicate_menu(
    duplicate_data: Optional[MenuDuplicate] = None,
    menu_id: str = Path(..., title="El ID del menú a copiar"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_CREATE))
):
    """Crea una copia sin publicar del menú con todos sus ítems."""
    duplicate_data = duplicate_data or MenuDuplicate()
    try:
        return service.duplicate_menu(menu_id, duplicate_data.name, duplicate_data.slug)
    except SQLAlchemyError:
        raise _store_error("duplicar el menú")


# --- Ítems de menú ---

@router.post("/{menu_id}/items", response_model=MenuItemInDB, status_code=status.HTTP_201_CREATED)
def create_menu_item(
    item_data: MenuItemCreate,
    menu_id: str = Path(..., title="El ID del menú"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_UPDATE))
):
    """Agrega un ítem al menú y regenera su caché."""
    try:
        return _item_out(service.add_item(menu_id, item_data))
    except SQLAlchemyError:
        raise _store_error("crear el ítem de menú")


@router.put("/{menu_id}/items/{item_id}", response_model=MenuItemInDB)
def update_menu_item(
    item_data: MenuItemUpdate,
    menu_id: str = Path(..., title="El ID del menú"),
    item_id: str = Path(..., title="El ID del ítem"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_UPDATE))
):
    """Actualiza un ítem del menú y regenera su caché."""
    try:
        return _item_out(service.update_item(menu_id, item_id, item_data))
    except SQLAlchemyError:
        raise _store_error("actualizar el ítem de menú")


@router.delete("/{menu_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_menu_item(
    menu_id: str = Path(..., title="El ID del menú"),
    item_id: str = Path(..., title="El ID del ítem"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_DELETE))
):
    """Elimina un ítem (y sus descendientes) y regenera el caché del menú."""
    try:
        service.delete_item(menu_id, item_id)
    except SQLAlchemyError:
        raise _store_error("eliminar el ítem de menú")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{menu_id}/reorder", response_model=MenuDetail)
def reorder_menu_items(
    reorder_data: ReorderRequest,
    menu_id: str = Path(..., title="El ID del menú"),
    service: MenuService = Depends(get_menu_service),
    current_user=Depends(auth_utils.require_permission(auth_utils.MENU_UPDATE))
):
    """
    Aplica en bloque los nuevos valores de `order` (y opcionalmente `parent_id`).
    Todos los ítems deben pertenecer a este menú.
    """
    try:
        menu = service.reorder_items(menu_id, reorder_data.items)
    except SQLAlchemyError:
        raise _store_error("reordenar los ítems del menú")
    return service.get_menu(menu.id)
