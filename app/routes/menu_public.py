# backEnd/app/routes/menu_public.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..exceptions import NotFoundError
from ..schemas.menu import MenuItemInDB, PublicMenu, PublicMenuPagination
from ..services.cache_service import CacheService, get_cache_service
from ..services.menu_service import MenuService
from ..services.menu_tree import get_menu_item_url
from ..utils.etag_utils import etag_matches, make_menu_etag
from .deps import get_menu_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/menus",
    tags=["menus"]
)


def _response_cache_key(request: Request) -> str:
    return CacheService.generate_key("public", request.url.path, dict(request.query_params))


def _cached(request: Request, cache: CacheService, producer):
    """
    Devuelve la respuesta cacheada de un GET público o la produce y la guarda.
    Solo se guardan respuestas existentes (producer devuelve None -> no se cachea).
    """
    key = _response_cache_key(request)
    payload = cache.get(key)
    if payload is not None:
        logger.debug(f"Cache HIT: {key}")
        return payload

    logger.debug(f"Cache MISS: {key}")
    result = producer()
    if result is None:
        return None
    payload = jsonable_encoder(result)
    cache.set(key, payload)
    return payload


def _menu_response(payload: dict, if_none_match: Optional[str]) -> Response:
    etag = make_menu_etag(payload["cache_key"])
    if etag_matches(if_none_match, etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    return JSONResponse(content=payload, headers={"ETag": etag})


@router.get("/", response_model=PublicMenuPagination)
def read_public_menus(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    position: Optional[str] = Query(None),
    service: MenuService = Depends(get_menu_service),
    cache: CacheService = Depends(get_cache_service),
):
    """Lista los menús publicados."""
    return _cached(
        request,
        cache,
        lambda: PublicMenuPagination.model_validate(
            service.list_public_menus(page=page, per_page=limit, position=position)
        ),
    )


@router.get("/position/{position}", response_model=PublicMenu)
def read_public_menu_by_position(
    position: str,
    request: Request,
    if_none_match: Optional[str] = Header(None),
    service: MenuService = Depends(get_menu_service),
    cache: CacheService = Depends(get_cache_service),
):
    """Menú publicado de una posición (header, footer, ...) desde el caché JSON."""
    payload = _cached(request, cache, lambda: service.get_menu_by_position(position, use_cache=True))
    if payload is None:
        raise NotFoundError(detail="Menú no encontrado.")
    return _menu_response(payload, if_none_match)


@router.get("/item/{slug}", response_model=MenuItemInDB)
def read_public_menu_item(
    slug: str,
    request: Request,
    service: MenuService = Depends(get_menu_service),
    cache: CacheService = Depends(get_cache_service),
):
    """Ítem publicado por slug, con su URL navegable (`href`)."""
    def produce():
        item = service.get_public_item(slug)
        if item is None:
            return None
        return MenuItemInDB.model_validate(item).model_copy(update={"href": get_menu_item_url(item)})

    payload = _cached(request, cache, produce)
    if payload is None:
        raise NotFoundError(detail="Ítem de menú no encontrado.")
    return payload


@router.get("/{identifier}", response_model=PublicMenu)
def read_public_menu(
    identifier: str,
    request: Request,
    if_none_match: Optional[str] = Header(None),
    service: MenuService = Depends(get_menu_service),
    cache: CacheService = Depends(get_cache_service),
):
    """
    Menú publicado por ID o slug. Lee el árbol precalculado (items_cache),
    sin joins. Responde 404 si no existe o no está publicado.
    """
    payload = _cached(request, cache, lambda: service.get_public_menu(identifier))
    if payload is None:
        raise NotFoundError(detail="Menú no encontrado.")
    return _menu_response(payload, if_none_match)
