from fastapi import Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..services.cache_service import CacheService, get_cache_service
from ..services.menu_service import MenuService


def get_menu_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache_service),
) -> MenuService:
    """Servicio de menús con la sesión y el caché de la petición inyectados."""
    return MenuService(db, cache)
