"""
Configuración global para todas las pruebas pytest
"""
import os

# Variables de entorno antes de importar la aplicación
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "clave-de-pruebas"
os.environ["SUPERADMIN_EMAIL"] = "root@test.com"
os.environ["AUTO_CREATE_TABLES"] = "0"
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth import create_access_token
from app.database import get_db, enable_sqlite_foreign_keys
from app.main import app
from app.models.base import Base
from app.models.enums import MenuItemTypeEnum
from app.schemas.menu import MenuCreate, MenuItemCreate
from app.services.cache_service import CacheService, MemoryCacheStore, get_cache_service
from app.services.menu_service import MenuService

ALL_MENU_PERMISSIONS = ["menu.read", "menu.create", "menu.update", "menu.delete"]


@pytest.fixture
def engine():
    """
    Base SQLite en memoria, nueva para cada prueba.
    StaticPool: todas las conexiones comparten la misma base.
    """
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache_store():
    return MemoryCacheStore()


@pytest.fixture
def cache(cache_store):
    return CacheService(cache_store, default_ttl=60)


@pytest.fixture
def menu_service(db_session, cache):
    return MenuService(db_session, cache)


@pytest.fixture
def client(db_session, cache):
    """
    Cliente HTTP de pruebas con la base de datos y el caché de la prueba.
    """
    def get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_cache_service] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    # Limpiar overrides después del test
    app.dependency_overrides.clear()


@pytest.fixture
def make_token():
    """
    Factory de tokens JWT como los emitiría el servicio de autenticación.
    """
    def _make_token(permissions=None, is_admin=True, email="editor@test.com", roles=None):
        claims = {
            "sub": email,
            "email": email,
            "is_admin": is_admin,
            "permissions": ALL_MENU_PERMISSIONS if permissions is None else permissions,
        }
        if roles is not None:
            claims["roles"] = roles
        return create_access_token(claims)

    return _make_token


@pytest.fixture
def admin_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def create_test_menu(menu_service):
    """
    Factory function para crear menús de prueba en la BD.
    """
    def _create_menu(name="Main Menu", slug=None, position=None, is_published=True):
        return menu_service.create_menu(
            MenuCreate(name=name, slug=slug, position=position, is_published=is_published)
        )

    return _create_menu


@pytest.fixture
def add_test_item(menu_service):
    """
    Factory para agregar ítems tipo custom-link (u otro tipo con kwargs).
    """
    def _add_item(menu_id, title, url="/", parent_id=None, order=0, is_published=True, **extra):
        fields = {
            "title": title,
            "type": extra.pop("type", MenuItemTypeEnum.custom_link),
            "url": url,
            "parent_id": parent_id,
            "order": order,
            "is_published": is_published,
        }
        fields.update(extra)
        return menu_service.add_item(menu_id, MenuItemCreate(**fields))

    return _add_item
