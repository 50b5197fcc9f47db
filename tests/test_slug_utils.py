"""
Tests de generación y unicidad de slugs.
"""
import pytest

from app.exceptions import ConflictError
from app.models.menu import Menu
from app.utils import slug_utils
from app.utils.slug_utils import (
    ensure_unique_slug,
    generate_slug,
    handle_slug,
    is_valid_slug_format,
)


class TestGenerateSlug:

    @pytest.mark.parametrize("text, expected", [
        ("Main Menu", "main-menu"),
        ("  Menú Principal!! ", "menu-principal"),
        ("Servicios & Proyectos", "servicios-proyectos"),
        ("---ya-es-slug---", "ya-es-slug"),
        ("Ñandú 2024", "nandu-2024"),
        ("!!!", ""),
    ])
    def test_generate_slug(self, text, expected):
        assert generate_slug(text) == expected

    def test_formato_valido(self):
        assert is_valid_slug_format("main-menu-2")
        assert not is_valid_slug_format("Main Menu")
        assert not is_valid_slug_format("doble--guion")
        assert not is_valid_slug_format("")


class TestUniqueSlug:

    def test_sufijos_consecutivos(self, db_session, create_test_menu):
        # ARRANGE
        create_test_menu(name="Main Menu")
        create_test_menu(name="Main Menu")

        # ACT
        slug = ensure_unique_slug(db_session, Menu, "main-menu")

        # ASSERT
        assert slug == "main-menu-3"

    def test_exclude_id_permite_conservar_el_propio_slug(self, db_session, create_test_menu):
        menu = create_test_menu(name="Main Menu")
        assert ensure_unique_slug(db_session, Menu, "main-menu", exclude_id=menu.id) == "main-menu"

    def test_limite_de_sufijos_lanza_conflicto(self, db_session, create_test_menu, monkeypatch):
        # ARRANGE
        monkeypatch.setattr(slug_utils, "MAX_SLUG_SUFFIX", 2)
        create_test_menu(name="Main Menu")
        create_test_menu(name="Main Menu")

        # ACT & ASSERT
        with pytest.raises(ConflictError) as exc_info:
            ensure_unique_slug(db_session, Menu, "main-menu")
        assert exc_info.value.status_code == 409


class TestHandleSlug:

    def test_slug_enviado_se_purifica(self, db_session):
        assert handle_slug(db_session, Menu, "Ignorado", "Mi Slug") == "mi-slug"

    def test_sin_slug_se_usa_el_titulo(self, db_session):
        assert handle_slug(db_session, Menu, "Footer Links") == "footer-links"

    def test_titulo_sin_caracteres_validos_usa_slug_aleatorio(self, db_session):
        slug = handle_slug(db_session, Menu, "¡¡!!")
        assert slug.startswith("item-")
        assert is_valid_slug_format(slug)
