"""
Tests del caché clave-valor (memoria y Redis) y de las ETags.
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.services import cache_service
from app.services.cache_service import (
    CacheService,
    MemoryCacheStore,
    RedisCacheStore,
    build_cache_store,
)
from app.utils.etag_utils import etag_matches, make_menu_etag


class TestMemoryCacheStore:

    def test_set_get_delete(self):
        store = MemoryCacheStore()
        store.set("a", "1")
        assert store.get("a") == "1"
        assert store.delete("a", "no-existe") == 1
        assert store.get("a") is None

    def test_expiracion_por_ttl(self, monkeypatch):
        # ARRANGE
        clock = {"now": 1000.0}
        monkeypatch.setattr(cache_service, "time", SimpleNamespace(monotonic=lambda: clock["now"]))
        store = MemoryCacheStore()
        store.set("a", "1", ttl=10)

        # ACT & ASSERT
        assert store.get("a") == "1"
        clock["now"] += 11
        assert store.get("a") is None
        assert store.keys("*") == []

    def test_keys_por_patron(self):
        store = MemoryCacheStore()
        store.set("public:/menus/main", "1")
        store.set("public:/menus/", "2")
        store.set("public:/posts/x", "3")

        assert sorted(store.keys("public:/menus*")) == ["public:/menus/", "public:/menus/main"]


class TestRedisCacheStore:

    def test_requiere_url_o_cliente(self):
        with pytest.raises(ValueError):
            RedisCacheStore()

    def test_operaciones_delegan_en_el_cliente(self):
        # ARRANGE
        client = MagicMock()
        client.get.return_value = '{"ok": true}'
        client.delete.return_value = 2
        client.scan_iter.return_value = iter(["public:/menus/a", "public:/menus/b"])
        store = RedisCacheStore(client=client)

        # ACT
        value = store.get("k")
        store.set("k", "v", ttl=30)
        store.set("sin-ttl", "v")
        removed = store.delete("a", "b")
        keys = store.keys("public:/menus*")

        # ASSERT
        assert value == '{"ok": true}'
        client.setex.assert_called_once_with("k", 30, "v")
        client.set.assert_called_once_with("sin-ttl", "v")
        client.delete.assert_called_once_with("a", "b")
        assert removed == 2
        client.scan_iter.assert_called_once_with(match="public:/menus*")
        assert keys == ["public:/menus/a", "public:/menus/b"]

    def test_delete_sin_claves_no_llama_al_cliente(self):
        client = MagicMock()
        assert RedisCacheStore(client=client).delete() == 0
        client.delete.assert_not_called()

    def test_build_cache_store_sin_url_usa_memoria(self):
        assert isinstance(build_cache_store(None), MemoryCacheStore)


class TestCacheService:

    def test_valores_json(self, cache):
        cache.set("k", {"items": [1, 2]})
        assert cache.get("k") == {"items": [1, 2]}
        assert cache.get("no-existe") is None

    def test_ttl_por_defecto(self):
        store = MagicMock()
        CacheService(store, default_ttl=120).set("k", [1])
        store.set.assert_called_once_with("k", "[1]", 120)

    def test_invalidate_pattern(self, cache, cache_store):
        cache.set("public:/menus/main", 1)
        cache.set("public:/menus/main:{\"page\": \"1\"}", 2)
        cache.set("menu:main:v1", 3)

        removed = cache.invalidate_pattern("public:/menus*")

        assert removed == 2
        assert cache_store.keys("*") == ["menu:main:v1"]

    def test_errores_del_almacen_no_se_propagan(self):
        # ARRANGE
        store = MagicMock()
        store.get.side_effect = ConnectionError("redis caído")
        store.set.side_effect = ConnectionError("redis caído")
        store.delete.side_effect = ConnectionError("redis caído")
        store.keys.side_effect = ConnectionError("redis caído")
        store.flush.side_effect = ConnectionError("redis caído")
        cache = CacheService(store)

        # ACT & ASSERT
        assert cache.get("k") is None
        cache.set("k", 1)
        cache.delete("k")
        assert cache.invalidate_pattern("public:*") == 0
        cache.clear()

    def test_generate_key(self):
        assert CacheService.generate_key("public", "/menus/main") == "public:/menus/main"
        assert (
            CacheService.generate_key("public", "/menus/", {"page": "2", "limit": "5"})
            == 'public:/menus/:{"limit": "5", "page": "2"}'
        )


class TestEtag:

    def test_etag_debil_desde_cache_key(self):
        assert make_menu_etag("menu:main:v3") == 'W/"menu:main:v3"'

    @pytest.mark.parametrize("header, expected", [
        ('W/"menu:main:v3"', True),
        ('"menu:main:v3"', True),
        ('W/"menu:main:v2", W/"menu:main:v3"', True),
        ("*", True),
        ('W/"menu:main:v2"', False),
        (None, False),
        ("", False),
    ])
    def test_etag_matches(self, header, expected):
        assert etag_matches(header, 'W/"menu:main:v3"') is expected
