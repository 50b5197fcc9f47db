# backEnd/app/services/cache_service.py

import fnmatch
import json
import logging
import os
import threading
import time
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import redis
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL")
# TTL por defecto de las respuestas públicas cacheadas (segundos)
PUBLIC_CACHE_TTL = int(os.getenv("PUBLIC_CACHE_TTL", 1800))
DEFAULT_TTL = 300


class MemoryCacheStore:
    """Almacén clave-valor en memoria del proceso. Para desarrollo y pruebas."""

    def __init__(self):
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return False
        return True

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data[key][0] if self._alive(key) else None

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, *keys: str) -> int:
        with self._lock:
            return sum(1 for key in keys if self._data.pop(key, None) is not None)

    def keys(self, pattern: str) -> List[str]:
        with self._lock:
            return [key for key in list(self._data) if self._alive(key) and fnmatch.fnmatchcase(key, pattern)]

    def flush(self) -> None:
        with self._lock:
            self._data.clear()


class RedisCacheStore:
    """Almacén clave-valor respaldado por Redis."""

    def __init__(self, url: Optional[str] = None, client: Optional["redis.Redis"] = None):
        if client is None and not url:
            raise ValueError("Se requiere REDIS_URL o un cliente de Redis")
        self._client = client or redis.Redis.from_url(url, decode_responses=True)

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if ttl:
            self._client.setex(key, ttl, value)
        else:
            self._client.set(key, value)

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._client.delete(*keys))

    def keys(self, pattern: str) -> List[str]:
        # SCAN en lugar de KEYS para no bloquear el servidor
        return list(self._client.scan_iter(match=pattern))

    def flush(self) -> None:
        self._client.flushdb()


class CacheService:
    """
    Capa de caché de mejor esfuerzo sobre un almacén clave-valor.

    Nunca bloquea una petición: cualquier error del almacén se registra
    en el log y se ignora (fail-open).
    """

    def __init__(self, store, default_ttl: int = DEFAULT_TTL):
        self.store = store
        self.default_ttl = default_ttl

    def get(self, key: str) -> Optional[Any]:
        try:
            data = self.store.get(key)
            if data is None:
                return None
            return json.loads(data)
        except Exception as e:
            logger.error(f"Error leyendo caché '{key}': {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            self.store.set(key, json.dumps(value), ttl or self.default_ttl)
        except Exception as e:
            logger.error(f"Error escribiendo caché '{key}': {e}")

    def delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except Exception as e:
            logger.error(f"Error eliminando caché '{key}': {e}")

    def invalidate_pattern(self, pattern: str) -> int:
        """Invalida todas las claves que coinciden con el patrón (p. ej. "public:/menus*")."""
        try:
            keys = self.store.keys(pattern)
            if not keys:
                return 0
            removed = self.store.delete(*keys)
            logger.info(f"Invalidadas {len(keys)} claves de caché para el patrón {pattern}")
            return removed
        except Exception as e:
            logger.error(f"Error invalidando caché con patrón '{pattern}': {e}")
            return 0

    def clear(self) -> None:
        try:
            self.store.flush()
            logger.info("Caché vaciada por completo")
        except Exception as e:
            logger.error(f"Error vaciando caché: {e}")

    @staticmethod
    def generate_key(prefix: str, path: str, query: Optional[Dict[str, Any]] = None) -> str:
        """Clave a partir de la ruta y los parámetros de consulta: public:/menus/main:{"page": "1"}"""
        query_string = json.dumps(query, sort_keys=True) if query else ""
        return f"{prefix}:{path}" + (f":{query_string}" if query_string else "")


def build_cache_store(url: Optional[str] = REDIS_URL):
    if url:
        logger.info("Usando Redis como almacén de caché")
        return RedisCacheStore(url=url)
    logger.warning("REDIS_URL no configurada; se usará un almacén de caché en memoria")
    return MemoryCacheStore()


@lru_cache(maxsize=1)
def get_cache_service() -> CacheService:
    """Dependencia de FastAPI; en pruebas se reemplaza con dependency_overrides."""
    return CacheService(build_cache_store(), default_ttl=PUBLIC_CACHE_TTL)
