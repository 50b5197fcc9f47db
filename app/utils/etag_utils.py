from typing import Optional


def make_menu_etag(cache_key: str) -> str:
    """ETag débil a partir de la clave de caché, p. ej. W/"menu:main:v3"."""
    return f'W/"{cache_key}"'


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """Compara un If-None-Match (posiblemente con varias etiquetas) contra la ETag actual."""
    if not if_none_match:
        return False
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    if "*" in candidates:
        return True
    # Comparación débil: se ignora el prefijo W/
    bare = etag[2:] if etag.startswith("W/") else etag
    return any((c[2:] if c.startswith("W/") else c) == bare for c in candidates)
