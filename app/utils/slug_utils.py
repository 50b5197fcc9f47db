# backEnd/app/utils/slug_utils.py
import re
import secrets
import unicodedata
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import ConflictError

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Límite de intentos de sufijo antes de rendirse con ConflictError
MAX_SLUG_SUFFIX = 10000


def generate_slug(text: str) -> str:
    """
    Genera un slug a partir de un texto.

    Ejemplo: "  Menú Principal!! " -> "menu-principal"
    """
    value = unicodedata.normalize("NFD", str(text).strip().lower())
    # Quitar acentos/diacríticos
    value = "".join(ch for ch in value if unicodedata.category(ch) != "Mn")
    # Espacios y signos de puntuación se colapsan en un solo guion
    value = re.sub(r"[^a-z0-9]+", "-", value)
    return value.strip("-")


def purify_slug(slug: str) -> str:
    """Igual que generate_slug, pero para slugs enviados por el cliente."""
    return generate_slug(slug)


def is_valid_slug_format(slug: str) -> bool:
    return bool(SLUG_PATTERN.match(slug or ""))


def is_slug_unique(db: Session, model, slug: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(model.id).filter(model.slug == slug)
    if exclude_id:
        query = query.filter(model.id != exclude_id)
    return query.first() is None


def ensure_unique_slug(db: Session, model, base_slug: str, exclude_id: Optional[str] = None) -> str:
    """
    Agrega un sufijo numérico hasta que el slug sea único para el modelo.
    "main-menu" -> "main-menu-2" -> "main-menu-3"
    """
    slug = base_slug
    counter = 1
    while not is_slug_unique(db, model, slug, exclude_id):
        counter += 1
        if counter > MAX_SLUG_SUFFIX:
            raise ConflictError(detail=f"No se pudo generar un slug único a partir de '{base_slug}'.")
        slug = f"{base_slug}-{counter}"

    if slug != base_slug:
        logger.info(f"Slug '{base_slug}' en uso para {model.__tablename__}, se usará '{slug}'")
    return slug


def handle_slug(
    db: Session,
    model,
    title: str,
    provided_slug: Optional[str] = None,
    exclude_id: Optional[str] = None,
) -> str:
    """
    Resuelve el slug final de un registro:
    1. Purifica el slug enviado o lo genera desde el título
    2. Si queda vacío, usa un slug aleatorio
    3. Garantiza unicidad con sufijos
    """
    if provided_slug and provided_slug.strip():
        slug = purify_slug(provided_slug)
    else:
        slug = generate_slug(title)

    if not slug:
        slug = f"item-{secrets.token_hex(5)}"

    return ensure_unique_slug(db, model, slug, exclude_id)
