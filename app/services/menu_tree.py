# backEnd/app/services/menu_tree.py
"""
Construcción del árbol de menú a partir de las filas relacionales.

Funciones puras: no consultan la base de datos. Reciben la lista plana de
ítems de un menú (cargada una sola vez), arman un índice padre -> hijos y
recorren por id hasta MAX_TREE_DEPTH niveles.
"""
import copy
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..models.enums import MenuItemTypeEnum

# ítem -> hijo -> nieto
MAX_TREE_DEPTH = 3

URL_TEMPLATES = {
    MenuItemTypeEnum.page: "/{reference}",
    MenuItemTypeEnum.post: "/blog/{reference}",
    MenuItemTypeEnum.category: "/category/{reference}",
    MenuItemTypeEnum.service: "/services/{reference}",
    MenuItemTypeEnum.project: "/projects/{reference}",
}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _enum_value(value):
    return getattr(value, "value", value)


def _sort_key(item):
    # Empates de `order` se resuelven por orden de inserción
    created = getattr(item, "created_at", None) or _EPOCH
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return (item.order or 0, created)


def get_menu_item_url(item) -> Optional[str]:
    """URL navegable efectiva: `url` si existe, si no la plantilla del tipo con `reference`."""
    if item.url:
        return item.url
    if not item.reference:
        return None
    item_type = item.type if isinstance(item.type, MenuItemTypeEnum) else MenuItemTypeEnum(item.type)
    template = URL_TEMPLATES.get(item_type)
    return template.format(reference=item.reference) if template else None


def index_children(items: Iterable[Any]) -> Dict[Optional[str], List[Any]]:
    """Índice parent_id -> hijos ordenados. Las raíces quedan bajo la clave None."""
    index = defaultdict(list)
    for item in items:
        index[item.parent_id].append(item)
    for siblings in index.values():
        siblings.sort(key=_sort_key)
    return dict(index)


def serialize_item(item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "slug": item.slug,
        "type": _enum_value(item.type),
        "reference": item.reference,
        "url": item.url,
        "icon": item.icon,
        "target": _enum_value(item.target),
        "cssClass": item.css_class,
        "order": item.order,
        "isPublished": item.is_published,
        "meta": copy.deepcopy(item.meta),
        "children": [],
    }


def build_tree(
    items: Iterable[Any],
    published_only: bool = False,
    max_depth: int = MAX_TREE_DEPTH,
) -> List[Dict[str, Any]]:
    """
    Convierte los ítems de un menú en el árbol JSON desnormalizado.

    Con published_only=True un ítem no publicado se descarta junto con todo
    su subárbol, aunque los descendientes estén publicados.
    Los niveles por debajo de max_depth no se incluyen.
    """
    index = index_children(items)

    def walk(parent_id: Optional[str], depth: int) -> List[Dict[str, Any]]:
        nodes = []
        for item in index.get(parent_id, []):
            if published_only and not item.is_published:
                continue
            node = serialize_item(item)
            if depth < max_depth:
                node["children"] = walk(item.id, depth + 1)
            nodes.append(node)
        return nodes

    return walk(None, 1)


def collect_descendant_ids(items: Iterable[Any], root_id: str) -> set:
    """Ids de todos los descendientes de root_id (sin límite de profundidad)."""
    index = index_children(items)
    found = set()
    pending = [root_id]
    while pending:
        current = pending.pop()
        for child in index.get(current, []):
            if child.id not in found:
                found.add(child.id)
                pending.append(child.id)
    return found
