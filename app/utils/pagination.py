from typing import Tuple


def paginate(page: int = 1, per_page: int = 10) -> Tuple[int, int]:
    """Convierte página/tamaño en (skip, limit)."""
    limit = max(1, per_page)
    skip = max(0, (page - 1) * limit)
    return skip, limit
