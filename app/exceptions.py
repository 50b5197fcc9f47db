# backEnd/app/exceptions.py
"""
Errores tipados del núcleo de menús.

Heredan de HTTPException para que el código HTTP viaje con el error y
FastAPI lo renderice sin manejadores adicionales.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class MenuError(HTTPException):
    status_code_hint = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Any = None, headers: Optional[dict] = None):
        super().__init__(status_code=self.status_code_hint, detail=detail, headers=headers)


class NotFoundError(MenuError):
    """Menú o ítem inexistente (por id o por slug)."""
    status_code_hint = status.HTTP_404_NOT_FOUND


class ConflictError(MenuError):
    """Colisión de slug que el sufijo automático no pudo resolver."""
    status_code_hint = status.HTTP_409_CONFLICT


class ValidationFailedError(MenuError):
    """Contrato tipo/reference/url roto, padre inválido o reordenamiento entre menús."""
    status_code_hint = 422


class ForbiddenError(MenuError):
    status_code_hint = status.HTTP_403_FORBIDDEN
