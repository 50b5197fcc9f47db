import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from dotenv import load_dotenv
from pydantic import ValidationError

from .exceptions import ForbiddenError
from .schemas.token import Principal

load_dotenv()

# Configuración de seguridad
# Los tokens los emite el servicio de autenticación; aquí solo se validan
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256") # Default a HS256 si no está en .env
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))
# Administrador con acceso total, sin revisar permisos
SUPERADMIN_EMAIL = os.getenv("SUPERADMIN_EMAIL")

# OAuth2 Bearer token (para proteger rutas)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")

# Funciones para crear y manejar tokens JWT
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Crea un token de acceso JWT."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

# --- DEPENDENCIAS DE USUARIO Y PERMISOS ---

async def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Obtiene el usuario autenticado a partir del token JWT."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not SECRET_KEY:
        raise credentials_exception

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        if payload.get("sub") is None:
            raise credentials_exception
        return Principal.model_validate(payload)
    except (JWTError, ValidationError):
        raise credentials_exception


def get_current_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Solo deja pasar a usuarios marcados como administradores."""
    if not principal.is_admin:
        raise ForbiddenError(detail="Acceso restringido a administradores.")
    return principal


def _is_superadmin(principal: Principal) -> bool:
    return bool(SUPERADMIN_EMAIL) and principal.email == SUPERADMIN_EMAIL


def require_permission(permission: str):
    """
    Dependencia que verifica que el administrador autenticado tenga el permiso indicado
    (directamente o a través de alguno de sus roles).
    """
    def _require_permission_inner(principal: Principal = Depends(get_current_admin)) -> Principal:
        if _is_superadmin(principal):
            return principal
        if permission not in principal.all_permissions():
            raise ForbiddenError(detail=f"No tienes el permiso '{permission}'.")
        return principal
    return _require_permission_inner


# Permisos del módulo de menús
MENU_READ = "menu.read"
MENU_CREATE = "menu.create"
MENU_UPDATE = "menu.update"
MENU_DELETE = "menu.delete"
