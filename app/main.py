import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from app.models.base import Base
from app.database import engine
from app.routes import menu_admin, menu_public

# --- Carga de Variables de Entorno ---
load_dotenv()

# --- Logging ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
AUTO_CREATE_TABLES = os.getenv("AUTO_CREATE_TABLES", "1").strip().lower() not in {"0", "false"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- Creación de Tablas en la Base de Datos (para desarrollo) ---
    if AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)
        logger.info("Tablas verificadas/creadas")
    yield


# --- Creación de la Aplicación FastAPI ---
app = FastAPI(
    title="CMS - Menús",
    description="API de menús de navegación: árbol relacional de ítems con proyección JSON cacheada.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Middlewares ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


# --- Inclusión de Routers de la API ---
app.include_router(menu_admin.router) # Para /admin/menus
app.include_router(menu_public.router) # Para /menus
