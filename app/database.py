from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv
import os

load_dotenv()

SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cms.db")


def build_engine(url: str):
    """Crea el engine; las opciones de pool solo aplican fuera de SQLite."""
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})
        enable_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine

    # Ajusta pool_size y max_overflow según tus necesidades
    return create_engine(
        url,
        pool_size=10,          # Conexiones activas máximas en el pool
        max_overflow=20,       # Conexiones adicionales si pool_size se agota
        pool_pre_ping=True,    # Verifica conexiones antes de usarlas
    )


def enable_sqlite_foreign_keys(target_engine):
    # SQLite no aplica ON DELETE CASCADE sin este PRAGMA
    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
