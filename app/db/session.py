"""
➡️ But : Configurer la base et gérer les sessions de base de données.

engine : connexion à la base (sqlite:///app.db par défaut).

init_db() : crée les tables à partir des modèles SQLModel.

get_session() : dépendance FastAPI, une session par requête.

session_scope() : même chose hors requête (tâches d'upload en arrière-plan).
"""

from contextlib import contextmanager
from typing import Dict, Any, Iterator
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine

# Import all models for creating all tables
from app.db.models.videos import UgcVideo  # noqa: F401

from app.core.config import settings

def _build_engine() -> Engine:
    url = settings.DATABASE_URL
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    if is_sqlite:
        # Le finaliseur d'upload écrit depuis un thread (asyncio.to_thread)
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        echo=(settings.ENV == "dev" and settings.LOG_LEVEL.upper() == "DEBUG"),
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,
    )

engine: Engine = _build_engine()

def init_db() -> None:
    """
    Crée les tables si elles n'existent pas (usage dev/demo).
    En prod, préférer des migrations.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    with Session(engine) as session:
        yield session
