"""
API fixtures: TestClient with the database and upload registry overridden.
"""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.api.v1.dependencies import get_upload_registry
from app.core.config import session_token_settings
from app.db.session import get_session
from app.main import app
from app.security.tokens import create_session_token


@pytest.fixture
def client(db_engine, upload_registry):
    def _get_session():
        with Session(db_engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_upload_registry] = lambda: upload_registry
    # le bloc `with` garde la boucle de l'app vivante entre deux requêtes (tâches d'upload)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_headers():
    def _make(shop: str = "demo.myshopify.com"):
        token = create_session_token(shop=shop, settings=session_token_settings)
        return {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def auth_headers(make_headers):
    return make_headers()
