import os
import sys
import tempfile
from datetime import timedelta
from pathlib import Path

# Must be set before config.py is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "production"
os.environ["ADMIN_REGISTRATION_TOKEN"] = ""
os.environ["LOG_DIR"] = str(Path(tempfile.gettempdir()) / "lineas-test-logs")

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import app
from core.database import get_db, register_sqlite_functions
from core.dependencies import get_password_hasher, get_token_service
from models.base import Base
from schemas.track import TrackCreateRequest
from utils.password_hasher import PasswordHasher
from utils.session_tokens import SessionTokenService
from utils.track_manager import TrackManager
from utils.user_manager import UserManager

TEST_SECRET = "test-secret-key"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    register_sqlite_functions(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture()
def tokens():
    return SessionTokenService(secret_key=TEST_SECRET, ttl=timedelta(hours=24))


@pytest.fixture()
def user_manager(db_session, hasher, tokens):
    return UserManager(db_session, hasher=hasher, tokens=tokens, admin_registration_token=None)


@pytest.fixture()
def track_manager(db_session):
    return TrackManager(db_session)


@pytest.fixture()
def client(session_factory, hasher, tokens):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_token_service] = lambda: tokens
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def register(client, email, role=None, password="secreto123", name="Usuario Prueba"):
    payload = {"nombre": name, "email": email, "password": password}
    if role:
        payload["rol"] = role
    response = client.post("/auth/registro", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture()
def admin_headers(client):
    body = register(client, "admin@universidad.edu", role="admin", name="Admin")
    return {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture()
def student_headers(client):
    body = register(client, "estudiante@universidad.edu", name="Estudiante")
    return {"Authorization": f"Bearer {body['token']}"}


def track_payload(name="Ingeniería de Datos", **overrides):
    payload = {
        "nombre": name,
        "descripcion": "Procesamiento y análisis de grandes volúmenes de datos",
        "coordinador": "María Gómez",
        "emailCoordinador": "mgomez@universidad.edu",
        "areaConocimiento": "Datos",
        "creditosRequeridos": 12,
        "materias": ["Bases de Datos II", "Big Data"],
    }
    payload.update(overrides)
    return payload


def track_request(name="Ingeniería de Datos", **overrides):
    return TrackCreateRequest(**track_payload(name, **overrides))
