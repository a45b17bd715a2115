import sys
import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

# --- path to backend ---
BASE_DIR = os.path.dirname(os.path.dirname(__file__))
BACKEND_DIR = os.path.join(BASE_DIR, "backend")
sys.path.insert(0, BACKEND_DIR)

from main import app
from database import BookingStore, get_store
from settings import Settings, get_settings


# ------------------ store ------------------
@pytest.fixture
def store():
    store = BookingStore("sqlite://", poolclass=StaticPool)
    store.create_all()
    yield store
    store.engine.dispose()


@pytest.fixture
def settings():
    return Settings(_env_file=None)


# ------------------ client ------------------
@pytest.fixture
def client(store, settings):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
