"""Shared fixtures for lobby integration tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from starlette.testclient import TestClient

from lobby.server.app import create_app
from lobby.server.settings import LobbyServerSettings
from shared.auth.settings import AuthSettings

if TYPE_CHECKING:
    from pathlib import Path

    from starlette.applications import Starlette

MAINTENANCE_KEY = "integration-maintenance-key"
PASSWORD = "securepass123"

VOCAB_YAML = """
items:
  - {vocab_id: 1, indo: kucing, english: cat, category: animals, subcategory: 1,
     sentence_indo: Kucing itu tidur., sentence_english: The cat sleeps.}
  - {vocab_id: 2, indo: anjing, english: dog, category: animals, subcategory: 1}
  - {vocab_id: 3, indo: sapi, english: cow, category: animals, subcategory: 2}
  - {vocab_id: 10, indo: nasi, english: rice, category: food, subcategory: 1}
"""


@pytest.fixture
def app(tmp_path: Path) -> Starlette:
    vocab_file = tmp_path / "vocab.yaml"
    vocab_file.write_text(VOCAB_YAML)
    return create_app(
        settings=LobbyServerSettings(
            database_path=str(tmp_path / "lobby.db"),
            vocab_file=str(vocab_file),
            maintenance_key=MAINTENANCE_KEY,
        ),
        auth_settings=AuthSettings(password_hasher="simple"),
    )


@pytest.fixture
def anon_client(app: Starlette) -> TestClient:
    return TestClient(app)


def register(client: TestClient, username: str, display_name: str | None = None) -> dict[str, str]:
    """Register ``username`` and keep the session cookie on ``client``."""
    response = client.post(
        "/api/auth/register",
        json={"username": username, "password": PASSWORD, "display_name": display_name},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def host_client(app: Starlette) -> TestClient:
    client = TestClient(app)
    register(client, "hostuser", "Host Person")
    return client


@pytest.fixture
def guest_client(app: Starlette) -> TestClient:
    client = TestClient(app)
    register(client, "guestuser", "Guest Person")
    return client


@pytest.fixture
def register_user():
    return register
