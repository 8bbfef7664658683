import os

# Settings are loaded at import time, so the environment must be prepared first.
os.environ["SECRET_KEY"] = "unit-test-signing-key-3f9a1c"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["GOOGLE_CLIENT_ID"] = "test-client.apps.googleusercontent.com"

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from second_brain.dependencies import build_container, get_container  # noqa: E402
from second_brain.exceptions import UpstreamError  # noqa: E402
from second_brain.main import app  # noqa: E402
from second_brain.repositories import build_repositories  # noqa: E402
from second_brain.services.auth_service import GoogleTokenVerifier  # noqa: E402
from second_brain.services.metadata_service import MetadataService  # noqa: E402


@pytest.fixture
def repositories():
    return build_repositories("memory")


@pytest.fixture
def metadata_service():
    service = MetadataService()
    service.extract_metadata = AsyncMock(side_effect=UpstreamError("offline"))
    return service


@pytest.fixture
def google_verifier():
    verifier = GoogleTokenVerifier(client_id="test-client.apps.googleusercontent.com")
    verifier.verify = AsyncMock()
    return verifier


@pytest.fixture
def container(repositories, metadata_service, google_verifier):
    return build_container(repositories=repositories, metadata=metadata_service, google=google_verifier)


@pytest.fixture
def client(container):
    app.dependency_overrides[get_container] = lambda: container
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user over HTTP and return `(user_id, auth_headers)`."""

    def _register(username: str, email: str = None, password: str = "secret1"):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": username, "email": email or f"{username}@example.com", "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"]["id"], {"Authorization": f"Bearer {body['token']}"}

    return _register
