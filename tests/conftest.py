import pytest

from around.app import AroundApp
from around.utils.config_loader import ConfigLoader


TEST_SETTINGS = {
    "app": {"name": "around", "version": "1.0.0", "environment": "test"},
    "auth": {"signing_key": "test-signing-key", "bcrypt_rounds": 4},
    "logging": {"level": "WARNING", "format": "console"},
    "stores": {"bootstrap_attempts": 1},
}


@pytest.fixture
def config():
    return ConfigLoader().parse(TEST_SETTINGS)


@pytest.fixture
def around_app(config):
    """Fully wired app on in-memory stores"""
    return AroundApp(config).initialize()


@pytest.fixture
def client(around_app):
    from fastapi.testclient import TestClient
    from gateway.main import create_app

    with TestClient(create_app(around_app)) as test_client:
        yield test_client


@pytest.fixture
def auth_header(client):
    """Signup + login a default user and return its Authorization header"""
    client.post("/signup", json={"username": "alice", "password": "secret", "age": 30, "gender": "f"})
    token = client.post("/login", json={"username": "alice", "password": "secret"}).text
    return {"Authorization": f"Bearer {token}"}
