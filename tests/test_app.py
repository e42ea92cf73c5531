"""Tests for application wiring and startup bootstrap"""

from unittest.mock import patch

import pytest

from around.app import AroundApp
from around.services.annotation import ImageAnnotator
from around.stores.memory import InMemoryCredentialStore, InMemoryDocumentIndex
from around.utils.config_loader import ConfigLoader
from around.utils.exceptions import ConfigError, StoreUnavailable

TEST_SETTINGS = {
    "auth": {"signing_key": "test-signing-key", "bcrypt_rounds": 4},
    "logging": {"level": "WARNING", "format": "console"},
}


@pytest.fixture
def settings():
    """Test settings with whole sections replaced"""
    def build(**overrides):
        return ConfigLoader().parse({**TEST_SETTINGS, **overrides})
    return build


def test_initialize_wires_every_service(around_app):
    assert isinstance(around_app.credentials, InMemoryCredentialStore)
    assert isinstance(around_app.document_index, InMemoryDocumentIndex)
    assert around_app.geo.document_index is around_app.document_index
    assert around_app.pipeline.document_index is around_app.document_index
    assert around_app.pipeline.annotator is None
    assert around_app.geo.default_radius_km == 200.0


@pytest.mark.parametrize("store", ["credentials", "blob", "index", "columns"])
def test_unknown_backend_is_config_error(settings, store):
    config = settings(stores={store: {"backend": "nosuch"}})
    with pytest.raises(ConfigError, match="nosuch"):
        AroundApp(config).initialize(bootstrap=False)


def test_annotation_requires_endpoint(settings):
    config = settings(annotation={"enabled": True})
    with pytest.raises(ConfigError):
        AroundApp(config).initialize(bootstrap=False)


def test_annotation_enabled(settings):
    config = settings(annotation={"enabled": True, "endpoint": "https://ml.example/predict"})
    app = AroundApp(config).initialize(bootstrap=False)
    assert isinstance(app.pipeline.annotator, ImageAnnotator)


def test_cloudinary_without_credentials_is_config_error(settings):
    config = settings(stores={"blob": {"backend": "cloudinary"}})
    with pytest.raises(ConfigError):
        AroundApp(config).initialize(bootstrap=False)


def test_elasticsearch_client_is_shared(settings):
    config = settings(
        stores={
            "credentials": {"backend": "elasticsearch", "url": "http://es:9200"},
            "index": {"backend": "elasticsearch", "url": "http://es:9200"},
        }
    )
    with patch("around.stores.elasticsearch_store.create_client") as create_client:
        app = AroundApp(config).initialize(bootstrap=False)
    create_client.assert_called_once_with("http://es:9200", 5.0)
    assert app.credentials.client is app.document_index.client


def test_bootstrap_calls_ensure_ready_on_every_store(config):
    app = AroundApp(config)
    with patch.object(InMemoryDocumentIndex, "ensure_ready") as ensure_ready:
        app.initialize()
    ensure_ready.assert_called_once_with()


def test_bootstrap_failure_aborts_startup(config):
    down = StoreUnavailable("index", ConnectionError("refused"))
    with patch.object(InMemoryDocumentIndex, "ensure_ready", side_effect=down) as ensure_ready:
        with pytest.raises(StoreUnavailable):
            AroundApp(config).initialize()
    # bootstrap_attempts is 1 in test settings
    assert ensure_ready.call_count == 1


def test_bootstrap_retries_transient_failures(config):
    app = AroundApp(config.model_copy(update={
        "stores": config.stores.model_copy(update={"bootstrap_attempts": 3})
    }))
    down = StoreUnavailable("index", ConnectionError("refused"))
    with patch.object(InMemoryDocumentIndex, "ensure_ready", side_effect=[down, None]) as ensure_ready, \
            patch("tenacity.nap.time.sleep"):
        app.initialize()
    assert ensure_ready.call_count == 2
