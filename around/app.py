"""Application composition root"""

from datetime import timedelta
from typing import Dict, Optional

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .auth.service import AuthService
from .auth.tokens import TokenIssuer
from .services.annotation import ImageAnnotator
from .services.geo_query import GeoQueryEngine
from .services.ingestion import IngestionPipeline
from .stores.base import BlobStore, CredentialStore, DocumentIndex, WideColumnStore
from .stores.memory import (
    InMemoryBlobStore,
    InMemoryCredentialStore,
    InMemoryDocumentIndex,
    InMemoryWideColumnStore,
)
from .utils.config_loader import Config, ConfigLoader
from .utils.exceptions import ConfigError, StoreUnavailable
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class AroundApp:
    """Builds every collaborator from settings and owns startup bootstrap"""

    def __init__(self, config: Config):
        self.config = config
        self._es_clients: Dict[str, object] = {}
        self.credentials: Optional[CredentialStore] = None
        self.blob_store: Optional[BlobStore] = None
        self.document_index: Optional[DocumentIndex] = None
        self.wide_column: Optional[WideColumnStore] = None
        self.auth: Optional[AuthService] = None
        self.pipeline: Optional[IngestionPipeline] = None
        self.geo: Optional[GeoQueryEngine] = None

    @classmethod
    def from_settings_file(cls, config_path: Optional[str] = None) -> "AroundApp":
        return cls(ConfigLoader(config_path).load_settings())

    def initialize(self, bootstrap: bool = True) -> "AroundApp":
        """
        Wire stores and services. With bootstrap, make sure every store is
        reachable and has its schema; failure here aborts startup.
        """
        setup_logger(
            log_level=self.config.logging.level,
            log_format=self.config.logging.format,
            file_path=self.config.logging.file_path,
            max_bytes=self.config.logging.max_bytes,
            backup_count=self.config.logging.backup_count,
        )
        logger.info(
            "Initializing around",
            app_name=self.config.app.name,
            version=self.config.app.version,
            environment=self.config.app.environment,
        )

        stores = self.config.stores
        self.credentials = self._build_credentials()
        self.blob_store = self._build_blob_store()
        self.document_index = self._build_document_index()
        self.wide_column = self._build_wide_column()
        logger.info(
            "Stores configured",
            credentials=stores.credentials.backend,
            blob=stores.blob.backend,
            index=stores.index.backend,
            columns=stores.columns.backend,
        )

        if bootstrap:
            self.bootstrap()

        auth = self.config.auth
        self.auth = AuthService(
            credentials=self.credentials,
            tokens=TokenIssuer(
                signing_key=auth.signing_key,
                algorithm=auth.algorithm,
                ttl=timedelta(hours=auth.token_ttl_hours),
            ),
            bcrypt_rounds=auth.bcrypt_rounds,
        )
        self.pipeline = IngestionPipeline(
            blob_store=self.blob_store,
            document_index=self.document_index,
            wide_column=self.wide_column,
            annotator=self._build_annotator(),
        )
        self.geo = GeoQueryEngine(
            self.document_index,
            default_radius_km=self.config.geo.default_radius_km,
            max_results=self.config.geo.max_results,
        )
        logger.info("around started")
        return self

    def bootstrap(self) -> None:
        """Ensure schemas exist, retrying unreachable stores a bounded number of times."""
        retrying = Retrying(
            stop=stop_after_attempt(self.config.stores.bootstrap_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(StoreUnavailable),
            reraise=True,
        )
        for store in (self.credentials, self.blob_store, self.document_index, self.wide_column):
            try:
                retrying(store.ensure_ready)
            except StoreUnavailable as e:
                logger.error("Startup bootstrap failed", store=store.name, error=str(e))
                raise

    def _es_client(self, url: str):
        from .stores.elasticsearch_store import create_client

        if url not in self._es_clients:
            self._es_clients[url] = create_client(url, self.config.stores.timeout_seconds)
        return self._es_clients[url]

    def _build_credentials(self) -> CredentialStore:
        settings = self.config.stores.credentials
        if settings.backend == "memory":
            return InMemoryCredentialStore()
        if settings.backend == "elasticsearch":
            from .stores.elasticsearch_store import ElasticsearchCredentialStore

            return ElasticsearchCredentialStore(self._es_client(settings.url), settings.index)
        raise ConfigError(f"Unknown credential store backend: {settings.backend}")

    def _build_blob_store(self) -> BlobStore:
        settings = self.config.stores.blob
        timeout = self.config.stores.timeout_seconds
        if settings.backend == "memory":
            return InMemoryBlobStore(settings.bucket)
        if settings.backend == "s3":
            from .stores.s3_store import S3BlobStore

            return S3BlobStore(
                bucket=settings.bucket,
                region=settings.region,
                endpoint_url=settings.endpoint_url,
                timeout_seconds=timeout,
            )
        if settings.backend == "cloudinary":
            from .stores.cloudinary_store import CloudinaryBlobStore

            try:
                return CloudinaryBlobStore(
                    cloud_name=settings.cloud_name,
                    api_key=settings.api_key,
                    api_secret=settings.api_secret,
                    folder=settings.folder,
                    timeout_seconds=timeout,
                )
            except ValueError as e:
                raise ConfigError(str(e)) from e
        raise ConfigError(f"Unknown blob store backend: {settings.backend}")

    def _build_document_index(self) -> DocumentIndex:
        settings = self.config.stores.index
        if settings.backend == "memory":
            return InMemoryDocumentIndex()
        if settings.backend == "elasticsearch":
            from .stores.elasticsearch_store import ElasticsearchDocumentIndex

            return ElasticsearchDocumentIndex(self._es_client(settings.url), settings.index)
        raise ConfigError(f"Unknown document index backend: {settings.backend}")

    def _build_wide_column(self) -> WideColumnStore:
        settings = self.config.stores.columns
        if settings.backend == "memory":
            return InMemoryWideColumnStore()
        if settings.backend == "cassandra":
            from .stores.cassandra_store import CassandraWideColumnStore

            return CassandraWideColumnStore(
                hosts=settings.hosts,
                port=settings.port,
                keyspace=settings.keyspace,
                table=settings.table,
                timeout_seconds=self.config.stores.timeout_seconds,
            )
        raise ConfigError(f"Unknown wide-column store backend: {settings.backend}")

    def _build_annotator(self) -> Optional[ImageAnnotator]:
        settings = self.config.annotation
        if not settings.enabled:
            return None
        if not settings.endpoint:
            raise ConfigError("annotation.endpoint is required when annotation is enabled")
        return ImageAnnotator(
            endpoint=settings.endpoint,
            access_token=settings.access_token,
            timeout_seconds=settings.timeout_seconds,
        )
