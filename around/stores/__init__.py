"""Backing store adapters"""

from .base import (
    BLOB,
    COLUMNS,
    CREDENTIALS,
    INDEX,
    BlobStore,
    CredentialStore,
    DocumentIndex,
    WideColumnStore,
)
from .memory import (
    InMemoryBlobStore,
    InMemoryCredentialStore,
    InMemoryDocumentIndex,
    InMemoryWideColumnStore,
)

# Network backends are imported by around.app only when selected in settings.

__all__ = [
    "BLOB",
    "COLUMNS",
    "CREDENTIALS",
    "INDEX",
    "BlobStore",
    "CredentialStore",
    "DocumentIndex",
    "WideColumnStore",
    "InMemoryBlobStore",
    "InMemoryCredentialStore",
    "InMemoryDocumentIndex",
    "InMemoryWideColumnStore",
]
