"""
Backing store contracts.

Each adapter raises StoreUnavailable for any connectivity failure, timeout or
rejected call; callers never see a client library exception.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ..models.account import Account
from ..models.post import Post

CREDENTIALS = "credentials"
BLOB = "blob"
INDEX = "index"
COLUMNS = "columns"

# column family -> column -> value
Cells = Dict[str, Dict[str, bytes]]


class CredentialStore(ABC):
    """Username -> stored account record"""

    name = CREDENTIALS

    def ensure_ready(self) -> None:
        """Create whatever schema the backend needs. Called once at startup."""

    @abstractmethod
    def find(self, username: str) -> Optional[Account]:
        ...

    @abstractmethod
    def insert_if_absent(self, account: Account) -> bool:
        """Atomically insert; return False if the username already exists."""


class BlobStore(ABC):
    """Opaque byte payloads under a key"""

    name = BLOB

    def ensure_ready(self) -> None:
        pass

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store bytes verbatim and return the public locator."""

    @abstractmethod
    def set_public_readable(self, key: str) -> None:
        ...


class DocumentIndex(ABC):
    """Post documents with a geo-point location"""

    name = INDEX

    def ensure_ready(self) -> None:
        pass

    @abstractmethod
    def index_now(self, post_id: str, post: Post) -> None:
        """Index and refresh so the post is visible to the next query."""

    @abstractmethod
    def query_by_radius(
        self, lat: float, lon: float, radius_km: float, limit: int = 100
    ) -> List[Post]:
        ...


class WideColumnStore(ABC):
    """Sparse versioned rows keyed by post id"""

    name = COLUMNS

    def ensure_ready(self) -> None:
        pass

    @abstractmethod
    def append_row(self, row_key: str, cells: Cells, timestamp: datetime) -> None:
        ...
