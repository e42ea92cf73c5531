"""In-process store backends for local runs and tests"""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from ..models.account import Account
from ..models.post import Post
from ..utils.exceptions import StoreUnavailable
from ..utils.geo import haversine_km
from .base import BlobStore, Cells, CredentialStore, DocumentIndex, WideColumnStore


class InMemoryCredentialStore(CredentialStore):

    def __init__(self) -> None:
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.Lock()

    def find(self, username: str) -> Optional[Account]:
        with self._lock:
            return self._accounts.get(username)

    def insert_if_absent(self, account: Account) -> bool:
        with self._lock:
            if account.username in self._accounts:
                return False
            self._accounts[account.username] = account
            return True


class InMemoryBlobStore(BlobStore):

    def __init__(self, bucket: str = "post-images") -> None:
        self.bucket = bucket
        self.objects: Dict[str, Tuple[bytes, Optional[str]]] = {}
        self.public: Set[str] = set()
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        with self._lock:
            self.objects[key] = (bytes(data), content_type)
        return f"memory://{self.bucket}/{key}"

    def set_public_readable(self, key: str) -> None:
        with self._lock:
            if key not in self.objects:
                raise StoreUnavailable(self.name, KeyError(key))
            self.public.add(key)


class InMemoryDocumentIndex(DocumentIndex):
    """Insertion-ordered documents; radius queries use great-circle distance."""

    def __init__(self) -> None:
        self.documents: Dict[str, Post] = {}
        self._lock = threading.Lock()

    def index_now(self, post_id: str, post: Post) -> None:
        with self._lock:
            self.documents[post_id] = post

    def query_by_radius(
        self, lat: float, lon: float, radius_km: float, limit: int = 100
    ) -> List[Post]:
        with self._lock:
            posts = list(self.documents.values())
        hits = [
            p for p in posts
            if haversine_km(lat, lon, p.location.lat, p.location.lon) <= radius_km
        ]
        return hits[:limit]


class InMemoryWideColumnStore(WideColumnStore):

    def __init__(self) -> None:
        # row key -> family -> column -> [(timestamp, value), ...]
        self.rows: Dict[str, Dict[str, Dict[str, List[Tuple[datetime, bytes]]]]] = {}
        self._lock = threading.Lock()

    def append_row(self, row_key: str, cells: Cells, timestamp: datetime) -> None:
        with self._lock:
            row = self.rows.setdefault(row_key, {})
            for family, columns in cells.items():
                fam = row.setdefault(family, {})
                for column, value in columns.items():
                    fam.setdefault(column, []).append((timestamp, value))

    def latest(self, row_key: str) -> Dict[str, Dict[str, bytes]]:
        """Newest version of every cell in a row"""
        with self._lock:
            row = self.rows.get(row_key, {})
            return {
                family: {col: max(versions, key=lambda v: v[0])[1] for col, versions in columns.items()}
                for family, columns in row.items()
            }
