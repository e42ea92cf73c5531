"""Elasticsearch-backed document index and credential store"""

from typing import List, Optional

from elasticsearch import ApiError, ConflictError, Elasticsearch, NotFoundError, TransportError

from ..models.account import Account
from ..models.post import Post
from ..utils.exceptions import StoreUnavailable
from ..utils.logger import get_logger
from .base import CredentialStore, DocumentIndex

logger = get_logger(__name__)

POST_MAPPINGS = {
    "properties": {
        "id": {"type": "keyword"},
        "user": {"type": "keyword"},
        "message": {"type": "text"},
        "url": {"type": "keyword", "index": False},
        "location": {"type": "geo_point"},
        "face": {"type": "float"},
    }
}

USER_MAPPINGS = {
    "properties": {
        "username": {"type": "keyword"},
        "password_hash": {"type": "keyword", "index": False},
        "age": {"type": "integer"},
        "gender": {"type": "keyword"},
    }
}

STORE_ERRORS = (ApiError, TransportError)


def create_client(url: str, timeout_seconds: float) -> Elasticsearch:
    """Build a client whose every request is bounded by timeout_seconds"""
    return Elasticsearch(url, request_timeout=timeout_seconds, max_retries=0)


def _ensure_index(client: Elasticsearch, index: str, mappings: dict, store: str) -> None:
    try:
        if client.indices.exists(index=index):
            return
        client.indices.create(index=index, mappings=mappings)
        logger.info("Index created", index=index)
    except STORE_ERRORS as e:
        raise StoreUnavailable(store, e) from e


class ElasticsearchDocumentIndex(DocumentIndex):
    """Posts indexed by id with a geo_point on location"""

    def __init__(self, client: Elasticsearch, index: str = "around"):
        self.client = client
        self.index = index

    def ensure_ready(self) -> None:
        _ensure_index(self.client, self.index, POST_MAPPINGS, self.name)

    def index_now(self, post_id: str, post: Post) -> None:
        try:
            self.client.index(
                index=self.index,
                id=post_id,
                document=post.to_document(),
                refresh=True,
            )
        except STORE_ERRORS as e:
            raise StoreUnavailable(self.name, e) from e
        logger.info("Post saved to index", post_id=post_id, index=self.index)

    def query_by_radius(
        self, lat: float, lon: float, radius_km: float, limit: int = 100
    ) -> List[Post]:
        query = {
            "geo_distance": {
                "distance": f"{radius_km}km",
                "location": {"lat": lat, "lon": lon},
            }
        }
        try:
            response = self.client.search(index=self.index, query=query, size=limit)
        except STORE_ERRORS as e:
            raise StoreUnavailable(self.name, e) from e

        hits = response["hits"]["hits"]
        logger.info(
            "Geo query executed",
            took_ms=response.get("took"),
            total_hits=response["hits"]["total"]["value"],
            returned=len(hits),
        )
        return [Post.from_document(hit.get("_id"), hit["_source"]) for hit in hits]


class ElasticsearchCredentialStore(CredentialStore):
    """Accounts stored as documents whose id is the username"""

    def __init__(self, client: Elasticsearch, index: str = "around-users"):
        self.client = client
        self.index = index

    def ensure_ready(self) -> None:
        _ensure_index(self.client, self.index, USER_MAPPINGS, self.name)

    def find(self, username: str) -> Optional[Account]:
        try:
            response = self.client.get(index=self.index, id=username)
        except NotFoundError:
            return None
        except STORE_ERRORS as e:
            raise StoreUnavailable(self.name, e) from e
        return Account(**response["_source"])

    def insert_if_absent(self, account: Account) -> bool:
        try:
            self.client.create(
                index=self.index,
                id=account.username,
                document=account.model_dump(),
                refresh=True,
            )
        except ConflictError:
            return False
        except STORE_ERRORS as e:
            raise StoreUnavailable(self.name, e) from e
        return True
