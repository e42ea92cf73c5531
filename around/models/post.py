"""Post data models"""

from enum import Enum
from typing import Any, Dict, FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    """Geo point; serialized as {"lat": ..., "lon": ...} for geo_point mapping"""
    lat: float = Field(0.0, ge=-90.0, le=90.0)
    lon: float = Field(0.0, ge=-180.0, le=180.0)


class Post(BaseModel):
    """Check-in post, shared by id across the blob, index and column stores"""
    id: str
    user: str
    message: str = ""
    url: str = ""
    location: Location = Field(default_factory=Location)
    face: Optional[float] = None

    model_config = ConfigDict(frozen=True)

    @property
    def author(self) -> str:
        return self.user

    @property
    def media_url(self) -> str:
        return self.url

    def to_document(self) -> Dict[str, Any]:
        """Body stored in the document index"""
        return self.model_dump(exclude_none=True)

    @classmethod
    def from_document(cls, doc_id: Optional[str], source: Dict[str, Any]) -> "Post":
        """Decode one index hit into a Post"""
        data = dict(source)
        if doc_id and not data.get("id"):
            data["id"] = doc_id
        return cls(**data)


class IngestStatus(str, Enum):
    """Outcome of a post submission"""
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"


class IngestResult(BaseModel):
    """Submission outcome naming which stores hold the post"""
    status: IngestStatus
    post: Post
    written: FrozenSet[str] = frozenset()
    missing: FrozenSet[str] = frozenset()

    model_config = ConfigDict(frozen=True)
