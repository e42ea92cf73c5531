"""
Post ingestion pipeline.

One submission becomes state in up to three stores, all keyed by the same
freshly minted post id:

1. media bytes -> blob store (made public-read); failure aborts everything
2. post record -> document index (refreshed immediately)
3. post record -> wide-column store (one row, one cell per attribute)

Steps 2 and 3 are independent and not transactional. A completed write is
never rolled back when its sibling fails; the result names the stores that
are missing the post so the caller can retry them with retry_missing().
"""

from __future__ import annotations

import contextlib
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Dict, List, Optional

from ..models.post import IngestResult, IngestStatus, Location, Post
from ..stores.base import BlobStore, Cells, DocumentIndex, WideColumnStore
from ..utils.exceptions import (
    AnnotationFailed,
    BlobStoreFailed,
    PartialWriteFailure,
    StoreUnavailable,
)
from ..utils.geo import parse_point
from ..utils.logger import get_logger
from .annotation import ImageAnnotator

logger = get_logger(__name__)


@dataclass
class Submission:
    """Decoded multipart form of one post request"""
    message: str
    lat: float
    lon: float
    media: Optional[BinaryIO] = None
    content_type: Optional[str] = None


def parse_submission(
    message: Optional[str],
    lat: Optional[str],
    lon: Optional[str],
    media: Optional[BinaryIO] = None,
    content_type: Optional[str] = None,
) -> Submission:
    """
    Build a Submission from raw form values.

    A malformed or out-of-range coordinate puts the post at (0, 0) rather
    than failing the request.
    """
    point_lat, point_lon = parse_point(lat, lon)
    return Submission(
        message=message or "",
        lat=point_lat,
        lon=point_lon,
        media=media,
        content_type=content_type,
    )


def new_post_id() -> str:
    """128-bit random id shared by every store the post lands in"""
    return str(uuid.uuid4())


def post_to_cells(post: Post) -> Cells:
    """Wide-column layout: family "post" for content, "location" for the point"""
    cells: Cells = {
        "post": {
            "user": post.user.encode("utf-8"),
            "message": post.message.encode("utf-8"),
            "url": post.url.encode("utf-8"),
        },
        "location": {
            "lat": repr(post.location.lat).encode("ascii"),
            "lon": repr(post.location.lon).encode("ascii"),
        },
    }
    if post.face is not None:
        cells["post"]["face"] = repr(post.face).encode("ascii")
    return cells


class IngestionPipeline:
    """Orchestrates one post submission across the blob, index and column stores"""

    def __init__(
        self,
        blob_store: BlobStore,
        document_index: DocumentIndex,
        wide_column: WideColumnStore,
        annotator: Optional[ImageAnnotator] = None,
        id_factory: Callable[[], str] = new_post_id,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.blob_store = blob_store
        self.document_index = document_index
        self.wide_column = wide_column
        self.annotator = annotator
        self.id_factory = id_factory
        self.clock = clock

    def submit(self, author: str, submission: Submission) -> IngestResult:
        """
        Ingest one post for an authenticated author.

        The media stream, if any, is closed before this returns on every path.

        Raises:
            BlobStoreFailed: media upload or ACL update failed; nothing else was written
            PartialWriteFailure: neither the index nor the column store accepted the post
        """
        post_id = self.id_factory()
        logger.info("Received one post request", post_id=post_id, author=author)

        url = ""
        face = None
        if submission.media is not None:
            with contextlib.closing(submission.media) as stream:
                data = stream.read()
            url = self._store_media(post_id, data, submission.content_type)
            face = self._annotate(post_id, data)

        post = Post(
            id=post_id,
            user=author,
            message=submission.message,
            url=url,
            location=Location(lat=submission.lat, lon=submission.lon),
            face=face,
        )

        written = {self.blob_store.name} if url else set()
        missing = self._fan_out(post, [self.document_index.name, self.wide_column.name])
        secondary_written = {self.document_index.name, self.wide_column.name} - missing
        written |= secondary_written

        if not secondary_written:
            raise PartialWriteFailure(post, written=written, missing=missing)
        return self._result(post, written, missing)

    def retry_missing(self, result: IngestResult) -> IngestResult:
        """Re-attempt only the secondary writes a previous submission missed."""
        if not result.missing:
            return result
        missing = self._fan_out(result.post, sorted(result.missing))
        written = set(result.written) | (set(result.missing) - missing)
        return self._result(result.post, written, missing)

    def _store_media(self, post_id: str, data: bytes, content_type: Optional[str]) -> str:
        try:
            url = self.blob_store.put(post_id, data, content_type)
            self.blob_store.set_public_readable(post_id)
        except StoreUnavailable as e:
            logger.error("Media upload failed", post_id=post_id, error=str(e))
            raise BlobStoreFailed(post_id, e) from e
        return url

    def _annotate(self, post_id: str, data: bytes) -> Optional[float]:
        if self.annotator is None:
            return None
        try:
            return self.annotator.score(data)
        except AnnotationFailed as e:
            logger.warning("Annotation skipped", post_id=post_id, error=str(e))
            return None

    def _fan_out(self, post: Post, targets: List[str]) -> set:
        """Run the named secondary writes; return the names that failed."""
        timestamp = self.clock()
        writers: Dict[str, Callable[[], None]] = {
            self.document_index.name: lambda: self.document_index.index_now(post.id, post),
            self.wide_column.name: lambda: self.wide_column.append_row(
                post.id, post_to_cells(post), timestamp
            ),
        }
        missing = set()
        for name in targets:
            try:
                writers[name]()
            except StoreUnavailable as e:
                logger.warning("Secondary write failed", post_id=post.id, store=name, error=str(e))
                missing.add(name)
        return missing

    @staticmethod
    def _result(post: Post, written: set, missing: set) -> IngestResult:
        status = IngestStatus.PARTIAL_SUCCESS if missing else IngestStatus.FULL_SUCCESS
        if missing:
            logger.warning(
                "Post partially recorded",
                post_id=post.id,
                written=sorted(written),
                missing=sorted(missing),
            )
        else:
            logger.info("Post recorded", post_id=post.id, stores=sorted(written))
        return IngestResult(
            status=status,
            post=post,
            written=frozenset(written),
            missing=frozenset(missing),
        )
