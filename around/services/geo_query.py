"""Geo query engine: nearby posts within a radius"""

from typing import List, Optional

from ..models.post import Post
from ..stores.base import DocumentIndex
from ..utils.exceptions import QueryError, StoreUnavailable
from ..utils.geo import parse_point, parse_radius_km
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_RADIUS_KM = 200.0


class GeoQueryEngine:
    """
    Runs point-radius queries against the document index.

    Results keep the index's native order; they are not sorted by distance.
    """

    def __init__(
        self,
        document_index: DocumentIndex,
        default_radius_km: float = DEFAULT_RADIUS_KM,
        max_results: int = 100,
    ):
        self.document_index = document_index
        self.default_radius_km = default_radius_km
        self.max_results = max_results

    def search(self, lat: float, lon: float, radius_km: Optional[float] = None) -> List[Post]:
        radius = radius_km if radius_km is not None else self.default_radius_km
        logger.info("Search received", lat=lat, lon=lon, radius_km=radius)
        try:
            posts = self.document_index.query_by_radius(lat, lon, radius, limit=self.max_results)
        except StoreUnavailable as e:
            logger.error("Search failed", error=str(e))
            raise QueryError(f"Search failed: {e}") from e
        logger.info("Search completed", found=len(posts))
        return posts

    def search_raw(
        self, lat: Optional[str], lon: Optional[str], radius: Optional[str] = None
    ) -> List[Post]:
        """
        Search from unparsed query parameters.

        If either coordinate is missing, non-numeric or out of range the
        search is centered on (0, 0) instead of being rejected.
        """
        logger.debug("Search parameters", raw_lat=lat, raw_lon=lon, raw_range=radius)
        center_lat, center_lon = parse_point(lat, lon)
        return self.search(center_lat, center_lon, parse_radius_km(radius, self.default_radius_km))
