"""Ingestion, query and annotation services"""

from .annotation import ImageAnnotator
from .geo_query import GeoQueryEngine
from .ingestion import IngestionPipeline, Submission, parse_submission

__all__ = [
    "ImageAnnotator",
    "GeoQueryEngine",
    "IngestionPipeline",
    "Submission",
    "parse_submission",
]
