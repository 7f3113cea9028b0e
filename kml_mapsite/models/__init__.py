"""Data models and schemas.

Defines the data structures used throughout the pipeline:
- ImageIdentity: URL-derived cache key
- FetchedImage / TranscodedImage: Transport and transcoder payloads
- FeatureCollection: GeoJSON document written for the map site
- BatchSummary: Per-run image localisation summary
"""

from kml_mapsite.models.geojson import BatchSummary, FeatureCollection
from kml_mapsite.models.image import (
    FetchedImage,
    ImageIdentity,
    ModelValidationError,
    ResolutionSource,
    TranscodedImage,
)

__all__ = [
    "BatchSummary",
    "FeatureCollection",
    "FetchedImage",
    "ImageIdentity",
    "ModelValidationError",
    "ResolutionSource",
    "TranscodedImage",
]
