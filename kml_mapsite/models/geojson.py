"""Pydantic models for the GeoJSON document consumed by the map site.

The site loads ``assets/data/features.geojson``: a ``FeatureCollection``
with a named layer and an explicit CRS84 ``crs`` block. Features are
kept as plain dicts; their properties are owned by the extractors, and
this pipeline only rewrites the image list.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from kml_mapsite.core.constants import CRS84_URN, DEFAULT_COLLECTION_NAME


class CRSProperties(BaseModel):
    name: str = CRS84_URN


class NamedCRS(BaseModel):
    """Legacy GeoJSON 2008 named-CRS member."""

    type: str = "name"
    properties: CRSProperties = Field(default_factory=CRSProperties)


class FeatureCollection(BaseModel):
    """Top-level GeoJSON document.

    Attributes:
        type: Always ``"FeatureCollection"``.
        name: Layer name shown by the map.
        crs: Named CRS block (CRS84, lon/lat order).
        features: GeoJSON ``Feature`` dicts.
    """

    type: str = "FeatureCollection"
    name: str = DEFAULT_COLLECTION_NAME
    crs: NamedCRS = Field(default_factory=NamedCRS)
    features: list[dict[str, Any]] = Field(default_factory=list)


class BatchSummary(BaseModel):
    """Outcome of localising the images of one feature collection.

    Attributes:
        features: Number of features processed.
        features_with_images: Features carrying the image property.
        total: Image references submitted to the ingestor.
        resolved: References that produced a local path.
        absent: References that could not be resolved.
    """

    features: int = 0
    features_with_images: int = 0
    total: int = 0
    resolved: int = 0
    absent: int = 0
