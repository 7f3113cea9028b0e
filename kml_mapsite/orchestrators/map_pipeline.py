"""Map pipeline orchestrator: localise the images of a feature collection.

Coordinates the caller side of the image ingestor:

1. Load features (GeoJSON ``FeatureCollection`` or bare feature list)
2. Normalise each feature's image property into an ordered URL list
3. Resolve every URL in a single batch, so a URL shared by several
   features is fetched once (and coalesced under concurrency)
4. Write the resolved references back per feature, in input order
5. Write the ``FeatureCollection`` the map site loads

Input features are never mutated; step 4 works on copies.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kml_mapsite.core.constants import DEFAULT_COLLECTION_NAME, DEFAULT_IMAGE_PROPERTY
from kml_mapsite.core.exceptions import ContractError, WriteError
from kml_mapsite.models.geojson import BatchSummary, FeatureCollection

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kml_mapsite.activities.ingest_images import ImageIngestor

logger = logging.getLogger("kml_mapsite.orchestrators.map_pipeline")


class FeatureContractError(ContractError):
    """Raised when features do not have the shape the extractors produce."""

    default_stage = "map_pipeline"
    default_code = "FEATURE_CONTRACT_VIOLATION"


def normalize_image_urls(value: object) -> list[str]:
    """Normalise an image property value into an ordered list of strings.

    Accepted shapes:
        - ``None`` → ``[]``
        - ``str`` → whitespace-separated URLs (KML media links pack
          several URLs into one value)
        - ``list`` / ``tuple`` → string items in order, blanks dropped
        - ``dict`` → values in insertion order, blanks dropped

    Raises:
        FeatureContractError: For any other type, or non-string items.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, dict):
        items: Sequence[object] = list(value.values())
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        msg = f"Image property must be a string, list or mapping, got {type(value).__name__}"
        raise FeatureContractError(msg)

    urls: list[str] = []
    for item in items:
        if item is None:
            continue
        if not isinstance(item, str):
            msg = f"Image entries must be strings, got {type(item).__name__}: {item!r}"
            raise FeatureContractError(msg)
        stripped = item.strip()
        if stripped:
            urls.append(stripped)
    return urls


def localise_feature_images(
    features: Sequence[dict[str, Any]],
    ingestor: ImageIngestor,
    *,
    image_property: str = DEFAULT_IMAGE_PROPERTY,
    drop_missing: bool = True,
) -> tuple[list[dict[str, Any]], BatchSummary]:
    """Replace each feature's image URLs with local references.

    Args:
        features: GeoJSON ``Feature`` dicts.
        ingestor: The run's ``ImageIngestor``.
        image_property: Property name holding the image URLs.
        drop_missing: Omit unresolved images (default). When ``False``
            they are kept as ``None`` so the page can show a placeholder.

    Returns:
        Tuple of (new feature list, ``BatchSummary``).

    Raises:
        FeatureContractError: If a feature or its image property is malformed.
        WriteError: If the images directory is unwritable.
    """
    updated = [copy.deepcopy(feature) for feature in features]

    # (feature index, start offset, count) per feature carrying images
    spans: list[tuple[int, int, int]] = []
    batch: list[str] = []
    for index, feature in enumerate(updated):
        properties = _properties_of(feature, index)
        if properties.get(image_property) is None:
            continue
        urls = normalize_image_urls(properties[image_property])
        spans.append((index, len(batch), len(urls)))
        batch.extend(urls)

    results = ingestor.resolve_batch(batch)

    for index, start, count in spans:
        resolved = results[start : start + count]
        if drop_missing:
            resolved = [path for path in resolved if path is not None]
        updated[index]["properties"][image_property] = resolved

    summary = BatchSummary(
        features=len(updated),
        features_with_images=len(spans),
        total=len(batch),
        resolved=sum(1 for path in results if path is not None),
        absent=sum(1 for path in results if path is None),
    )
    logger.info(
        "Feature images localised | features=%d | with_images=%d | resolved=%d/%d",
        summary.features,
        summary.features_with_images,
        summary.resolved,
        summary.total,
    )
    return updated, summary


def load_features(path: Path) -> list[dict[str, Any]]:
    """Read features from a GeoJSON file.

    Accepts a ``FeatureCollection`` object or a bare list of features.

    Raises:
        FeatureContractError: If the file is not JSON or has another shape.
    """
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"{path} is not valid JSON: {exc}"
        raise FeatureContractError(msg) from exc

    if isinstance(document, dict) and document.get("type") == "FeatureCollection":
        features = document.get("features")
    elif isinstance(document, list):
        features = document
    else:
        msg = f"{path} must hold a FeatureCollection or a list of features"
        raise FeatureContractError(msg)

    if not isinstance(features, list) or not all(isinstance(f, dict) for f in features):
        msg = f"{path}: features must be a list of objects"
        raise FeatureContractError(msg)
    return features


def write_geojson(
    features: Sequence[dict[str, Any]],
    path: Path,
    *,
    name: str = DEFAULT_COLLECTION_NAME,
) -> Path:
    """Write *features* as a CRS84 ``FeatureCollection`` to *path*.

    Raises:
        WriteError: If the file cannot be written.
    """
    collection = FeatureCollection(name=name, features=list(features))
    output = Path(path)
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(collection.model_dump_json(indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to write GeoJSON to {output}: {exc}"
        raise WriteError(str(output), msg) from exc

    logger.info("Saved GeoJSON | path=%s | features=%d", output, len(collection.features))
    return output


def _properties_of(feature: dict[str, Any], index: int) -> dict[str, Any]:
    properties = feature.get("properties")
    if properties is None:
        return {}
    if not isinstance(properties, dict):
        msg = f"Feature #{index} has non-object properties: {type(properties).__name__}"
        raise FeatureContractError(msg)
    return properties
