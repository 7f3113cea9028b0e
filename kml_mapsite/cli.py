"""Command-line entry point: localise the images of a GeoJSON file.

This module is purely the wiring layer between the command line and the
pipeline: it loads configuration, builds the transport and ingestor,
and hands the features to ``map_pipeline``.

Usage::

    mapsite-images assets/data/features.geojson --workers 4 -v
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path

from kml_mapsite.activities.ingest_images import ImageIngestor
from kml_mapsite.core.config import IngestConfig
from kml_mapsite.core.constants import (
    DEFAULT_COLLECTION_NAME,
    DEFAULT_GEOJSON_PATH,
    DEFAULT_IMAGE_PROPERTY,
)
from kml_mapsite.core.exceptions import PipelineError
from kml_mapsite.orchestrators.map_pipeline import (
    load_features,
    localise_feature_images,
    write_geojson,
)
from kml_mapsite.transport.httpx_transport import HttpxTransport

logger = logging.getLogger("kml_mapsite.cli")

_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def _new_run_id() -> str:
    """Short id tying together the log lines and error payload of one run."""
    return uuid.uuid4().hex[:12]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapsite-images",
        description="Download, normalise and localise the images referenced by map features.",
    )
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=Path(DEFAULT_GEOJSON_PATH),
        help=f"GeoJSON FeatureCollection to process (default: {DEFAULT_GEOJSON_PATH})",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="where to write the result (default: overwrite INPUT)",
    )
    parser.add_argument("--images-dir", default=None, help="image cache directory")
    parser.add_argument(
        "--public-url-prefix",
        default=None,
        help="prefix of the image references written to the GeoJSON",
    )
    parser.add_argument(
        "--image-property",
        default=DEFAULT_IMAGE_PROPERTY,
        help=f"feature property holding image URLs (default: {DEFAULT_IMAGE_PROPERTY})",
    )
    parser.add_argument("--workers", type=int, default=None, help="concurrent downloads")
    parser.add_argument(
        "--keep-missing",
        action="store_true",
        help="keep unresolved images as null instead of dropping them",
    )
    parser.add_argument("--name", default=DEFAULT_COLLECTION_NAME, help="GeoJSON layer name")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=_LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
    run_id = _new_run_id()
    logger.info("Run started | run_id=%s | input=%s", run_id, args.input)

    try:
        config = IngestConfig.from_env().with_overrides(
            images_dir=args.images_dir,
            public_url_prefix=args.public_url_prefix,
            max_workers=args.workers,
        )
        features = load_features(args.input)

        with HttpxTransport.from_config(config) as transport:
            ingestor = ImageIngestor(config, transport)
            updated, summary = localise_feature_images(
                features,
                ingestor,
                image_property=args.image_property,
                drop_missing=not args.keep_missing,
            )

        write_geojson(updated, args.output or args.input, name=args.name)
    except PipelineError as exc:
        if not exc.correlation_id:
            exc.correlation_id = run_id
        logger.error("Pipeline failed | %s", exc.to_error_dict())
        return 1
    except (OSError, ValueError) as exc:
        logger.error("Pipeline failed | run_id=%s | error=%s", run_id, exc)
        return 1

    logger.info(
        "Done | run_id=%s | resolved=%d | absent=%d | images_dir=%s | cache=%s",
        run_id,
        summary.resolved,
        summary.absent,
        ingestor.images_dir,
        ingestor.stats,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
