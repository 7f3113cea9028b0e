"""Pipeline activities.

- ingest_images: Two-tier image cache (resolve, resolve_batch)
- transcode_image: Pillow-based JPEG normalisation
"""
