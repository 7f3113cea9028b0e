"""Pipeline orchestration.

- map_pipeline: Localise feature images and write the site GeoJSON
"""
