"""KML Map Site Image Pipeline.

Build-time tooling for a static map site: takes the GeoJSON features
extracted from a KML export or CSV sheet, downloads the images they
reference, normalises them into web-sized JPEGs, and rewrites each
feature's image list to point at the local copies.
"""

__version__ = "0.1.0"
