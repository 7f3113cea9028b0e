"""Shared utility modules.

- image_paths: URL-derived identity, extension guessing, public paths
- helpers: Small formatting and filesystem helpers
"""
