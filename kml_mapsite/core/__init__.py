"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Named constants (image bounds, recognised extensions, headers)
- exceptions: Custom exception hierarchy
"""
