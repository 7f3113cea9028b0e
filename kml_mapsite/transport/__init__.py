"""Image transports.

Implements the transport adapter pattern:
- ImageTransport: Abstract base class defining the interface
- HttpxTransport: Production transport built on ``httpx.Client``
"""

from kml_mapsite.transport.base import ImageTransport
from kml_mapsite.transport.httpx_transport import HttpxTransport

__all__ = [
    "HttpxTransport",
    "ImageTransport",
]
