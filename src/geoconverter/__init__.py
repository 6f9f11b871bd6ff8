"""Vector dataset conversion and preview on top of GDAL/OGR."""

from .converter import GeoConverter, convert, preview
from .engine import engine_version_info
from .formats import VectorFormat, detect_format, resolve_format
from .models import ConversionRequest, ConversionResult

__all__ = [
    "ConversionRequest",
    "ConversionResult",
    "GeoConverter",
    "VectorFormat",
    "convert",
    "detect_format",
    "engine_version_info",
    "preview",
    "resolve_format",
]
