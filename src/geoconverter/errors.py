"""Exceptions raised inside the conversion core.

None of these escape the public ``convert``/``preview`` boundary: they are
collapsed into an empty result or an ``{"error": ...}`` document there.
"""


class ConversionError(Exception):
    """Base exception for conversion and preview operations."""


class InputMaterializationError(ConversionError):
    """Input bytes could not be staged in the scratch store."""


class OpenFailure(ConversionError):
    """The engine could not open the staged input."""


class DriverUnavailable(ConversionError):
    """The requested output driver is missing or cannot write."""

    def __init__(self, driver_id: str, reason: str = "is not available in this GDAL build"):
        self.driver_id = driver_id
        super().__init__(f"Output driver '{driver_id}' {reason}")


class TranslateFailure(ConversionError):
    """The translate step returned no dataset."""


class EmptyOutputError(ConversionError):
    """Translate succeeded but produced no readable bytes."""


class PartialFamilyFailure(ConversionError):
    """One geometry family of a shapefile split failed. Non-fatal."""

    def __init__(self, layer_name: str, family: str, cause: str):
        self.layer_name = layer_name
        self.family = family
        self.cause = cause
        super().__init__(f"Skipped {family} features of layer '{layer_name}': {cause}")


class CrsResolutionFailure(ConversionError):
    """A user-supplied CRS string could not be parsed."""

    def __init__(self, crs_text: str, cause: str):
        self.crs_text = crs_text
        super().__init__(f"Could not parse CRS '{crs_text}': {cause}")


class InvalidGeometryFilter(ConversionError):
    """A geometry filter names no known geometry type or family."""
