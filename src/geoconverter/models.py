"""Pydantic data models for the conversion core."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class FormatDescriptor(BaseModel):
    """A supported vector format and the GDAL driver that handles it."""

    model_config = ConfigDict(frozen=True)

    logical_name: str
    label: str
    driver_id: str
    file_extension: str
    download_extension: str
    is_multi_file: bool = False
    readable: bool = True
    writable: bool = True
    detect_extensions: tuple[str, ...] = ()
    open_options: tuple[str, ...] = ()


class CsvGeometryMode(str, Enum):
    WKT = "WKT"
    XY = "XY"


class GeometryFamily(str, Enum):
    """Geometry groups a Shapefile can hold one of per file."""

    POINT = "point"
    MULTIPOINT = "multipoint"
    LINE = "line"
    POLYGON = "polygon"

    @property
    def predicate(self) -> str:
        return _FAMILY_PREDICATES[self]

    @property
    def suffix(self) -> str:
        return _FAMILY_SUFFIXES[self]

    @property
    def promote_to_multi(self) -> str | None:
        return _FAMILY_PROMOTIONS.get(self)


_FAMILY_PREDICATES = {
    GeometryFamily.POINT: "OGR_GEOMETRY = 'POINT'",
    GeometryFamily.MULTIPOINT: "OGR_GEOMETRY = 'MULTIPOINT'",
    GeometryFamily.LINE: "(OGR_GEOMETRY = 'LINESTRING' OR OGR_GEOMETRY = 'MULTILINESTRING')",
    GeometryFamily.POLYGON: "(OGR_GEOMETRY = 'POLYGON' OR OGR_GEOMETRY = 'MULTIPOLYGON')",
}
_FAMILY_SUFFIXES = {
    GeometryFamily.POINT: "points",
    GeometryFamily.MULTIPOINT: "multipoints",
    GeometryFamily.LINE: "lines",
    GeometryFamily.POLYGON: "polygons",
}
_FAMILY_PROMOTIONS = {
    GeometryFamily.LINE: "MULTILINESTRING",
    GeometryFamily.POLYGON: "MULTIPOLYGON",
}


class Severity(str, Enum):
    WARNING = "warning"
    FAILURE = "failure"


class DiagnosticMessage(BaseModel):
    """A warning or failure reported by the engine or the core."""

    model_config = ConfigDict(frozen=True)

    text: str
    severity: Severity


class ExtentBox(BaseModel):
    """Axis-aligned bounding box in some CRS."""

    model_config = ConfigDict(frozen=True)

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def from_ogr(cls, envelope: tuple[float, float, float, float]) -> ExtentBox:
        """Build from an OGR ``(min_x, max_x, min_y, max_y)`` envelope."""
        min_x, max_x, min_y, max_y = envelope
        return cls(min_x=min_x, min_y=min_y, max_x=max_x, max_y=max_y)

    def as_list(self) -> list[float]:
        return [self.min_x, self.min_y, self.max_x, self.max_y]


class ExtentEstimate(BaseModel):
    """Result of estimating a WGS84 extent from a projected one."""

    box: ExtentBox
    original: ExtentBox
    reprojected: bool
    debug: str


class FieldPreview(BaseModel):
    """One attribute of the first feature, with a coarse type label."""

    name: str
    value: int | float | str | None = None
    type: str


class PreviewDocument(BaseModel):
    """JSON preview of a dataset, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    layers: int
    layer_name: str
    feature_count: int
    geometry_type: str
    crs: str
    bbox: list[float] | None = None
    bbox_original: list[float] | None = None
    bbox_reprojected: bool = False
    debug_transform: str = ""
    properties: list[FieldPreview] = Field(default_factory=list)


class ConversionRequest(BaseModel):
    """Everything needed to convert one input payload."""

    input_bytes: bytes
    input_format: str = "geojson"
    output_format: str = "geojson"
    source_crs: str | None = None
    target_crs: str | None = None
    layer_name: str | None = None
    geometry_filter: str | None = None
    where: str | None = None
    select_fields: list[str] | None = None
    simplify_tolerance: float = Field(0.0, ge=0)
    explode_collections: bool = True
    preserve_fid: bool = False
    skip_failures: bool = False
    make_valid: bool = False
    keep_z: bool = False
    output_precision: int = Field(7, ge=0, le=17)
    csv_geometry_mode: CsvGeometryMode = CsvGeometryMode.WKT

    @field_validator("source_crs", "target_crs", "layer_name", "geometry_filter", "where", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("select_fields", mode="before")
    @classmethod
    def _split_fields(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        if value is None:
            return None
        fields = [name.strip() for name in value if name and name.strip()]
        return fields or None

    @field_validator("csv_geometry_mode", mode="before")
    @classmethod
    def _upper_mode(cls, value):
        return value.upper() if isinstance(value, str) else value


class ConversionResult(BaseModel):
    """Output of a conversion. Empty ``output_bytes`` means failure."""

    output_bytes: bytes = b""
    driver_used: str
    file_extension: str = ""
    diagnostic: str | None = None

    @property
    def ok(self) -> bool:
        return len(self.output_bytes) > 0
