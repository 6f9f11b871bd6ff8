"""CRS classification and the assign/transform policy for conversions."""

from __future__ import annotations

import re
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict
from pyproj import CRS
from pyproj.exceptions import CRSError

from .errors import CrsResolutionFailure

WGS84_EPSG = 4326

# Names users type for common systems, resolved to their EPSG codes.
WELL_KNOWN_NAMES = {
    "wgs84": 4326,
    "wgs 84": 4326,
    "wgs-84": 4326,
    "crs84": 4326,
    "web mercator": 3857,
    "pseudo mercator": 3857,
    "pseudo-mercator": 3857,
    "google mercator": 3857,
    "etrs89": 4258,
    "nad83": 4269,
    "british national grid": 27700,
    "lambert 93": 2154,
}

_EPSG_RE = re.compile(r"^\s*(?:epsg\s*:\s*)?(\d{4,6})\s*$", re.IGNORECASE)


class EpsgCode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["epsg"] = "epsg"
    code: int

    @property
    def definition(self) -> str:
        return f"EPSG:{self.code}"


class WellKnownName(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["name"] = "name"
    name: str
    epsg: int

    @property
    def definition(self) -> str:
        return f"EPSG:{self.epsg}"


class RawDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["raw"] = "raw"
    text: str

    @property
    def definition(self) -> str:
        return self.text


CrsIdentifier = Union[EpsgCode, WellKnownName, RawDefinition]


def classify_crs(text: str) -> CrsIdentifier:
    """Classify a user CRS string into an EPSG code, a known name, or a raw definition.

    ``"EPSG:3857"`` and ``"3857"`` are EPSG codes, ``"WGS84"`` and
    ``"Web Mercator"`` are well-known names, WKT and PROJ strings stay raw.
    """
    stripped = text.strip()
    match = _EPSG_RE.match(stripped)
    if match:
        return EpsgCode(code=int(match.group(1)))
    normalized = " ".join(stripped.lower().split())
    if normalized in WELL_KNOWN_NAMES:
        return WellKnownName(name=stripped, epsg=WELL_KNOWN_NAMES[normalized])
    return RawDefinition(text=stripped)


def engine_definition(text: str) -> str:
    """Definition string to hand to the engine for a user CRS."""
    return classify_crs(text).definition


def parse_spatial_reference(text: str) -> CRS:
    """Parse any user CRS input with pyproj.

    Raises:
        CrsResolutionFailure: if pyproj cannot interpret the input.
    """
    if not text or not text.strip():
        raise CrsResolutionFailure(text or "", "empty CRS definition")
    try:
        return CRS.from_user_input(engine_definition(text))
    except CRSError as exc:
        raise CrsResolutionFailure(text, str(exc)) from exc


def is_wgs84(crs: CRS) -> bool:
    return crs.equals(CRS.from_epsg(WGS84_EPSG), ignore_axis_order=True)


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------


class NoCrsChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"

    def to_options(self) -> list[str]:
        return []


class AssignOnly(BaseModel):
    """Relabel the data with ``crs`` without touching coordinates."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["assign"] = "assign"
    crs: str

    def to_options(self) -> list[str]:
        return ["-a_srs", self.crs]


class TransformOnly(BaseModel):
    """Reproject from the dataset's own CRS to ``target_crs``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transform"] = "transform"
    target_crs: str

    def to_options(self) -> list[str]:
        return ["-t_srs", self.target_crs]


class AssignThenTransform(BaseModel):
    """Override the dataset CRS with ``source_crs``, then reproject to ``target_crs``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["assign_transform"] = "assign_transform"
    source_crs: str
    target_crs: str

    def to_options(self) -> list[str]:
        return ["-s_srs", self.source_crs, "-t_srs", self.target_crs]


CrsDirective = Union[NoCrsChange, AssignOnly, TransformOnly, AssignThenTransform]


def resolve_crs_directive(
    source_crs: str | None,
    target_crs: str | None,
    embedded_crs: str | None,
) -> CrsDirective:
    """Decide whether to assign, transform, both, or leave the CRS alone.

    User intent outranks file metadata: a user source CRS always replaces
    whatever the dataset claims. A lone target CRS is assigned to CRS-less
    data and used as a reprojection target otherwise.
    """
    source = classify_crs(source_crs) if source_crs and source_crs.strip() else None
    target = classify_crs(target_crs) if target_crs and target_crs.strip() else None

    if source is not None and target is not None and source.definition != target.definition:
        return AssignThenTransform(source_crs=source.definition, target_crs=target.definition)
    if source is not None:
        return AssignOnly(crs=source.definition)
    if target is not None:
        if not embedded_crs:
            return AssignOnly(crs=target.definition)
        return TransformOnly(target_crs=target.definition)
    return NoCrsChange()
