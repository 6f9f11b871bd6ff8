"""Estimate a WGS84 bounding box for an extent given in another CRS."""

from __future__ import annotations

import math
import re

from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from .crs import WGS84_EPSG, engine_definition, is_wgs84
from .models import ExtentBox, ExtentEstimate

# Points sampled per edge, corners included.
SAMPLES_PER_EDGE = 9

# Projected CRSs on the WGS84 datum (UTM zones, Web Mercator) also mention
# WGS 84, so labels naming a projection are excluded from the shortcut.
_WGS84_LABEL = re.compile(r"epsg:4326(?!\d)|wgs ?84|crs84", re.IGNORECASE)
_PROJECTION_MARKERS = re.compile(r"projcs\[|projcrs\[|utm|mercator", re.IGNORECASE)
_PROJ_PARAM = re.compile(r"\+proj=(\w+)", re.IGNORECASE)
_GEOGRAPHIC_PROJ = {"longlat", "latlong", "lonlat", "latlon"}


def _looks_like_wgs84(label: str) -> bool:
    """Cheap textual test: mentions WGS84 and does not name a projection."""
    if not _WGS84_LABEL.search(label):
        return False
    if _PROJECTION_MARKERS.search(label):
        return False
    proj = _PROJ_PARAM.search(label)
    return proj is None or proj.group(1).lower() in _GEOGRAPHIC_PROJ


def _transformer_to_wgs84(source: CRS) -> Transformer:
    return Transformer.from_crs(source, CRS.from_epsg(WGS84_EPSG), always_xy=True)


def boundary_samples(extent: ExtentBox, per_edge: int = SAMPLES_PER_EDGE) -> list[tuple[float, float]]:
    """Evenly spaced points along the four edges of ``extent``."""
    steps = [i / (per_edge - 1) for i in range(per_edge)]
    width = extent.max_x - extent.min_x
    height = extent.max_y - extent.min_y
    points = []
    for t in steps:
        points.append((extent.min_x + t * width, extent.min_y))  # bottom
        points.append((extent.min_x + t * width, extent.max_y))  # top
        points.append((extent.min_x, extent.min_y + t * height))  # left
        points.append((extent.max_x, extent.min_y + t * height))  # right
    return points


def estimate_wgs84_extent(
    extent: ExtentBox,
    source_crs_label: str,
    definition: str | None = None,
) -> ExtentEstimate:
    """Reproject an extent to WGS84 by transforming points along its boundary.

    Transforming only the corners undershoots for curved projections, so the
    box is the min/max over 36 boundary samples. Failures never raise: the
    original extent comes back with ``reprojected=False`` and the reason in
    ``debug``.

    Args:
        extent: Extent in the source CRS.
        source_crs_label: Display label of the source CRS, used for the
            textual WGS84 check and as the definition when none is given.
        definition: Parseable definition (e.g. WKT) of the same CRS.
    """
    label = (source_crs_label or "").strip()

    def unchanged(reason: str) -> ExtentEstimate:
        return ExtentEstimate(box=extent, original=extent, reprojected=False, debug=reason)

    if not label:
        return unchanged("Source CRS is empty")
    if _looks_like_wgs84(label):
        return unchanged("Already WGS84")

    text = definition or label
    try:
        source = CRS.from_user_input(engine_definition(text))
    except CRSError as exc:
        return unchanged(f"Could not parse source CRS: {exc}")
    if is_wgs84(source):
        return unchanged("Already WGS84")

    try:
        transformer = _transformer_to_wgs84(source)
        xs, ys = zip(*boundary_samples(extent))
        lons, lats = transformer.transform(xs, ys)
    except (CRSError, ProjError) as exc:
        return unchanged(f"Transform to WGS84 failed: {exc}")

    lons, lats = list(lons), list(lats)
    if not all(math.isfinite(v) for v in lons + lats):
        return unchanged("Transform to WGS84 produced non-finite coordinates")

    box = ExtentBox(min_x=min(lons), min_y=min(lats), max_x=max(lons), max_y=max(lats))
    return ExtentEstimate(
        box=box,
        original=extent,
        reprojected=True,
        debug=f"Transformed {len(lons)} boundary points from {label} to EPSG:{WGS84_EPSG}",
    )
