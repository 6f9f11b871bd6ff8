"""Build the ``VectorTranslate`` argument list for one conversion."""

from __future__ import annotations

from .crs import CrsDirective, NoCrsChange
from .engine import quote_identifier
from .errors import InvalidGeometryFilter
from .models import ConversionRequest, CsvGeometryMode, GeometryFamily

_FAMILY_ALIASES = {
    "point": GeometryFamily.POINT,
    "points": GeometryFamily.POINT,
    "multipoint": GeometryFamily.MULTIPOINT,
    "multipoints": GeometryFamily.MULTIPOINT,
    "line": GeometryFamily.LINE,
    "lines": GeometryFamily.LINE,
    "polygon": GeometryFamily.POLYGON,
    "polygons": GeometryFamily.POLYGON,
}

# Exact OGR geometry names, matched against OGR_GEOMETRY as-is.
_OGR_TYPE_NAMES = {
    "linestring": "LINESTRING",
    "multilinestring": "MULTILINESTRING",
    "multipolygon": "MULTIPOLYGON",
    "geometrycollection": "GEOMETRYCOLLECTION",
}


def geometry_predicate(text: str) -> str:
    """Translate a geometry filter into an OGR-SQL predicate.

    Accepts family names (``point``, ``lines``, ``polygons``...) and OGR type
    names (``LineString``, ``MultiPolygon``...), comma separated; several
    entries are OR-ed together.

    Raises:
        InvalidGeometryFilter: if an entry names no known type.
    """
    clauses = []
    for token in text.split(","):
        key = token.strip().lower()
        if not key:
            continue
        if key in _FAMILY_ALIASES:
            clauses.append(_FAMILY_ALIASES[key].predicate)
        elif key in _OGR_TYPE_NAMES:
            clauses.append(f"OGR_GEOMETRY = '{_OGR_TYPE_NAMES[key]}'")
        else:
            raise InvalidGeometryFilter(f"Unknown geometry filter '{token.strip()}'")
    if not clauses:
        raise InvalidGeometryFilter(f"Unknown geometry filter '{text}'")
    return clauses[0] if len(clauses) == 1 else "(" + " OR ".join(clauses) + ")"


def _creation_options(driver_id: str, request: ConversionRequest) -> list[str]:
    if driver_id == "ESRI Shapefile":
        return ["ENCODING=UTF-8"]
    if driver_id in ("GeoJSON", "TopoJSON"):
        return ["WRITE_BBOX=YES", f"COORDINATE_PRECISION={request.output_precision}"]
    if driver_id == "GPKG":
        return ["SPATIAL_INDEX=YES"]
    if driver_id == "CSV":
        mode = "AS_XY" if request.csv_geometry_mode == CsvGeometryMode.XY else "AS_WKT"
        return [f"GEOMETRY={mode}"]
    return []


def build_translate_options(
    driver_id: str,
    request: ConversionRequest,
    *,
    crs_directive: CrsDirective | None = None,
    source_layer: str | None = None,
    family: GeometryFamily | None = None,
) -> list[str]:
    """Assemble ``VectorTranslate`` arguments in a fixed order.

    Args:
        driver_id: GDAL short name of the output driver.
        request: The conversion request the flags are derived from.
        crs_directive: Assign/transform directive from ``resolve_crs_directive``.
        source_layer: Layer to query when a geometry predicate forces ``-sql``.
        family: Splitter family; adds its predicate and multi-type promotion.
            The output layer is then named by the destination path.

    A geometry predicate and a user WHERE clause are AND-ed inside one OGR-SQL
    statement, because GDAL ignores ``-where`` once ``-sql`` is given.
    """
    options = ["-f", driver_id, "-dim", "XYZ" if request.keep_z else "XY"]

    if request.explode_collections:
        options.append("-explodecollections")
    if request.skip_failures:
        options.append("-skipfailures")
    if request.make_valid:
        options.append("-makevalid")
    if request.preserve_fid:
        options.append("-preserve_fid")
    if request.simplify_tolerance > 0:
        options += ["-simplify", str(request.simplify_tolerance)]

    for creation_option in _creation_options(driver_id, request):
        options += ["-lco", creation_option]

    options += (crs_directive or NoCrsChange()).to_options()

    if family is not None:
        if family.promote_to_multi:
            options += ["-nlt", family.promote_to_multi]
    elif request.layer_name:
        options += ["-nln", request.layer_name]

    geometry_clauses = []
    if family is not None:
        geometry_clauses.append(family.predicate)
    if request.geometry_filter:
        geometry_clauses.append(geometry_predicate(request.geometry_filter))

    if geometry_clauses:
        if not source_layer:
            raise InvalidGeometryFilter("A source layer is required to filter by geometry")
        conditions = [f"({clause})" for clause in geometry_clauses]
        if request.where:
            conditions.append(f"({request.where})")
        columns = ", ".join(quote_identifier(f) for f in request.select_fields) if request.select_fields else "*"
        sql = f"SELECT {columns} FROM {quote_identifier(source_layer)} WHERE {' AND '.join(conditions)}"
        options += ["-sql", sql, "-dialect", "OGRSQL"]
    else:
        if request.where:
            options += ["-where", request.where]
        if request.select_fields:
            options += ["-select", ",".join(request.select_fields)]

    return options
