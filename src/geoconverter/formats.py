"""Format registry: logical format names to GDAL drivers and file extensions."""

from __future__ import annotations

from enum import Enum

from .models import FormatDescriptor


class VectorFormat(str, Enum):
    GEOJSON = "geojson"
    TOPOJSON = "topojson"
    SHAPEFILE = "shapefile"
    GEOPACKAGE = "geopackage"
    KML = "kml"
    GPX = "gpx"
    GML = "gml"
    FLATGEOBUF = "flatgeobuf"
    DXF = "dxf"
    CSV = "csv"
    PMTILES = "pmtiles"
    MBTILES = "mbtiles"
    DGN = "dgn"
    GEOJSONSEQ = "geojsonseq"
    GEORSS = "georss"
    GEOCONCEPT = "geoconcept"
    JML = "jml"
    JSONFG = "jsonfg"
    MAPML = "mapml"
    ODS = "ods"
    OGR_GMT = "ogr_gmt"
    PCIDSK = "pcidsk"
    PDS4 = "pds4"
    S57 = "s57"
    SQLITE = "sqlite"
    SELAFIN = "selafin"
    VDV = "vdv"
    VICAR = "vicar"
    WASP = "wasp"
    XLSX = "xlsx"
    PGDUMP = "pgdump"


# Geometry columns recognised when reading CSV input.
CSV_OPEN_OPTIONS = (
    "X_POSSIBLE_NAMES=X,x,lon,lng,long,longitude",
    "Y_POSSIBLE_NAMES=Y,y,lat,latitude",
    "GEOM_POSSIBLE_NAMES=WKT,wkt,geometry,geom",
    "KEEP_GEOM_COLUMNS=NO",
    "AUTODETECT_TYPE=YES",
)


def _descriptor(
    fmt: VectorFormat,
    label: str,
    driver_id: str,
    extension: str,
    detect: tuple[str, ...],
    *,
    download: str | None = None,
    multi_file: bool = False,
    readable: bool = True,
    writable: bool = True,
    open_options: tuple[str, ...] = (),
) -> FormatDescriptor:
    return FormatDescriptor(
        logical_name=fmt.value,
        label=label,
        driver_id=driver_id,
        file_extension=extension,
        download_extension=download or extension,
        is_multi_file=multi_file,
        readable=readable,
        writable=writable,
        detect_extensions=detect,
        open_options=open_options,
    )


FORMATS: dict[VectorFormat, FormatDescriptor] = {
    VectorFormat(d.logical_name): d
    for d in (
        _descriptor(VectorFormat.GEOJSON, "GeoJSON", "GeoJSON", ".geojson", (".geojson", ".json")),
        _descriptor(VectorFormat.TOPOJSON, "TopoJSON", "TopoJSON", ".topojson", (".topojson",), writable=False),
        _descriptor(
            VectorFormat.SHAPEFILE, "Shapefile", "ESRI Shapefile", ".shp", (".shp.zip", ".zip", ".shp"),
            download=".zip", multi_file=True,
        ),
        _descriptor(VectorFormat.GEOPACKAGE, "GeoPackage", "GPKG", ".gpkg", (".gpkg",)),
        _descriptor(VectorFormat.KML, "KML", "KML", ".kml", (".kml",)),
        _descriptor(VectorFormat.GPX, "GPX", "GPX", ".gpx", (".gpx",)),
        _descriptor(VectorFormat.GML, "GML", "GML", ".gml", (".gml",)),
        _descriptor(VectorFormat.FLATGEOBUF, "FlatGeobuf", "FlatGeobuf", ".fgb", (".fgb",)),
        _descriptor(VectorFormat.DXF, "DXF", "DXF", ".dxf", (".dxf",)),
        _descriptor(VectorFormat.CSV, "CSV", "CSV", ".csv", (".csv",), open_options=CSV_OPEN_OPTIONS),
        _descriptor(VectorFormat.PMTILES, "PMTiles", "PMTiles", ".pmtiles", (".pmtiles",)),
        _descriptor(VectorFormat.MBTILES, "MBTiles", "MBTiles", ".mbtiles", (".mbtiles",)),
        _descriptor(VectorFormat.DGN, "DGN", "DGN", ".dgn", (".dgn",)),
        _descriptor(
            VectorFormat.GEOJSONSEQ, "GeoJSONSeq", "GeoJSONSeq", ".geojsonl",
            (".geojsonseq", ".geojsons", ".geojsonl", ".jsonl", ".ndjson"), download=".geojsonseq",
        ),
        _descriptor(VectorFormat.GEORSS, "GeoRSS", "GeoRSS", ".xml", (".georss", ".rss"), download=".georss"),
        _descriptor(VectorFormat.GEOCONCEPT, "Geoconcept", "Geoconcept", ".gxt", (".gxt",)),
        _descriptor(VectorFormat.JML, "OpenJUMP JML", "JML", ".jml", (".jml",)),
        _descriptor(VectorFormat.JSONFG, "JSON-FG", "JSONFG", ".json", (".jsonfg",), download=".jsonfg"),
        _descriptor(VectorFormat.MAPML, "MapML", "MapML", ".mapml", (".mapml",)),
        _descriptor(VectorFormat.ODS, "OpenDocument Spreadsheet", "ODS", ".ods", (".ods",)),
        _descriptor(VectorFormat.OGR_GMT, "GMT", "OGR_GMT", ".gmt", (".gmt",)),
        _descriptor(VectorFormat.PCIDSK, "PCIDSK", "PCIDSK", ".pix", (".pix",)),
        _descriptor(VectorFormat.PDS4, "PDS4", "PDS4", ".xml", (".pds4", ".pds4.xml"), download=".pds4.xml"),
        _descriptor(VectorFormat.S57, "S-57", "S57", ".000", (".000", ".s57")),
        _descriptor(VectorFormat.SQLITE, "SQLite / SpatiaLite", "SQLite", ".sqlite", (".sqlite", ".db")),
        _descriptor(VectorFormat.SELAFIN, "Selafin", "Selafin", ".slf", (".slf",)),
        _descriptor(VectorFormat.VDV, "VDV-451", "VDV", ".x10", (".vdv",), download=".vdv"),
        _descriptor(VectorFormat.VICAR, "VICAR", "VICAR", ".vic", (".vic", ".vicar")),
        _descriptor(VectorFormat.WASP, "WAsP", "WAsP", ".map", (".wasp",)),
        _descriptor(VectorFormat.XLSX, "Excel XLSX", "XLSX", ".xlsx", (".xlsx",)),
        _descriptor(VectorFormat.PGDUMP, "PostgreSQL dump", "PGDump", ".sql", (), readable=False),
    )
}

DEFAULT_FORMAT = VectorFormat.GEOJSON

ALIASES: dict[str, VectorFormat] = {
    "json": VectorFormat.GEOJSON,
    "shp": VectorFormat.SHAPEFILE,
    "zip": VectorFormat.SHAPEFILE,
    "esri shapefile": VectorFormat.SHAPEFILE,
    "gpkg": VectorFormat.GEOPACKAGE,
    "fgb": VectorFormat.FLATGEOBUF,
    "geojsonl": VectorFormat.GEOJSONSEQ,
    "ndjson": VectorFormat.GEOJSONSEQ,
    "gmt": VectorFormat.OGR_GMT,
}


def parse_format(name: str | None) -> VectorFormat:
    """Map a free-form format name onto the closed set, defaulting to GeoJSON."""
    key = (name or "").strip().lower()
    try:
        return VectorFormat(key)
    except ValueError:
        return ALIASES.get(key, DEFAULT_FORMAT)


def resolve_format(name: str | VectorFormat | None) -> FormatDescriptor:
    """Look up a format descriptor. Unknown names resolve to GeoJSON."""
    fmt = name if isinstance(name, VectorFormat) else parse_format(name)
    return FORMATS[fmt]


def detect_format(filename: str | None) -> VectorFormat | None:
    """Guess the format from a filename; the longest matching extension wins."""
    if not filename:
        return None
    lowered = filename.lower()
    match: VectorFormat | None = None
    longest = 0
    for fmt, descriptor in FORMATS.items():
        for extension in descriptor.detect_extensions:
            if lowered.endswith(extension) and len(extension) > longest:
                match, longest = fmt, len(extension)
    return match


def readable_formats() -> list[FormatDescriptor]:
    return [d for d in FORMATS.values() if d.readable]


def writable_formats() -> list[FormatDescriptor]:
    return [d for d in FORMATS.values() if d.writable]
