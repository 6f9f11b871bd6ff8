"""Thin adapter over the GDAL/OGR bindings.

Every call into ``osgeo`` that the conversion core makes goes through this
module, so ``RuntimeError`` raised by GDAL in exception mode is turned into
the matching :mod:`geoconverter.errors` type here and nowhere else.
"""

from __future__ import annotations

import io
import logging
import zipfile

from osgeo import gdal, ogr, osr

from .errors import InputMaterializationError, OpenFailure, TranslateFailure
from .models import FormatDescriptor
from .scratch import ScratchArena, archive_path

logger = logging.getLogger(__name__)

gdal.UseExceptions()
ogr.UseExceptions()
osr.UseExceptions()


def engine_version_info() -> str:
    return f"GDAL Version: {gdal.VersionInfo('VERSION_NUM')} ({gdal.VersionInfo('RELEASE_NAME')})"


def get_vector_driver(driver_id: str) -> gdal.Driver | None:
    """Return the GDAL driver for ``driver_id`` if it handles vector data."""
    driver = gdal.GetDriverByName(driver_id)
    if driver is None or driver.GetMetadataItem(gdal.DCAP_VECTOR) != "YES":
        return None
    return driver


def driver_can_write(driver_id: str) -> bool:
    driver = get_vector_driver(driver_id)
    return driver is not None and driver.GetMetadataItem(gdal.DCAP_CREATE) == "YES"


def materialize_input(arena: ScratchArena, data: bytes, descriptor: FormatDescriptor) -> str:
    """Stage input bytes in the arena and return the path GDAL should open.

    Shapefile input is a ZIP archive; the first ``.shp`` member in archive
    order is addressed through ``/vsizip/`` so its sidecar files resolve next
    to it.
    """
    if not data:
        raise InputMaterializationError("Input is empty")
    if not descriptor.is_multi_file:
        return arena.write_bytes(f"input{descriptor.file_extension}", data)

    member = _first_shp_member(data)
    archive = arena.write_bytes("input.zip", data)
    return archive_path(archive, member)


def _first_shp_member(data: bytes) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            names = zf.namelist()
    except zipfile.BadZipFile as exc:
        raise InputMaterializationError(f"Shapefile input is not a ZIP archive: {exc}") from exc
    for name in names:
        if name.lower().endswith(".shp"):
            return name
    raise InputMaterializationError("No .shp file found in archive")


def open_dataset(path: str, open_options: tuple[str, ...] | list[str] = ()) -> gdal.Dataset:
    """Open a vector dataset read-only.

    Raises:
        OpenFailure: if no driver recognises the file.
    """
    try:
        dataset = gdal.OpenEx(path, gdal.OF_VECTOR | gdal.OF_READONLY, open_options=list(open_options))
    except RuntimeError as exc:
        raise OpenFailure(f"Failed to open input dataset: {exc}") from exc
    if dataset is None:
        raise OpenFailure("Failed to open input dataset")
    return dataset


def translate(destination: str, source: gdal.Dataset, options: list[str]) -> None:
    """Run ``VectorTranslate`` and flush the output to ``destination``.

    Raises:
        TranslateFailure: if GDAL raises or returns no dataset.
    """
    logger.debug("VectorTranslate %s %s", destination, " ".join(options))
    try:
        result = gdal.VectorTranslate(destination, source, options=options)
    except RuntimeError as exc:
        raise TranslateFailure(str(exc)) from exc
    if result is None:
        raise TranslateFailure(f"Translation to {destination} failed")
    # Dropping the last reference closes the dataset and flushes it.
    result = None


def count_features(dataset: gdal.Dataset, layer_name: str, predicate: str) -> int:
    """Count features of ``layer_name`` matching an OGR-SQL predicate."""
    sql = f"SELECT COUNT(*) FROM {quote_identifier(layer_name)} WHERE {predicate}"
    try:
        result = dataset.ExecuteSQL(sql, dialect="OGRSQL")
    except RuntimeError as exc:
        raise TranslateFailure(f"Could not count features: {exc}") from exc
    if result is None:
        return 0
    try:
        feature = result.GetNextFeature()
        return int(feature.GetField(0)) if feature is not None else 0
    finally:
        dataset.ReleaseResultSet(result)


def layer_crs(layer: ogr.Layer) -> tuple[str, str]:
    """Return ``(label, wkt)`` for a layer's CRS, or two empty strings.

    The label is ``AUTHORITY:CODE`` when the CRS carries an authority code
    and the CRS name otherwise.
    """
    srs = layer.GetSpatialRef()
    if srs is None:
        return "", ""
    authority = srs.GetAuthorityName(None)
    code = srs.GetAuthorityCode(None)
    label = f"{authority}:{code}" if authority and code else (srs.GetName() or "")
    return label, srs.ExportToWkt()


def quote_identifier(name: str) -> str:
    """Quote a layer or field name for OGR SQL."""
    return '"' + name.replace('"', '""') + '"'
