"""Lightweight JSON preview of the first layer of a dataset."""

from __future__ import annotations

import logging

from osgeo import gdal, ogr

from .engine import layer_crs, materialize_input, open_dataset
from .errors import ConversionError, OpenFailure
from .extent import estimate_wgs84_extent
from .formats import resolve_format
from .models import ExtentBox, FieldPreview, PreviewDocument
from .scratch import ScratchArena

logger = logging.getLogger(__name__)

_FIELD_TYPES = {
    ogr.OFTInteger: "Integer",
    ogr.OFTInteger64: "Integer",
    ogr.OFTReal: "Float",
    ogr.OFTString: "String",
    ogr.OFTDate: "Date",
    ogr.OFTDateTime: "Date",
}


def extract_preview(input_bytes: bytes, input_format: str, source_crs: str | None = None) -> dict:
    """Describe the first layer of ``input_bytes`` as a camelCase JSON document.

    Never raises: any failure comes back as ``{"error": "<message>"}``.
    """
    descriptor = resolve_format(input_format)
    try:
        with ScratchArena() as arena:
            path = materialize_input(arena, input_bytes, descriptor)
            dataset = open_dataset(path, descriptor.open_options)
            try:
                document = describe_dataset(dataset, source_crs)
            finally:
                dataset = None
    except ConversionError as exc:
        logger.warning("Preview failed: %s", exc)
        return {"error": str(exc)}
    except RuntimeError as exc:
        logger.warning("Preview failed: %s", exc)
        return {"error": f"Failed to read dataset: {exc}"}
    except Exception as exc:
        logger.exception("Unexpected error while previewing %s input", descriptor.label)
        return {"error": f"Failed to preview dataset: {exc}"}
    return document.model_dump(by_alias=True)


def describe_dataset(dataset: gdal.Dataset, source_crs: str | None = None) -> PreviewDocument:
    layer_count = dataset.GetLayerCount()
    if layer_count == 0:
        raise OpenFailure("Dataset contains no layers")
    layer = dataset.GetLayer(0)

    embedded_label, embedded_wkt = layer_crs(layer)
    user_label = (source_crs or "").strip()
    # A user CRS wins for display even if it does not parse.
    crs_label = user_label or embedded_label
    definition = None if user_label else embedded_wkt or None

    bbox = bbox_original = None
    reprojected = False
    debug = "Layer has no extent"
    envelope = _layer_extent(layer)
    if envelope is not None:
        estimate = estimate_wgs84_extent(ExtentBox.from_ogr(envelope), crs_label, definition)
        bbox = estimate.box.as_list()
        bbox_original = estimate.original.as_list()
        reprojected = estimate.reprojected
        debug = estimate.debug

    return PreviewDocument(
        layers=layer_count,
        layer_name=layer.GetName(),
        feature_count=layer.GetFeatureCount(),
        geometry_type=ogr.GeometryTypeToName(layer.GetGeomType()),
        crs=crs_label or "Unknown",
        bbox=bbox,
        bbox_original=bbox_original,
        bbox_reprojected=reprojected,
        debug_transform=debug,
        properties=first_feature_properties(layer),
    )


def _layer_extent(layer: ogr.Layer) -> tuple[float, float, float, float] | None:
    try:
        return layer.GetExtent()
    except RuntimeError:
        # Empty layers and layers without geometry have no extent.
        return None


def first_feature_properties(layer: ogr.Layer) -> list[FieldPreview]:
    """Attribute values of the first feature with coarse type labels."""
    layer.ResetReading()
    feature = layer.GetNextFeature()
    if feature is None:
        return []

    defn = layer.GetLayerDefn()
    properties = []
    for index in range(defn.GetFieldCount()):
        field = defn.GetFieldDefn(index)
        field_type = field.GetType()
        type_label = _FIELD_TYPES.get(field_type, "String")
        if not feature.IsFieldSetAndNotNull(index):
            value = None
        elif field_type in (ogr.OFTInteger, ogr.OFTInteger64):
            value = feature.GetFieldAsInteger64(index)
        elif field_type == ogr.OFTReal:
            value = feature.GetFieldAsDouble(index)
        else:
            value = _text(feature.GetFieldAsString(index))
        properties.append(FieldPreview(name=_text(field.GetName()), value=value, type=type_label))
    return properties


def _text(value: str | bytes) -> str:
    # The bindings hand back bytes for text that is not valid UTF-8.
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
