"""Public conversion and preview operations.

Nothing raised inside the core crosses this boundary: ``convert`` returns an
empty :class:`ConversionResult` with a diagnostic, ``preview`` returns an
``{"error": ...}`` document.
"""

from __future__ import annotations

import logging

from osgeo import gdal

from . import engine
from .crs import CrsDirective, parse_spatial_reference, resolve_crs_directive
from .diagnostics import DiagnosticChannel
from .errors import ConversionError, CrsResolutionFailure, DriverUnavailable, EmptyOutputError, OpenFailure
from .formats import resolve_format
from .metadata import extract_preview
from .models import ConversionRequest, ConversionResult, FormatDescriptor
from .options import build_translate_options
from .scratch import ScratchArena
from .splitter import FailurePolicy, split_by_geometry_family

logger = logging.getLogger(__name__)


def convert(request: ConversionRequest, diagnostics: DiagnosticChannel | None = None) -> ConversionResult:
    """Convert ``request.input_bytes`` to the requested output format.

    An empty ``output_bytes`` in the result means failure; ``diagnostic``
    (and ``diagnostics.last_error()``) then explains why.
    """
    channel = diagnostics if diagnostics is not None else DiagnosticChannel()
    channel.reset()
    source = resolve_format(request.input_format)
    target = resolve_format(request.output_format)
    logger.info("Converting %s -> %s (%d bytes)", source.label, target.label, len(request.input_bytes))

    output = b""
    with channel.capture():
        try:
            _check_driver(target)
            _check_user_crs(request, channel)
            output = _convert(request, source, target, channel)
        except ConversionError as exc:
            channel.record_failure(str(exc))
        except RuntimeError as exc:
            channel.record_failure(f"GDAL error: {exc}")
        except Exception as exc:
            logger.exception("Unexpected error converting to %s", target.label)
            channel.record_failure(f"Unexpected error: {exc}")

    if not output:
        channel.synthesize_failure(target.driver_id, request.source_crs, request.target_crs)
        logger.warning("Conversion to %s failed: %s", target.label, channel.last_error())
    else:
        logger.info("Converted to %s: %d bytes", target.label, len(output))

    return ConversionResult(
        output_bytes=output,
        driver_used=target.driver_id,
        file_extension=target.download_extension,
        diagnostic=channel.last_error() or None,
    )


def preview(
    input_bytes: bytes,
    input_format: str,
    source_crs: str | None = None,
    diagnostics: DiagnosticChannel | None = None,
) -> dict:
    """Return the JSON preview of the first layer, or ``{"error": ...}``."""
    channel = diagnostics if diagnostics is not None else DiagnosticChannel()
    channel.reset()
    with channel.capture():
        _warn_unparsable_crs(source_crs, channel)
        document = extract_preview(input_bytes, input_format, source_crs)
    if "error" in document:
        channel.record_failure(document["error"])
    return document


def _check_driver(target: FormatDescriptor) -> None:
    if engine.get_vector_driver(target.driver_id) is None:
        raise DriverUnavailable(target.driver_id)
    if not target.writable or not engine.driver_can_write(target.driver_id):
        raise DriverUnavailable(target.driver_id, "cannot write files")


def _check_user_crs(request: ConversionRequest, channel: DiagnosticChannel) -> None:
    for text in (request.source_crs, request.target_crs):
        _warn_unparsable_crs(text, channel)


def _warn_unparsable_crs(text: str | None, channel: DiagnosticChannel) -> None:
    if not text or not text.strip():
        return
    try:
        parse_spatial_reference(text)
    except CrsResolutionFailure as exc:
        # Left to GDAL to accept or reject; only worth a warning here.
        logger.warning("%s", exc)
        channel.record_warning(str(exc))


def _convert(
    request: ConversionRequest,
    source: FormatDescriptor,
    target: FormatDescriptor,
    channel: DiagnosticChannel,
) -> bytes:
    with ScratchArena() as arena:
        path = engine.materialize_input(arena, request.input_bytes, source)
        dataset = engine.open_dataset(path, source.open_options)
        try:
            return _write_output(dataset, arena, request, target, channel)
        finally:
            # Release the handle before the arena unlinks its files.
            dataset = None


def _write_output(
    dataset: gdal.Dataset,
    arena: ScratchArena,
    request: ConversionRequest,
    target: FormatDescriptor,
    channel: DiagnosticChannel,
) -> bytes:
    if dataset.GetLayerCount() == 0:
        raise OpenFailure("Input dataset contains no layers")
    first_layer = dataset.GetLayer(0)
    source_layer = first_layer.GetName()
    embedded_crs, _ = engine.layer_crs(first_layer)
    directive: CrsDirective = resolve_crs_directive(request.source_crs, request.target_crs, embedded_crs or None)
    logger.debug("CRS directive for %s: %s", source_layer, directive)

    if target.is_multi_file:
        result = split_by_geometry_family(
            dataset, arena, request, target, directive, FailurePolicy.CONTINUE, channel
        )
        return result.archive

    options = build_translate_options(
        target.driver_id, request, crs_directive=directive, source_layer=source_layer
    )
    destination = arena.path(f"output{target.file_extension}")
    engine.translate(destination, dataset, options)
    output = arena.read_bytes(destination)
    if not output:
        raise EmptyOutputError(f"Driver '{target.driver_id}' produced no output")
    return output


class GeoConverter:
    """Converter that keeps the diagnostic of its last operation.

    Use one instance per caller (or per thread); ``last_error()`` reports on
    the most recent ``convert`` or ``preview`` made through this instance.
    """

    def __init__(self) -> None:
        self.diagnostics = DiagnosticChannel()

    def convert(self, request: ConversionRequest) -> ConversionResult:
        return convert(request, self.diagnostics)

    def preview(self, input_bytes: bytes, input_format: str, source_crs: str | None = None) -> dict:
        return preview(input_bytes, input_format, source_crs, self.diagnostics)

    def last_error(self) -> str:
        return self.diagnostics.last_error()

    @staticmethod
    def engine_version_info() -> str:
        return engine.engine_version_info()
