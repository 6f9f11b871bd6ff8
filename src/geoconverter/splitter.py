"""Split mixed-geometry layers into one Shapefile per geometry family.

A Shapefile holds a single geometry type, so every source layer is written
as up to four files (``<layer>_points.shp``, ``<layer>_multipoints.shp``,
``<layer>_lines.shp``, ``<layer>_polygons.shp``) and everything produced is
packaged into one ZIP archive.
"""

from __future__ import annotations

import io
import logging
import posixpath
import re
import zipfile
from enum import Enum

from osgeo import gdal
from pydantic import BaseModel, Field

from .crs import CrsDirective
from .diagnostics import DiagnosticChannel
from .engine import count_features, translate
from .errors import EmptyOutputError, PartialFamilyFailure, TranslateFailure
from .models import ConversionRequest, FormatDescriptor, GeometryFamily
from .options import build_translate_options, geometry_predicate
from .scratch import ScratchArena

logger = logging.getLogger(__name__)

# Fixed member timestamp so identical input gives identical archives.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

_UNSAFE_NAME = re.compile(r"[^\w.-]+")


class FailurePolicy(str, Enum):
    CONTINUE = "continue"
    FAIL_FAST = "fail_fast"


class SplitResult(BaseModel):
    """Packaged archive plus what went into it and what was skipped."""

    archive: bytes
    members: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


def _safe_name(name: str) -> str:
    return _UNSAFE_NAME.sub("_", name).strip("_") or "layer"


def family_output_name(layer_name: str, family: GeometryFamily) -> str:
    return f"{_safe_name(layer_name)}_{family.suffix}"


def layer_base_names(layer_names: list[str], override: str | None = None) -> list[str]:
    """File-safe base name per source layer, unique across the whole split.

    With a single layer the override replaces the layer name; with several it
    becomes a prefix (``<override>_<layer>``). Names that still collide after
    sanitizing get a numeric suffix (``_2``, ``_3``, ...).
    """
    used: set[str] = set()
    bases = []
    for name in layer_names:
        if override:
            name = override if len(layer_names) == 1 else f"{override}_{name}"
        base = _safe_name(name)
        candidate, counter = base, 2
        while candidate.lower() in used:
            candidate = f"{base}_{counter}"
            counter += 1
        used.add(candidate.lower())
        bases.append(candidate)
    return bases


def _count_predicate(family: GeometryFamily, request: ConversionRequest) -> str:
    conditions = [family.predicate]
    if request.geometry_filter:
        conditions.append(geometry_predicate(request.geometry_filter))
    if request.where:
        conditions.append(request.where)
    return " AND ".join(f"({c})" for c in conditions)


def split_by_geometry_family(
    dataset: gdal.Dataset,
    arena: ScratchArena,
    request: ConversionRequest,
    descriptor: FormatDescriptor,
    crs_directive: CrsDirective | None = None,
    policy: FailurePolicy = FailurePolicy.CONTINUE,
    diagnostics: DiagnosticChannel | None = None,
) -> SplitResult:
    """Translate each non-empty geometry family of each layer and zip the results.

    Args:
        dataset: Opened source dataset.
        arena: Scratch arena the per-family files are written into.
        request: Conversion request; ``layer_name`` overrides (or, with several
            layers, prefixes) the file base name.
        descriptor: Output format (Shapefile).
        crs_directive: CRS assign/transform directive applied to every family.
        policy: ``CONTINUE`` skips a failed family, ``FAIL_FAST`` re-raises.
        diagnostics: Channel that receives a warning per skipped family.

    Raises:
        EmptyOutputError: if no family produced any file.
        TranslateFailure: on the first failure under ``FAIL_FAST``.
    """
    split_dir = arena.mkdir("split")
    skipped: list[str] = []

    source_layers = [dataset.GetLayerByIndex(i).GetName() for i in range(dataset.GetLayerCount())]

    for source_layer, base_name in zip(source_layers, layer_base_names(source_layers, request.layer_name)):
        for family in GeometryFamily:
            output_name = family_output_name(base_name, family)
            try:
                count = count_features(dataset, source_layer, _count_predicate(family, request))
                if count == 0:
                    continue
                logger.debug("Writing %d %s features of %s", count, family.value, source_layer)
                options = build_translate_options(
                    descriptor.driver_id,
                    request,
                    crs_directive=crs_directive,
                    source_layer=source_layer,
                    family=family,
                )
                translate(posixpath.join(split_dir, output_name + descriptor.file_extension), dataset, options)
            except TranslateFailure as exc:
                if policy is FailurePolicy.FAIL_FAST:
                    raise
                failure = PartialFamilyFailure(base_name, family.value, str(exc))
                logger.warning("%s", failure)
                if diagnostics is not None:
                    diagnostics.record_warning(str(failure))
                _remove_family_files(arena, split_dir, output_name)
                skipped.append(str(failure))

    members = arena.list_entries(split_dir)
    if not members:
        reason = f": {skipped[0]}" if skipped else ""
        raise EmptyOutputError(f"No features could be written to Shapefile{reason}")

    archive = _package(arena, split_dir, members)
    for member in members:
        arena.remove(posixpath.join(split_dir, member))
    return SplitResult(archive=archive, members=members, skipped=skipped)


def _remove_family_files(arena: ScratchArena, split_dir: str, output_name: str) -> None:
    for entry in arena.list_entries(split_dir):
        if posixpath.splitext(entry)[0] == output_name:
            arena.remove(posixpath.join(split_dir, entry))


def _package(arena: ScratchArena, split_dir: str, members: list[str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for member in sorted(members):
            info = zipfile.ZipInfo(member, date_time=ZIP_EPOCH)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, arena.read_bytes(posixpath.join(split_dir, member)))
    return buffer.getvalue()
