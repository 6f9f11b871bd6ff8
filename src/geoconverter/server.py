"""FastAPI server for vector format conversion."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError

from .config import get_settings
from .converter import GeoConverter
from .formats import detect_format, readable_formats, writable_formats
from .models import ConversionRequest, FormatDescriptor

app = FastAPI(title="GeoConverter", version="0.1.0")


@app.get("/version")
async def version():
    return {"version": GeoConverter.engine_version_info()}


@app.get("/formats")
async def formats():
    """List the formats that can be read and written."""
    return {
        "input": [_format_entry(d) for d in readable_formats()],
        "output": [_format_entry(d) for d in writable_formats()],
    }


@app.post("/convert")
async def convert_upload(
    file: UploadFile,
    output_format: str = Form("geojson"),
    input_format: str | None = Form(None),
    source_crs: str | None = Form(None),
    target_crs: str | None = Form(None),
    layer_name: str | None = Form(None),
    geometry_filter: str | None = Form(None),
    where: str | None = Form(None),
    select_fields: str | None = Form(None),
    simplify_tolerance: float = Form(0.0),
    explode_collections: bool = Form(True),
    preserve_fid: bool = Form(False),
    skip_failures: bool = Form(False),
    make_valid: bool = Form(False),
    keep_z: bool = Form(False),
    output_precision: int | None = Form(None),
    csv_geometry_mode: str = Form("WKT"),
):
    """Convert an uploaded dataset and return the result as an attachment.

    The input format is detected from the filename when not given. Shapefile
    input is a ZIP archive; Shapefile output is always returned as a ZIP.
    """
    content = await _read_upload(file)
    try:
        request = ConversionRequest(
            input_bytes=content,
            input_format=_input_format(file, input_format),
            output_format=output_format,
            source_crs=source_crs,
            target_crs=target_crs,
            layer_name=layer_name,
            geometry_filter=geometry_filter,
            where=where,
            select_fields=select_fields,
            simplify_tolerance=simplify_tolerance,
            explode_collections=explode_collections,
            preserve_fid=preserve_fid,
            skip_failures=skip_failures,
            make_valid=make_valid,
            keep_z=keep_z,
            output_precision=get_settings().default_precision if output_precision is None else output_precision,
            csv_geometry_mode=csv_geometry_mode,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    converter = GeoConverter()
    result = converter.convert(request)
    if not result.ok:
        raise HTTPException(status_code=422, detail=converter.last_error())

    filename = Path(file.filename or "converted").name.split(".")[0] + result.file_extension
    return Response(
        content=result.output_bytes,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@app.post("/preview")
async def preview_upload(
    file: UploadFile,
    input_format: str | None = Form(None),
    source_crs: str | None = Form(None),
):
    """Return a JSON summary of the first layer of an uploaded dataset."""
    content = await _read_upload(file)
    document = GeoConverter().preview(content, _input_format(file, input_format), source_crs)
    if "error" in document:
        raise HTTPException(status_code=422, detail=document["error"])
    return document


async def _read_upload(upload: UploadFile) -> bytes:
    content = await upload.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > get_settings().max_upload_bytes:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")
    return content


def _input_format(upload: UploadFile, explicit: str | None) -> str:
    if explicit and explicit.strip():
        return explicit
    detected = detect_format(upload.filename)
    if detected is None:
        raise HTTPException(status_code=400, detail=f"Cannot detect format of '{upload.filename}'")
    return detected.value


def _format_entry(descriptor: FormatDescriptor) -> dict:
    return {
        "name": descriptor.logical_name,
        "label": descriptor.label,
        "extension": descriptor.download_extension,
        "driver": descriptor.driver_id,
    }
