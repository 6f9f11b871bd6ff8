import io
import json
import zipfile

import pytest
import shapefile
from pyproj import CRS


def _feature(geometry_type, coordinates, **properties):
    return {
        "type": "Feature",
        "properties": properties,
        "geometry": {"type": geometry_type, "coordinates": coordinates},
    }


def _collection(*features):
    return json.dumps({"type": "FeatureCollection", "features": list(features)}).encode()


@pytest.fixture
def read_member():
    """Open one Shapefile out of a ZIP produced by the converter."""

    def _read(archive: bytes, stem: str) -> shapefile.Reader:
        zf = zipfile.ZipFile(io.BytesIO(archive))
        return shapefile.Reader(
            shp=io.BytesIO(zf.read(f"{stem}.shp")),
            shx=io.BytesIO(zf.read(f"{stem}.shx")),
            dbf=io.BytesIO(zf.read(f"{stem}.dbf")),
        )

    return _read


@pytest.fixture
def city_geojson():
    return _collection(_feature("Point", [10.0, 20.0], name="city", population=1000))


@pytest.fixture
def towns_geojson():
    return _collection(
        _feature("Point", [1.5, 2.5], name="alpha", population=10),
        _feature("Point", [3.0, 4.0], name="beta", population=20),
        _feature("Point", [-5.25, 6.75], name="gamma", population=30),
    )


@pytest.fixture
def mixed_geojson():
    """3 points, 5 lines (one multi), 2 polygons and no multipoints."""
    square = [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]
    return _collection(
        _feature("Point", [0, 0], id=1, name="p1"),
        _feature("Point", [1, 1], id=2, name="p2"),
        _feature("Point", [2, 2], id=3, name="p3"),
        _feature("LineString", [[0, 0], [1, 1]], id=4, name="l1"),
        _feature("LineString", [[1, 1], [2, 2]], id=5, name="l2"),
        _feature("LineString", [[2, 2], [3, 3]], id=6, name="l3"),
        _feature("LineString", [[3, 3], [4, 4]], id=7, name="l4"),
        _feature("MultiLineString", [[[0, 1], [1, 2]], [[2, 3], [3, 4]]], id=8, name="m1"),
        _feature("Polygon", square, id=9, name="a1"),
        _feature("Polygon", [[[5, 5], [6, 5], [6, 6], [5, 6], [5, 5]]], id=10, name="a2"),
    )


def _write_point_shapefile(zf, stem, rows):
    shp, shx, dbf = io.BytesIO(), io.BytesIO(), io.BytesIO()
    writer = shapefile.Writer(shp=shp, shx=shx, dbf=dbf, shapeType=shapefile.POINT)
    writer.field("name", "C", size=20)
    writer.field("population", "N", decimal=0)
    for name, population, x, y in rows:
        writer.point(x, y)
        writer.record(name, population)
    writer.close()

    zf.writestr(f"{stem}.shp", shp.getvalue())
    zf.writestr(f"{stem}.shx", shx.getvalue())
    zf.writestr(f"{stem}.dbf", dbf.getvalue())
    zf.writestr(f"{stem}.prj", CRS.from_epsg(4326).to_wkt("WKT1_ESRI"))


@pytest.fixture
def shapefile_zip():
    """A zipped point Shapefile with a WGS84 .prj, built with pyshp."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        _write_point_shapefile(zf, "towns/towns", [("north", 5, 10.0, 50.0), ("south", 7, 11.0, 49.0)])
    return buf.getvalue()


@pytest.fixture
def two_shapefile_zip():
    """Two Shapefiles; "zulu" is stored first although "alpha" sorts first."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        _write_point_shapefile(zf, "zulu/zulu", [("far", 1, 30.0, 10.0)])
        _write_point_shapefile(zf, "alpha/alpha", [("near", 2, 5.0, 5.0), ("nearer", 3, 6.0, 6.0)])
    return buf.getvalue()


@pytest.fixture
def zip_without_shp():
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("readme.txt", "no shapes in here")
    return buf.getvalue()
