"""Tests for VectorTranslate option synthesis."""

import pytest
from pydantic import ValidationError

from geoconverter.crs import AssignOnly, TransformOnly
from geoconverter.errors import InvalidGeometryFilter
from geoconverter.models import ConversionRequest, GeometryFamily
from geoconverter.options import build_translate_options, geometry_predicate


def _request(**kwargs):
    return ConversionRequest(input_bytes=b"{}", **kwargs)


def _value_after(options, flag):
    return options[options.index(flag) + 1]


class TestBaseOptions:
    def test_geojson_defaults(self):
        options = build_translate_options("GeoJSON", _request())
        assert options == [
            "-f", "GeoJSON",
            "-dim", "XY",
            "-explodecollections",
            "-lco", "WRITE_BBOX=YES",
            "-lco", "COORDINATE_PRECISION=7",
        ]

    def test_flags_follow_request(self):
        request = _request(
            keep_z=True, explode_collections=False, skip_failures=True, make_valid=True, preserve_fid=True
        )
        options = build_translate_options("GPKG", request)
        assert options[:8] == ["-f", "GPKG", "-dim", "XYZ", "-skipfailures", "-makevalid", "-preserve_fid", "-lco"]
        assert "-explodecollections" not in options

    def test_simplify_only_when_positive(self):
        assert "-simplify" not in build_translate_options("GPKG", _request())
        options = build_translate_options("GPKG", _request(simplify_tolerance=0.5))
        assert _value_after(options, "-simplify") == "0.5"

    def test_negative_simplify_rejected(self):
        with pytest.raises(ValidationError):
            _request(simplify_tolerance=-1)

    @pytest.mark.parametrize(
        "driver, request_kwargs, expected",
        [
            ("ESRI Shapefile", {}, ["ENCODING=UTF-8"]),
            ("GPKG", {}, ["SPATIAL_INDEX=YES"]),
            ("CSV", {}, ["GEOMETRY=AS_WKT"]),
            ("CSV", {"csv_geometry_mode": "xy"}, ["GEOMETRY=AS_XY"]),
            ("TopoJSON", {"output_precision": 3}, ["WRITE_BBOX=YES", "COORDINATE_PRECISION=3"]),
            ("KML", {}, []),
        ],
    )
    def test_creation_options(self, driver, request_kwargs, expected):
        options = build_translate_options(driver, _request(**request_kwargs))
        creation = [options[i + 1] for i, flag in enumerate(options) if flag == "-lco"]
        assert creation == expected

    def test_crs_directive_and_rename(self):
        options = build_translate_options(
            "GPKG", _request(layer_name="roads"), crs_directive=TransformOnly(target_crs="EPSG:3857")
        )
        assert options[-4:] == ["-t_srs", "EPSG:3857", "-nln", "roads"]

    def test_assign_directive(self):
        options = build_translate_options("GPKG", _request(), crs_directive=AssignOnly(crs="EPSG:4326"))
        assert _value_after(options, "-a_srs") == "EPSG:4326"


class TestFiltering:
    def test_where_and_select_without_geometry_filter(self):
        options = build_translate_options("GPKG", _request(where="population > 10", select_fields="name, population"))
        assert _value_after(options, "-where") == "population > 10"
        assert _value_after(options, "-select") == "name,population"
        assert "-sql" not in options

    def test_geometry_filter_and_where_are_combined(self):
        request = _request(geometry_filter="polygon", where="id = 10", select_fields=["name"])
        options = build_translate_options("GPKG", request, source_layer="parcels")
        assert "-where" not in options
        assert "-select" not in options
        assert _value_after(options, "-dialect") == "OGRSQL"
        assert _value_after(options, "-sql") == (
            'SELECT "name" FROM "parcels" WHERE '
            "((OGR_GEOMETRY = 'POLYGON' OR OGR_GEOMETRY = 'MULTIPOLYGON')) AND (id = 10)"
        )

    def test_geometry_filter_requires_layer(self):
        with pytest.raises(InvalidGeometryFilter):
            build_translate_options("GPKG", _request(geometry_filter="point"))

    def test_layer_name_is_quoted(self):
        options = build_translate_options("GPKG", _request(geometry_filter="point"), source_layer='my "layer"')
        assert 'FROM "my ""layer"""' in _value_after(options, "-sql")


class TestGeometryPredicate:
    def test_family_names(self):
        assert geometry_predicate("points") == "OGR_GEOMETRY = 'POINT'"
        assert geometry_predicate("Lines") == GeometryFamily.LINE.predicate

    def test_exact_type_names(self):
        assert geometry_predicate("MultiLineString") == "OGR_GEOMETRY = 'MULTILINESTRING'"

    def test_several_entries_are_or_ed(self):
        assert geometry_predicate("point, multipoint") == (
            "(OGR_GEOMETRY = 'POINT' OR OGR_GEOMETRY = 'MULTIPOINT')"
        )

    @pytest.mark.parametrize("text", ["triangle", ",", "point, blob"])
    def test_unknown_names_raise(self, text):
        with pytest.raises(InvalidGeometryFilter):
            geometry_predicate(text)


class TestFamilyOptions:
    @pytest.mark.parametrize(
        "family, promotion",
        [(GeometryFamily.LINE, "MULTILINESTRING"), (GeometryFamily.POLYGON, "MULTIPOLYGON")],
    )
    def test_lines_and_polygons_are_promoted(self, family, promotion):
        options = build_translate_options("ESRI Shapefile", _request(), source_layer="mixed", family=family)
        assert _value_after(options, "-nlt") == promotion

    def test_points_are_not_promoted(self):
        options = build_translate_options("ESRI Shapefile", _request(), source_layer="mixed", family=GeometryFamily.POINT)
        assert "-nlt" not in options
        assert _value_after(options, "-sql") == "SELECT * FROM \"mixed\" WHERE (OGR_GEOMETRY = 'POINT')"

    def test_family_output_is_not_renamed(self):
        request = _request(layer_name="renamed")
        options = build_translate_options("ESRI Shapefile", request, source_layer="mixed", family=GeometryFamily.POINT)
        assert "-nln" not in options
