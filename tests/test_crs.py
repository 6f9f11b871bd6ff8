"""Tests for CRS classification and the assign/transform decision table."""

import pytest
from pyproj import CRS

from geoconverter.crs import (
    AssignOnly,
    AssignThenTransform,
    EpsgCode,
    NoCrsChange,
    RawDefinition,
    TransformOnly,
    WellKnownName,
    classify_crs,
    is_wgs84,
    parse_spatial_reference,
    resolve_crs_directive,
)
from geoconverter.errors import CrsResolutionFailure

SOURCE = "EPSG:4326"
TARGET = "EPSG:3857"
EMBEDDED = "EPSG:32633"


class TestClassifyCrs:
    @pytest.mark.parametrize("text", ["EPSG:3857", "epsg:3857", " EPSG : 3857 ", "3857"])
    def test_epsg_codes(self, text):
        assert classify_crs(text) == EpsgCode(code=3857)

    def test_well_known_name(self):
        identifier = classify_crs("Web Mercator")
        assert isinstance(identifier, WellKnownName)
        assert identifier.definition == "EPSG:3857"
        assert classify_crs("WGS84").definition == "EPSG:4326"

    def test_raw_definitions_pass_through(self):
        proj = "+proj=utm +zone=33 +datum=WGS84"
        assert classify_crs(proj) == RawDefinition(text=proj)
        assert classify_crs(proj).definition == proj


class TestParseSpatialReference:
    def test_parses_codes_names_and_proj_strings(self):
        assert parse_spatial_reference("EPSG:3857").to_epsg() == 3857
        assert is_wgs84(parse_spatial_reference("wgs84"))
        assert parse_spatial_reference("+proj=utm +zone=33 +datum=WGS84").is_projected

    @pytest.mark.parametrize("text", ["not a crs", "", "EPSG:999999"])
    def test_unparsable_raises(self, text):
        with pytest.raises(CrsResolutionFailure):
            parse_spatial_reference(text)

    def test_is_wgs84_ignores_axis_order(self):
        assert is_wgs84(CRS.from_user_input("OGC:CRS84"))
        assert not is_wgs84(CRS.from_epsg(3857))


class TestResolveCrsDirective:
    @pytest.mark.parametrize(
        "source, target, embedded, expected",
        [
            (SOURCE, TARGET, EMBEDDED, AssignThenTransform(source_crs=SOURCE, target_crs=TARGET)),
            (SOURCE, TARGET, None, AssignThenTransform(source_crs=SOURCE, target_crs=TARGET)),
            (SOURCE, None, EMBEDDED, AssignOnly(crs=SOURCE)),
            (SOURCE, None, None, AssignOnly(crs=SOURCE)),
            (None, TARGET, EMBEDDED, TransformOnly(target_crs=TARGET)),
            (None, TARGET, None, AssignOnly(crs=TARGET)),
            (None, None, EMBEDDED, NoCrsChange()),
            (None, None, None, NoCrsChange()),
        ],
    )
    def test_decision_table(self, source, target, embedded, expected):
        assert resolve_crs_directive(source, target, embedded) == expected

    def test_same_source_and_target_only_assigns(self):
        directive = resolve_crs_directive("epsg:4326", "EPSG:4326", EMBEDDED)
        assert directive == AssignOnly(crs="EPSG:4326")

    def test_blank_strings_count_as_absent(self):
        assert resolve_crs_directive("  ", "", EMBEDDED) == NoCrsChange()

    def test_definitions_are_normalized(self):
        directive = resolve_crs_directive("wgs84", "3857", None)
        assert directive == AssignThenTransform(source_crs="EPSG:4326", target_crs="EPSG:3857")

    def test_rendered_options(self):
        assert NoCrsChange().to_options() == []
        assert AssignOnly(crs=SOURCE).to_options() == ["-a_srs", SOURCE]
        assert TransformOnly(target_crs=TARGET).to_options() == ["-t_srs", TARGET]
        assert AssignThenTransform(source_crs=SOURCE, target_crs=TARGET).to_options() == [
            "-s_srs", SOURCE, "-t_srs", TARGET,
        ]
