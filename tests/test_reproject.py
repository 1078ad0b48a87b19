"""Tests de reprojection (géométries, couches, rasters)."""
from __future__ import annotations

import math
from pathlib import Path

import geopandas as gpd
import pytest
import rasterio
from shapely.geometry import Point

from geocompute.crs import InvalidArgument, resolve
from geocompute.drivers import UnsupportedFormat
from geocompute.reproject import (
    buffer_geographic,
    reproject_raster,
    to_crs,
    to_utm,
    transform_geometry,
)


def test_transform_geometry_to_resolved_zone() -> None:
    london = Point(-0.1, 51.5)
    projected = transform_geometry(london, 4326, resolve((london.x, london.y)))
    assert 600_000 < projected.x < 800_000
    assert 5_600_000 < projected.y < 5_800_000


def test_transform_geometry_accepts_proj_string() -> None:
    london = Point(-0.1, 51.5)
    from_epsg = transform_geometry(london, "EPSG:4326", 32630)
    from_proj = transform_geometry(london, "EPSG:4326", "+proj=utm +zone=30 +datum=WGS84 +units=m +no_defs")
    assert from_proj.x == pytest.approx(from_epsg.x, abs=1e-3)
    assert from_proj.y == pytest.approx(from_epsg.y, abs=1e-3)


def test_to_utm_uses_layer_zone(cities_frame: gpd.GeoDataFrame) -> None:
    projected = to_utm(cities_frame)
    assert projected.crs.to_epsg() == 32631
    assert projected.geometry.x.min() > 100_000


def test_to_crs_requires_source_crs() -> None:
    frame = gpd.GeoDataFrame({"name": ["a"]}, geometry=[Point(2.4, 6.4)])
    with pytest.raises(InvalidArgument):
        to_crs(frame, 32631)


def test_buffer_geographic_has_metric_area() -> None:
    polygon = buffer_geographic((2.42, 6.37), 500.0)
    assert polygon.contains(Point(2.42, 6.37))
    area = transform_geometry(polygon, 4326, 32631).area
    assert area == pytest.approx(math.pi * 500.0**2, rel=0.01)


def test_buffer_geographic_rejects_negative_distance() -> None:
    with pytest.raises(InvalidArgument):
        buffer_geographic((2.42, 6.37), -1.0)


def test_reproject_raster_defaults_to_utm(tmp_path: Path, sample_raster: Path) -> None:
    output = reproject_raster(sample_raster, tmp_path / "utm" / "dem_utm.tif")
    with rasterio.open(output) as dataset:
        assert dataset.crs.to_epsg() == 32631
        assert dataset.count == 1
        assert dataset.res[0] > 100


def test_reproject_raster_explicit_target(tmp_path: Path, sample_raster: Path) -> None:
    output = reproject_raster(sample_raster, tmp_path / "dem_3857.tif", "EPSG:3857", resampling="bilinear")
    with rasterio.open(output) as dataset:
        assert dataset.crs.to_epsg() == 3857


def test_reproject_raster_rejects_unknown_resampling(tmp_path: Path, sample_raster: Path) -> None:
    with pytest.raises(InvalidArgument, match="rééchantillonnage"):
        reproject_raster(sample_raster, tmp_path / "out.tif", 32631, resampling="magique")


def test_reproject_raster_rejects_read_only_destination(tmp_path: Path, sample_raster: Path) -> None:
    with pytest.raises(UnsupportedFormat):
        reproject_raster(sample_raster, tmp_path / "out.png")


def test_reproject_raster_missing_source(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        reproject_raster(tmp_path / "absent.tif", tmp_path / "out.tif")


@pytest.mark.parametrize("point", [(2.42,), (2.42, 6.37, 0.0), (2.42, 95.0)])
def test_buffer_geographic_rejects_malformed_point(point: tuple) -> None:
    with pytest.raises(InvalidArgument):
        buffer_geographic(point, 100.0)  # type: ignore[arg-type]


def test_transform_geometry_rejects_unknown_crs() -> None:
    with pytest.raises(InvalidArgument, match="CRS"):
        transform_geometry(Point(2.42, 6.37), 4326, 99999)
