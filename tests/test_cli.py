"""Tests de l'interface en ligne de commande."""
from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import pandas as pd
import rasterio
from typer.testing import CliRunner

from geocompute.cli import app
from geocompute.io import read_vector, write_vector

runner = CliRunner()


def test_utm_zone_command() -> None:
    result = runner.invoke(app, ["utm-zone", "--lon", "-0.1", "--lat", "51.5"])
    assert result.exit_code == 0
    assert "30N" in result.output
    assert "EPSG:32630" in result.output


def test_utm_zone_southern_hemisphere() -> None:
    result = runner.invoke(app, ["utm-zone", "--lon", "174.7", "--lat", "-36.9"])
    assert result.exit_code == 0
    assert "60S" in result.output


def test_utm_zone_rejects_invalid_latitude() -> None:
    result = runner.invoke(app, ["utm-zone", "--lon", "10", "--lat", "95"])
    assert result.exit_code == 2


def test_utm_zones_exports_csv(tmp_path: Path, cities: pd.DataFrame) -> None:
    csv_path = tmp_path / "villes.csv"
    cities.to_csv(csv_path, index=False)
    output = tmp_path / "out" / "zones.csv"
    result = runner.invoke(app, ["utm-zones", str(csv_path), "--output", str(output)])
    assert result.exit_code == 0
    assert "EPSG:32631" in result.output
    assert list(pd.read_csv(output)["utm_epsg"]) == [32631, 32631, 32631]


def test_drivers_command_lists_geojson() -> None:
    result = runner.invoke(app, ["drivers", "--kind", "vector"])
    assert result.exit_code == 0
    assert "GeoJSON" in result.output


def test_drivers_command_rejects_unknown_kind() -> None:
    result = runner.invoke(app, ["drivers", "--kind", "mesh"])
    assert result.exit_code == 2


def test_crs_info_command() -> None:
    result = runner.invoke(app, ["crs-info", "EPSG:32630"])
    assert result.exit_code == 0
    assert "32630" in result.output


def test_info_vector_suggests_zone(tmp_path: Path, cities_frame: gpd.GeoDataFrame) -> None:
    path = write_vector(cities_frame, tmp_path / "villes.geojson")
    result = runner.invoke(app, ["info", str(path)])
    assert result.exit_code == 0
    assert "EPSG:32631" in result.output


def test_info_raster(sample_raster: Path) -> None:
    result = runner.invoke(app, ["info", str(sample_raster)])
    assert result.exit_code == 0
    assert "GTiff" in result.output


def test_info_missing_file(tmp_path: Path) -> None:
    result = runner.invoke(app, ["info", str(tmp_path / "absent.geojson")])
    assert result.exit_code == 1


def test_reproject_vector_to_utm(tmp_path: Path, cities_frame: gpd.GeoDataFrame) -> None:
    source = write_vector(cities_frame, tmp_path / "villes.geojson")
    destination = tmp_path / "villes_utm.gpkg"
    result = runner.invoke(app, ["reproject", str(source), str(destination)])
    assert result.exit_code == 0
    assert read_vector(destination).crs.to_epsg() == 32631


def test_reproject_raster_with_epsg(tmp_path: Path, sample_raster: Path) -> None:
    destination = tmp_path / "dem_3857.tif"
    result = runner.invoke(app, ["reproject", str(sample_raster), str(destination), "--epsg", "3857"])
    assert result.exit_code == 0
    with rasterio.open(destination) as dataset:
        assert dataset.crs.to_epsg() == 3857


def test_reproject_rejects_mixed_kinds(tmp_path: Path, sample_raster: Path) -> None:
    result = runner.invoke(app, ["reproject", str(sample_raster), str(tmp_path / "out.geojson")])
    assert result.exit_code == 2


def test_plot_command(tmp_path: Path, sample_raster: Path) -> None:
    output = tmp_path / "dem.png"
    result = runner.invoke(app, ["plot", str(sample_raster), str(output)])
    assert result.exit_code == 0
    assert output.exists()


def test_reproject_rejects_unknown_epsg(tmp_path: Path, sample_raster: Path) -> None:
    result = runner.invoke(app, ["reproject", str(sample_raster), str(tmp_path / "o.tif"), "--epsg", "99999"])
    assert result.exit_code == 2
    assert not (tmp_path / "o.tif").exists()


def test_info_unreadable_raster_exits_cleanly(tmp_path: Path) -> None:
    broken = tmp_path / "bad.tif"
    broken.write_text("pas un GeoTIFF", encoding="utf-8")
    result = runner.invoke(app, ["info", str(broken)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_info_unreadable_vector_exits_cleanly(tmp_path: Path) -> None:
    broken = tmp_path / "bad.geojson"
    broken.write_text("{ pas du json", encoding="utf-8")
    result = runner.invoke(app, ["info", str(broken)])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_plot_unreadable_raster_exits_cleanly(tmp_path: Path) -> None:
    broken = tmp_path / "bad.tif"
    broken.write_text("pas un GeoTIFF", encoding="utf-8")
    result = runner.invoke(app, ["plot", str(broken), str(tmp_path / "bad.png")])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_info_directory_lists_rasters(tmp_path: Path, sample_raster: Path) -> None:
    (tmp_path / "broken.tif").write_text("pas un GeoTIFF", encoding="utf-8")
    result = runner.invoke(app, ["info", str(tmp_path)])
    assert result.exit_code == 0
    assert "dem.tif" in result.output


def test_info_empty_directory(tmp_path: Path) -> None:
    result = runner.invoke(app, ["info", str(tmp_path)])
    assert result.exit_code == 1
