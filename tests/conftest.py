from __future__ import annotations

from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
import rasterio
from rasterio.transform import from_origin
from shapely.geometry import Point


@pytest.fixture
def sample_raster(tmp_path: Path) -> Path:
    """Petit GeoTIFF EPSG:4326 au-dessus du sud du Bénin (zone UTM 31N)."""

    data = np.arange(20 * 30, dtype="float32").reshape(1, 20, 30)
    data[0, 0, 0] = -9999.0
    path = tmp_path / "dem.tif"
    profile = {
        "driver": "GTiff",
        "height": 20,
        "width": 30,
        "count": 1,
        "dtype": "float32",
        "crs": "EPSG:4326",
        "transform": from_origin(2.0, 7.0, 0.01, 0.01),
        "nodata": -9999.0,
    }
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(data)
    return path


@pytest.fixture
def cities() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "name": ["Cotonou", "Porto-Novo", "Ouidah"],
            "longitude": [2.42, 2.63, 2.09],
            "latitude": [6.37, 6.50, 6.36],
        }
    )


@pytest.fixture
def cities_frame(cities: pd.DataFrame) -> gpd.GeoDataFrame:
    geometry = [Point(lon, lat) for lon, lat in zip(cities["longitude"], cities["latitude"])]
    return gpd.GeoDataFrame(cities[["name"]].copy(), geometry=geometry, crs="EPSG:4326")
