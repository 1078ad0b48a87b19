"""Tables de points lon/lat : chargement CSV, zones UTM et buffers."""
from __future__ import annotations

from math import isnan
from pathlib import Path
from typing import List

import geopandas as gpd
import pandas as pd

from .crs import WGS84, GeoPoint, InvalidArgument, resolve
from .reproject import buffer_geographic

DEFAULT_LON_COLUMN = "longitude"
DEFAULT_LAT_COLUMN = "latitude"


def load_points_table(csv_path: Path) -> pd.DataFrame:
    """Charge un CSV de points en nettoyant les entêtes."""

    if not Path(csv_path).exists():
        raise FileNotFoundError(f"CSV introuvable : {csv_path}")
    df = pd.read_csv(csv_path, skipinitialspace=True)
    df.columns = [col.strip() for col in df.columns]
    return df


def _extract_coordinate(row: pd.Series, lon_col: str, lat_col: str, label: object) -> GeoPoint:
    lon = float(row.get(lon_col, float("nan")))
    lat = float(row.get(lat_col, float("nan")))
    if isnan(lat) or isnan(lon):
        raise InvalidArgument(f"Coordonnées manquantes pour la ligne {label} ({lon_col}/{lat_col})")
    return GeoPoint(lon, lat)


def _require_columns(df: pd.DataFrame, *columns: str) -> None:
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValueError("Colonnes absentes : " + ", ".join(missing))


def annotate_utm_zones(
    df: pd.DataFrame,
    lon_col: str = DEFAULT_LON_COLUMN,
    lat_col: str = DEFAULT_LAT_COLUMN,
) -> pd.DataFrame:
    """Ajoute une colonne ``utm_epsg`` calculée ligne par ligne."""

    _require_columns(df, lon_col, lat_col)
    codes: List[int] = [
        resolve(_extract_coordinate(row, lon_col, lat_col, index)) for index, row in df.iterrows()
    ]
    annotated = df.copy()
    annotated["utm_epsg"] = pd.Series(codes, index=df.index, dtype="int64")
    return annotated


def points_frame(
    df: pd.DataFrame,
    lon_col: str = DEFAULT_LON_COLUMN,
    lat_col: str = DEFAULT_LAT_COLUMN,
) -> gpd.GeoDataFrame:
    """Convertit une table lon/lat en GeoDataFrame EPSG:4326."""

    _require_columns(df, lon_col, lat_col)
    geometry = gpd.points_from_xy(pd.to_numeric(df[lon_col]), pd.to_numeric(df[lat_col]))
    return gpd.GeoDataFrame(df.copy(), geometry=geometry, crs=WGS84)


def buffer_points(
    df: pd.DataFrame,
    distance_m: float,
    lon_col: str = DEFAULT_LON_COLUMN,
    lat_col: str = DEFAULT_LAT_COLUMN,
) -> gpd.GeoDataFrame:
    """Construit un buffer métrique autour de chaque point, chacun dans sa zone UTM."""

    _require_columns(df, lon_col, lat_col)
    geometries = [
        buffer_geographic(_extract_coordinate(row, lon_col, lat_col, index), distance_m)
        for index, row in df.iterrows()
    ]
    return gpd.GeoDataFrame(df.copy(), geometry=geometries, crs=WGS84)
