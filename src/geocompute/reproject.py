"""Reprojection de géométries, de couches et de rasters."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import geopandas as gpd
import rasterio
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError
from rasterio.crs import CRS as RasterioCRS
from rasterio.warp import Resampling, calculate_default_transform, reproject, transform_bounds
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry
from shapely.ops import transform

from .crs import WGS84, GeoPoint, InvalidArgument, resolve, utm_epsg_for_frame, validate_point
from .drivers import UnsupportedFormat, driver_for_path

CRSLike = Union[int, str, CRS]


def _as_crs(value: CRSLike) -> CRS:
    try:
        if isinstance(value, int):
            return CRS.from_epsg(value)
        return CRS.from_user_input(value)
    except CRSError as exc:
        raise InvalidArgument(f"CRS non reconnu : {value!r}") from exc


def _transformer(source_crs: CRSLike, target_crs: CRSLike) -> Transformer:
    return Transformer.from_crs(_as_crs(source_crs), _as_crs(target_crs), always_xy=True)


def transform_geometry(geometry: BaseGeometry, source_crs: CRSLike, target_crs: CRSLike) -> BaseGeometry:
    """Transforme une géométrie shapely d'un CRS à un autre.

    ``target_crs`` accepte un code EPSG entier (par ex. celui retourné par
    :func:`geocompute.crs.resolve`), une chaîne ``"EPSG:…"`` ou une chaîne PROJ.
    """

    return transform(_transformer(source_crs, target_crs).transform, geometry)


def to_crs(frame: gpd.GeoDataFrame, target_crs: CRSLike) -> gpd.GeoDataFrame:
    if frame.crs is None:
        raise InvalidArgument("La couche n'a pas de CRS : reprojection impossible.")
    return frame.to_crs(_as_crs(target_crs))


def to_utm(frame: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Reprojette une couche dans la zone UTM de son centroïde."""

    return to_crs(frame, utm_epsg_for_frame(frame))


def buffer_geographic(point: GeoPoint | tuple[float, float], distance_m: float) -> BaseGeometry:
    """Construit un buffer métrique autour d'un point lon/lat, retourné en EPSG:4326."""

    if distance_m < 0:
        raise InvalidArgument(f"La distance du buffer doit être positive (reçu : {distance_m}).")
    lon, lat = validate_point(point)
    epsg = resolve(GeoPoint(lon, lat))
    to_proj = _transformer(WGS84, epsg)
    to_geo = _transformer(epsg, WGS84)
    projected = transform(to_proj.transform, Point(lon, lat))
    return transform(to_geo.transform, projected.buffer(distance_m))


def _raster_centre_epsg(src: Any) -> int:
    left, bottom, right, top = transform_bounds(src.crs, WGS84, *src.bounds)
    return resolve(GeoPoint((left + right) / 2.0, (bottom + top) / 2.0))


def reproject_raster(
    source: Path,
    destination: Path,
    target_crs: Optional[CRSLike] = None,
    resampling: str = "nearest",
) -> Path:
    """Reprojette un raster bande par bande.

    Sans ``target_crs``, la zone UTM du centre du raster est utilisée.
    """

    source = Path(source)
    destination = Path(destination)
    if not source.exists():
        raise FileNotFoundError(f"Raster introuvable : {source}")
    driver = driver_for_path(destination)
    if driver.kind != "raster" or not driver.can_write:
        raise UnsupportedFormat(f"Destination raster non inscriptible : {destination.name}")
    try:
        method = Resampling[resampling]
    except KeyError:
        raise InvalidArgument(f"Méthode de rééchantillonnage inconnue : {resampling}") from None

    with rasterio.open(source) as src:
        if src.crs is None:
            raise InvalidArgument(f"Le raster {source.name} n'a pas de CRS.")
        target = _as_crs(target_crs) if target_crs is not None else CRS.from_epsg(_raster_centre_epsg(src))
        dst_crs = RasterioCRS.from_wkt(target.to_wkt())
        dst_transform, width, height = calculate_default_transform(
            src.crs, dst_crs, src.width, src.height, *src.bounds
        )
        meta = src.meta.copy()
        meta.update(
            {
                "driver": driver.name,
                "crs": dst_crs,
                "transform": dst_transform,
                "width": width,
                "height": height,
            }
        )
        destination.parent.mkdir(parents=True, exist_ok=True)
        with rasterio.open(destination, "w", **meta) as dst:
            for band in range(1, src.count + 1):
                reproject(
                    source=rasterio.band(src, band),
                    destination=rasterio.band(dst, band),
                    src_transform=src.transform,
                    src_crs=src.crs,
                    dst_transform=dst_transform,
                    dst_crs=dst_crs,
                    resampling=method,
                )
    return destination
