"""Helpers for coordinate reference system selections (UTM zones, etc.)."""
from __future__ import annotations

import math
import warnings
from typing import Any, NamedTuple

from pyproj import CRS
from pyproj.exceptions import CRSError
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

UTM_NORTH_BASE = 32600
UTM_SOUTH_BASE = 32700
UTM_ZONE_COUNT = 60
UTM_ZONE_WIDTH = 6.0
WGS84 = "EPSG:4326"


class InvalidArgument(ValueError):
    """Coordonnée, géométrie ou CRS hors du domaine accepté."""


class GeoPoint(NamedTuple):
    """Coordonnée géographique WGS84 (degrés), longitude en premier."""

    longitude: float
    latitude: float


def validate_point(point: GeoPoint | tuple[float, float]) -> GeoPoint:
    """Convertit et contrôle une coordonnée (lon, lat) ; lève InvalidArgument sinon."""

    try:
        lon, lat = (float(value) for value in point)
    except (TypeError, ValueError) as exc:
        raise InvalidArgument(f"Coordonnée illisible : {point!r}") from exc
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise InvalidArgument(f"Coordonnée non finie : ({lon}, {lat})")
    if not -180.0 <= lon <= 180.0:
        raise InvalidArgument(f"Longitude hors domaine [-180, 180] : {lon}")
    if not -90.0 <= lat <= 90.0:
        raise InvalidArgument(f"Latitude hors domaine [-90, 90] : {lat}")
    return GeoPoint(lon, lat)


def utm_zone_number(longitude: float) -> int:
    """Return the UTM zone number (1-60) covering a longitude.

    Longitude 180 wraps onto zone 1, like -180.
    """

    lon = validate_point(GeoPoint(longitude, 0.0)).longitude
    return int(math.floor((lon + 180.0) / UTM_ZONE_WIDTH)) % UTM_ZONE_COUNT + 1


def resolve(point: GeoPoint | tuple[float, float]) -> int:
    """Return the EPSG code of the WGS84 UTM zone covering ``(lon, lat)``.

    The equator (latitude 0) is assigned to the northern range (326xx).
    """

    lon, lat = validate_point(point)
    zone = utm_zone_number(lon)
    if lat >= 0:
        return UTM_NORTH_BASE + zone
    return UTM_SOUTH_BASE + zone


def utm_epsg_for_point(lat: float, lon: float) -> int:
    """Return the EPSG code of the UTM zone covering the given coordinate."""

    return resolve(GeoPoint(lon, lat))


def utm_crs(point: GeoPoint | tuple[float, float]) -> CRS:
    return CRS.from_epsg(resolve(point))


def utm_epsg_for_geometry(geometry: BaseGeometry) -> int:
    """Retourne le code UTM du centroïde d'une géométrie exprimée en EPSG:4326."""

    if geometry is None or geometry.is_empty:
        raise InvalidArgument("Géométrie vide : impossible de choisir une zone UTM.")
    centroid = geometry.centroid
    return resolve(GeoPoint(centroid.x, centroid.y))


def utm_epsg_for_frame(frame: Any) -> int:
    """Choisit la zone UTM d'une couche (GeoDataFrame ou GeoSeries).

    La couche est ramenée en EPSG:4326 si besoin, ses géométries sont fusionnées
    et la zone est calculée sur le centroïde. Un avertissement est émis quand
    l'emprise couvre plusieurs zones.
    """

    if frame.crs is None:
        raise InvalidArgument("La couche n'a pas de CRS : impossible de choisir une zone UTM.")
    if len(frame) == 0:
        raise InvalidArgument("La couche ne contient aucune géométrie.")
    geographic = frame if frame.crs.to_epsg() == 4326 else frame.to_crs(WGS84)
    merged = unary_union([geom for geom in geographic.geometry if geom is not None])
    epsg = utm_epsg_for_geometry(merged)

    minx, _, maxx, _ = merged.bounds
    west, east = utm_zone_number(minx), utm_zone_number(maxx)
    if west != east:
        warnings.warn(
            f"L'emprise couvre les zones UTM {west} à {east} ; zone retenue : EPSG:{epsg}.",
            stacklevel=2,
        )
    return epsg


def describe_crs(crs_like: Any) -> dict:
    """Résume un CRS (code EPSG, chaîne WKT, chaîne PROJ, etc.)."""

    try:
        crs = CRS.from_user_input(crs_like)
    except CRSError as exc:
        raise InvalidArgument(f"CRS non reconnu : {crs_like!r}") from exc

    units = crs.axis_info[0].unit_name if crs.axis_info else None
    with warnings.catch_warnings():
        # conversion PROJ.4 avec perte signalée par pyproj
        warnings.simplefilter("ignore", UserWarning)
        proj4 = crs.to_proj4()
    return {
        "name": crs.name,
        "epsg": crs.to_epsg(),
        "is_projected": crs.is_projected,
        "is_geographic": crs.is_geographic,
        "units": units,
        "proj4": proj4,
        "wkt": crs.to_wkt(),
    }
