"""Registre des pilotes GDAL/OGR, résolu à partir de l'extension des fichiers."""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, List, Literal, Optional

import pyogrio
import rasterio
from rasterio.drivers import raster_driver_extensions

DriverKind = Literal["vector", "raster"]


class UnsupportedFormat(ValueError):
    """Extension inconnue ou opération non prise en charge par le pilote."""


@dataclass(frozen=True)
class DriverDescriptor:
    name: str
    kind: DriverKind
    extensions: tuple[str, ...] = ()
    mode: Optional[str] = None  # "r", "rw" ou None si inconnu
    description: Optional[str] = None

    @property
    def can_write(self) -> bool:
        return self.mode is not None and "w" in self.mode


# Extensions usuelles -> pilote. Les pilotes réellement installés sont donnés par list_drivers().
_REGISTRY: tuple[DriverDescriptor, ...] = (
    DriverDescriptor("GeoJSON", "vector", (".geojson", ".json"), "rw"),
    DriverDescriptor("ESRI Shapefile", "vector", (".shp",), "rw"),
    DriverDescriptor("GPKG", "vector", (".gpkg",), "rw"),
    DriverDescriptor("FlatGeobuf", "vector", (".fgb",), "rw"),
    DriverDescriptor("KML", "vector", (".kml",), "rw"),
    DriverDescriptor("GML", "vector", (".gml",), "rw"),
    DriverDescriptor("GPX", "vector", (".gpx",), "rw"),
    DriverDescriptor("CSV", "vector", (".csv",), "rw"),
    DriverDescriptor("Parquet", "vector", (".parquet", ".geoparquet"), "rw", "GeoParquet"),
    DriverDescriptor("GTiff", "raster", (".tif", ".tiff"), "rw"),
    DriverDescriptor("AAIGrid", "raster", (".asc",), "rw"),
    DriverDescriptor("netCDF", "raster", (".nc",), "rw"),
    DriverDescriptor("HFA", "raster", (".img",), "rw"),
    DriverDescriptor("VRT", "raster", (".vrt",), "rw"),
    DriverDescriptor("JP2OpenJPEG", "raster", (".jp2",), "r"),
    DriverDescriptor("PNG", "raster", (".png",), "r"),
)

EXTENSION_INDEX: Dict[str, DriverDescriptor] = {
    ext: descriptor for descriptor in _REGISTRY for ext in descriptor.extensions
}


def registered_drivers() -> tuple[DriverDescriptor, ...]:
    return _REGISTRY


def driver_for_path(path: Path | str) -> DriverDescriptor:
    """Retourne le pilote associé à l'extension du fichier."""

    suffix = Path(path).suffix.lower()
    try:
        return EXTENSION_INDEX[suffix]
    except KeyError:
        raise UnsupportedFormat(f"Extension non prise en charge : '{suffix or path}'") from None


def _extensions_by_kind() -> Dict[tuple[str, str], tuple[str, ...]]:
    return {(descriptor.kind, descriptor.name): descriptor.extensions for descriptor in _REGISTRY}


def _vector_drivers() -> List[DriverDescriptor]:
    return [
        DriverDescriptor(name=name, kind="vector", mode=mode)
        for name, mode in pyogrio.list_drivers().items()
    ]


def _raster_drivers() -> List[DriverDescriptor]:
    """Pilotes GDAL à capacité raster.

    ``Env.drivers()`` mêle pilotes raster et OGR : un pilote connu de pyogrio n'est
    retenu que s'il déclare aussi des extensions raster (GPKG, netCDF…).
    """

    with rasterio.Env() as env:
        available = env.drivers()
    vector_names = set(pyogrio.list_drivers())
    raster_capable = set(raster_driver_extensions().values())
    return [
        DriverDescriptor(name=name, kind="raster", description=long_name)
        for name, long_name in available.items()
        if name in raster_capable or name not in vector_names
    ]


def list_drivers(kind: Optional[DriverKind] = None) -> List[DriverDescriptor]:
    """Énumère les pilotes disponibles dans l'installation GDAL courante."""

    if kind not in (None, "vector", "raster"):
        raise ValueError(f"kind doit être 'vector', 'raster' ou None (reçu : {kind!r})")

    descriptors: List[DriverDescriptor] = []
    if kind in (None, "vector"):
        descriptors.extend(_vector_drivers())
    if kind in (None, "raster"):
        descriptors.extend(_raster_drivers())

    extensions = _extensions_by_kind()
    enriched = [
        replace(descriptor, extensions=extensions.get((descriptor.kind, descriptor.name), ()))
        for descriptor in descriptors
    ]
    return sorted(enriched, key=lambda descriptor: (descriptor.kind, descriptor.name))
