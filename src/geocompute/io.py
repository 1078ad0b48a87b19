"""Fonctions d'entrée/sortie pour les couches vecteur et les rasters."""
from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, Union

import geopandas as gpd
import numpy as np
import rasterio
from rasterio.errors import RasterioIOError

from .drivers import UnsupportedFormat, driver_for_path, registered_drivers

_PORTABLE_PROFILE_KEYS = frozenset({"crs", "transform", "nodata", "dtype", "width", "height", "count"})


def _raster_suffixes() -> set[str]:
    return {ext for d in registered_drivers() if d.kind == "raster" for ext in d.extensions}


@dataclass
class RasterData:
    """Bandes d'un raster (bands, rows, cols) et son profil rasterio."""

    array: np.ndarray
    profile: dict

    @property
    def crs(self):  # type: ignore[no-untyped-def]
        return self.profile.get("crs")

    @property
    def transform(self):  # type: ignore[no-untyped-def]
        return self.profile.get("transform")

    @property
    def count(self) -> int:
        return int(self.array.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.array.shape[1]), int(self.array.shape[2])


def _require_file(path: Path) -> Path:
    if not path.exists():
        raise FileNotFoundError(f"Fichier introuvable : {path}")
    return path


def read_vector(
    path: Path,
    layer: Optional[Union[str, int]] = None,
    bbox: Optional[tuple[float, float, float, float]] = None,
) -> gpd.GeoDataFrame:
    """Charge une couche vecteur (GeoJSON, Shapefile, GeoPackage, GeoParquet…)."""

    path = _require_file(Path(path))
    driver = driver_for_path(path)
    if driver.kind != "vector":
        raise UnsupportedFormat(f"{path.name} n'est pas une couche vecteur ({driver.name}).")
    if driver.name == "Parquet":
        frame = gpd.read_parquet(path, bbox=bbox)
    else:
        options: dict[str, Any] = {}
        if layer is not None:
            options["layer"] = layer
        if bbox is not None:
            options["bbox"] = bbox
        frame = gpd.read_file(path, **options)
    if frame.crs is None:
        warnings.warn(f"Couche sans CRS : {path.name}")
    return frame


def write_vector(frame: gpd.GeoDataFrame, path: Path, **options: Any) -> Path:
    """Écrit une couche vecteur avec le pilote déduit de l'extension."""

    path = Path(path)
    driver = driver_for_path(path)
    if driver.kind != "vector":
        raise UnsupportedFormat(f"{path.name} n'est pas une destination vecteur ({driver.name}).")
    if not driver.can_write:
        raise UnsupportedFormat(f"Le pilote {driver.name} est en lecture seule.")
    path.parent.mkdir(parents=True, exist_ok=True)
    if driver.name == "Parquet":
        frame.to_parquet(path, **options)
    else:
        frame.to_file(path, driver=driver.name, **options)
    return path


def read_raster(path: Path, bands: Optional[Sequence[int]] = None) -> RasterData:
    """Lit tout ou partie des bandes d'un raster."""

    path = _require_file(Path(path))
    driver = driver_for_path(path)
    if driver.kind != "raster":
        raise UnsupportedFormat(f"{path.name} n'est pas un raster ({driver.name}).")
    with rasterio.open(path) as dataset:
        indexes = list(bands) if bands is not None else list(range(1, dataset.count + 1))
        array = dataset.read(indexes)
        profile = dataset.profile.copy()
    profile["count"] = len(indexes)
    return RasterData(array=array, profile=profile)


def write_raster(raster: RasterData, path: Path, **options: Any) -> Path:
    """Écrit un raster ; le pilote est déduit de l'extension du fichier."""

    path = Path(path)
    driver = driver_for_path(path)
    if driver.kind != "raster":
        raise UnsupportedFormat(f"{path.name} n'est pas une destination raster ({driver.name}).")
    if not driver.can_write:
        raise UnsupportedFormat(f"Le pilote {driver.name} est en lecture seule.")
    rows, cols = raster.shape
    profile = dict(raster.profile)
    if profile.get("driver") != driver.name:
        # Les options de création (tuilage, compression…) sont propres au pilote source.
        profile = {key: value for key, value in profile.items() if key in _PORTABLE_PROFILE_KEYS}
    profile.update(
        {
            "driver": driver.name,
            "count": raster.count,
            "height": rows,
            "width": cols,
            "dtype": raster.array.dtype.name,
        }
    )
    profile.update(options)
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(path, "w", **profile) as dst:
        dst.write(raster.array)
    return path


def read(source: Path, **options: Any) -> Union[gpd.GeoDataFrame, RasterData]:
    """Lit un fichier vecteur ou raster selon son pilote."""

    if driver_for_path(source).kind == "vector":
        return read_vector(Path(source), **options)
    return read_raster(Path(source), **options)


def write(data: Union[gpd.GeoDataFrame, gpd.GeoSeries, RasterData], destination: Path, **options: Any) -> Path:
    """Écrit une couche ou un raster et retourne le chemin produit."""

    if isinstance(data, RasterData):
        return write_raster(data, Path(destination), **options)
    if isinstance(data, gpd.GeoSeries):
        data = gpd.GeoDataFrame(geometry=data)
    if isinstance(data, gpd.GeoDataFrame):
        return write_vector(data, Path(destination), **options)
    raise TypeError(f"Type non pris en charge pour l'écriture : {type(data).__name__}")


def list_rasters(directory: Path, suffixes: Optional[Iterable[str]] = None) -> list[Path]:
    """Retourne la liste triée des rasters d'un dossier (toutes extensions raster connues par défaut)."""

    if not directory.exists():
        return []
    wanted = {s.lower() for s in suffixes} if suffixes is not None else _raster_suffixes()
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in wanted)


def read_raster_metadata(raster_path: Path) -> dict:
    """Extrait les métadonnées principales d'un raster."""

    with rasterio.open(raster_path) as dataset:
        if dataset.crs is None:
            warnings.warn(f"Raster sans CRS : {Path(raster_path).name}")
        return {
            "path": str(raster_path),
            "driver": dataset.driver,
            "bounds": dataset.bounds,
            "crs": dataset.crs.to_string() if dataset.crs else None,
            "width": dataset.width,
            "height": dataset.height,
            "transform": tuple(dataset.transform),
            "count": dataset.count,
            "dtype": dataset.dtypes[0],
            "nodata": dataset.nodata,
        }


def batch_metadata(paths: Iterable[Path], skip_errors: bool = False) -> list[dict]:
    """Collecte les métadonnées d'une série de rasters.

    Avec ``skip_errors``, un raster illisible est signalé par un avertissement
    puis ignoré.
    """

    results: list[dict] = []
    for path in paths:
        try:
            results.append(read_raster_metadata(path))
        except RasterioIOError as exc:
            if not skip_errors:
                raise
            warnings.warn(f"Raster illisible ignoré ({Path(path).name}): {exc}")
    return results
