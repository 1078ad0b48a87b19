"""Exports PNG rapides des couches et rasters."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import geopandas as gpd
import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.axes_grid1 import make_axes_locatable

from .io import RasterData

matplotlib.use("Agg")  # Garantit un backend hors-écran pour les rendus batch


def _save(fig: plt.Figure, output: Path, dpi: int) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return output


def plot_layer(
    frame: gpd.GeoDataFrame,
    output: Path,
    column: Optional[str] = None,
    title: Optional[str] = None,
    dpi: int = 150,
) -> Path:
    """Dessine une couche vecteur (éventuellement colorée par ``column``)."""

    if column is not None and column not in frame.columns:
        raise ValueError(f"Colonne absente de la couche : {column}")
    fig, ax = plt.subplots(figsize=(7, 7))
    frame.plot(ax=ax, column=column, legend=column is not None, edgecolor="black", linewidth=0.4)
    if frame.crs is not None:
        ax.set_xlabel(frame.crs.axis_info[0].name if frame.crs.axis_info else "x")
        ax.set_ylabel(frame.crs.axis_info[1].name if len(frame.crs.axis_info) > 1 else "y")
    ax.set_title(title or (frame.crs.name if frame.crs is not None else "Couche"))
    return _save(fig, Path(output), dpi)


def plot_raster(
    raster: RasterData,
    output: Path,
    band: int = 1,
    cmap: str = "viridis",
    title: Optional[str] = None,
    dpi: int = 150,
) -> Path:
    """Dessine une bande d'un raster avec sa barre de couleurs."""

    if not 1 <= band <= raster.count:
        raise ValueError(f"Bande {band} hors limites (1-{raster.count})")
    data = raster.array[band - 1].astype("float64")
    nodata = raster.profile.get("nodata")
    if nodata is not None:
        data = np.where(data == nodata, np.nan, data)

    fig, ax = plt.subplots(figsize=(7, 6))
    extent = None
    if raster.transform is not None:
        rows, cols = raster.shape
        t = raster.transform
        extent = (t.c, t.c + t.a * cols, t.f + t.e * rows, t.f)
    image = ax.imshow(data, cmap=cmap, extent=extent)
    divider = make_axes_locatable(ax)
    cax = divider.append_axes("right", size="4%", pad=0.1)
    fig.colorbar(image, cax=cax)
    ax.set_title(title or f"Bande {band}")
    return _save(fig, Path(output), dpi)
