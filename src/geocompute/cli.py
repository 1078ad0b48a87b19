"""Interface en ligne de commande pour les exemples de géocalcul."""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import typer
from rasterio.errors import RasterioIOError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import get_settings
from .crs import InvalidArgument, describe_crs, resolve, utm_epsg_for_frame, utm_zone_number
from .drivers import UnsupportedFormat, driver_for_path, list_drivers
from .figures import plot_layer, plot_raster
from .io import batch_metadata, list_rasters, read_raster, read_raster_metadata, read_vector, write_vector
from .points import DEFAULT_LAT_COLUMN, DEFAULT_LON_COLUMN, annotate_utm_zones, load_points_table
from .reproject import reproject_raster, to_crs, to_utm

app = typer.Typer(help="Outils CLI pour les exemples de géocalcul")
console = Console()


def _input_path(root: Optional[Path], candidate: Path) -> Path:
    path = get_settings(root).resolve_path(candidate) or candidate
    if not path.exists():
        console.print(f"[red]Fichier introuvable : {path}[/red]")
        raise typer.Exit(code=1)
    return path


def _load_layer(root: Optional[Path], path: Path):  # type: ignore[no-untyped-def]
    frame = read_vector(path)
    if frame.crs is None:
        source_crs = get_settings(root).source_crs
        console.print(f"[yellow]{path.name} sans CRS : {source_crs} supposé[/yellow]")
        frame = frame.set_crs(source_crs)
    return frame


@contextmanager
def _external_errors() -> Iterator[None]:
    """Convertit les erreurs GDAL/PROJ en message rouge et code de sortie 1."""

    try:
        yield
    except typer.Exit:
        raise
    except (RasterioIOError, RuntimeError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)


def _driver_kind(path: Path, param_hint: str) -> str:
    try:
        return driver_for_path(path).kind
    except UnsupportedFormat as exc:
        raise typer.BadParameter(str(exc), param_hint=param_hint)


@app.command("utm-zone")
def utm_zone(
    lon: float = typer.Option(..., "--lon", help="Longitude (degrés, WGS84)"),
    lat: float = typer.Option(..., "--lat", help="Latitude (degrés, WGS84)"),
) -> None:
    """Affiche la zone UTM et le code EPSG couvrant une coordonnée."""

    try:
        epsg = resolve((lon, lat))
    except InvalidArgument as exc:
        raise typer.BadParameter(str(exc))
    hemisphere = "N" if epsg < 32700 else "S"
    console.print(f"Zone UTM {utm_zone_number(lon)}{hemisphere} : EPSG:{epsg}")


@app.command("utm-zones")
def utm_zones(
    csv: Path = typer.Argument(..., help="CSV contenant des colonnes longitude/latitude"),
    lon_col: str = typer.Option(DEFAULT_LON_COLUMN, "--lon-col", help="Colonne des longitudes", show_default=True),
    lat_col: str = typer.Option(DEFAULT_LAT_COLUMN, "--lat-col", help="Colonne des latitudes", show_default=True),
    output: Optional[Path] = typer.Option(None, "--output", help="CSV enrichi de la colonne utm_epsg"),
    root: Optional[Path] = typer.Option(None, "--root", help="Chemin vers la racine du dépôt"),
) -> None:
    """Calcule la zone UTM de chaque ligne d'un CSV de points."""

    settings = get_settings(root)
    df = load_points_table(_input_path(root, csv))
    try:
        annotated = annotate_utm_zones(df, lon_col=lon_col, lat_col=lat_col)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    table = Table(title="Zones UTM", header_style="bold cyan")
    table.add_column("EPSG")
    table.add_column("Points", justify="right")
    for epsg, count in annotated["utm_epsg"].value_counts().sort_index().items():
        table.add_row(f"EPSG:{epsg}", str(count))
    console.print(table)

    if output:
        output_path = settings.resolve_path(output) or output
        output_path.parent.mkdir(parents=True, exist_ok=True)
        annotated.to_csv(output_path, index=False)
        console.print(f"Résultats détaillés exportés dans {output_path}")


@app.command()
def drivers(
    kind: Optional[str] = typer.Option(None, "--kind", help="Filtrer : vector ou raster"),
) -> None:
    """Liste les pilotes GDAL/OGR disponibles."""

    if kind not in (None, "vector", "raster"):
        raise typer.BadParameter("Le type doit être 'vector' ou 'raster'.", param_hint="--kind")
    table = Table(title="Pilotes disponibles", header_style="bold cyan")
    table.add_column("Pilote")
    table.add_column("Type")
    table.add_column("Mode")
    table.add_column("Extensions")

    for descriptor in list_drivers(kind):  # type: ignore[arg-type]
        table.add_row(
            descriptor.name,
            descriptor.kind,
            descriptor.mode or "-",
            ", ".join(descriptor.extensions) or "-",
        )
    console.print(table)


def _raster_directory_table(directory: Path) -> Table:
    rasters = list_rasters(directory)
    if not rasters:
        console.print(f"[red]Aucun raster dans {directory}[/red]")
        raise typer.Exit(code=1)
    table = Table(title=f"Rasters de {directory.name}", header_style="bold green")
    table.add_column("Fichier")
    table.add_column("Pilote")
    table.add_column("CRS")
    table.add_column("Taille", justify="right")
    table.add_column("Bandes", justify="right")
    for metadata in batch_metadata(rasters, skip_errors=True):
        table.add_row(
            Path(metadata["path"]).name,
            metadata["driver"],
            metadata["crs"] or "-",
            f"{metadata['width']} x {metadata['height']}",
            str(metadata["count"]),
        )
    return table


@app.command()
def info(
    path: Path = typer.Argument(..., help="Fichier vecteur ou raster, ou dossier de rasters"),
    root: Optional[Path] = typer.Option(None, "--root", help="Chemin vers la racine du dépôt"),
) -> None:
    """Résume une couche vecteur, un raster ou un dossier de rasters."""

    source = _input_path(root, path)
    if source.is_dir():
        with _external_errors():
            table = _raster_directory_table(source)
        console.print(table)
        return

    kind = _driver_kind(source, "PATH")
    table = Table(title=source.name, header_style="bold green")
    table.add_column("Propriété")
    table.add_column("Valeur")

    with _external_errors():
        if kind == "vector":
            frame = _load_layer(root, source)
            try:
                suggested = f"EPSG:{utm_epsg_for_frame(frame)}"
            except InvalidArgument:
                suggested = "-"
            table.add_row("Entités", str(len(frame)))
            table.add_row("CRS", frame.crs.to_string() if frame.crs else "-")
            table.add_row("Emprise", ", ".join(f"{value:.4f}" for value in frame.total_bounds))
            table.add_row("Zone UTM suggérée", suggested)
        else:
            metadata = read_raster_metadata(source)
            table.add_row("Pilote", metadata["driver"])
            table.add_row("CRS", metadata["crs"] or "-")
            table.add_row("Taille", f"{metadata['width']} x {metadata['height']}")
            table.add_row("Bandes", str(metadata["count"]))
            table.add_row("Type", metadata["dtype"])
            table.add_row("Résolution", f"{abs(metadata['transform'][0]):.4f} x {abs(metadata['transform'][4]):.4f}")

    console.print(table)


@app.command("crs-info")
def crs_info(crs: str = typer.Argument(..., help="CRS : 'EPSG:4326', chaîne PROJ ou WKT")) -> None:
    """Décrit un système de coordonnées."""

    try:
        details = describe_crs(crs)
    except InvalidArgument as exc:
        raise typer.BadParameter(str(exc), param_hint="CRS")

    table = Table(title=details["name"], header_style="bold magenta")
    table.add_column("Propriété")
    table.add_column("Valeur")
    table.add_row("EPSG", str(details["epsg"]) if details["epsg"] else "-")
    table.add_row("Projeté", "oui" if details["is_projected"] else "non")
    table.add_row("Unités", details["units"] or "-")
    table.add_row("PROJ", details["proj4"])
    console.print(table)


@app.command("reproject")
def reproject_command(
    source: Path = typer.Argument(..., help="Fichier à reprojeter"),
    destination: Path = typer.Argument(..., help="Fichier de sortie"),
    epsg: Optional[int] = typer.Option(None, "--epsg", help="Code EPSG cible (zone UTM automatique par défaut)"),
    resampling: str = typer.Option("nearest", help="Rééchantillonnage raster", show_default=True),
    root: Optional[Path] = typer.Option(None, "--root", help="Chemin vers la racine du dépôt"),
) -> None:
    """Reprojette une couche ou un raster (vers sa zone UTM si --epsg est omis)."""

    actual_source = _input_path(root, source)
    actual_destination = get_settings(root).resolve_path(destination) or destination
    kind = _driver_kind(actual_source, "SOURCE")
    if _driver_kind(actual_destination, "DESTINATION") != kind:
        raise typer.BadParameter("La source et la destination doivent être du même type.", param_hint="DESTINATION")

    try:
        with _external_errors():
            if kind == "vector":
                frame = _load_layer(root, actual_source)
                projected = to_crs(frame, epsg) if epsg else to_utm(frame)
                written = write_vector(projected, actual_destination)
                target = projected.crs.to_string()
            else:
                written = reproject_raster(actual_source, actual_destination, epsg, resampling=resampling)
                target = read_raster_metadata(written)["crs"]
    except (InvalidArgument, UnsupportedFormat) as exc:
        raise typer.BadParameter(str(exc))

    console.print(f"{actual_source.name} reprojeté en {target} : {written}")
    console.print(f"Date d'exécution : {datetime.now():%Y-%m-%d %H:%M:%S}")


@app.command()
def plot(
    source: Path = typer.Argument(..., help="Fichier vecteur ou raster"),
    output: Path = typer.Argument(..., help="Image PNG de sortie"),
    column: Optional[str] = typer.Option(None, "--column", help="Attribut pour la couleur (vecteur)"),
    band: int = typer.Option(1, "--band", help="Bande à afficher (raster)", show_default=True),
    root: Optional[Path] = typer.Option(None, "--root", help="Chemin vers la racine du dépôt"),
) -> None:
    """Exporte un aperçu PNG d'une couche ou d'un raster."""

    actual_source = _input_path(root, source)
    actual_output = get_settings(root).resolve_path(output) or output
    kind = _driver_kind(actual_source, "SOURCE")
    try:
        with _external_errors():
            if kind == "vector":
                written = plot_layer(read_vector(actual_source), actual_output, column=column)
            else:
                written = plot_raster(read_raster(actual_source), actual_output, band=band)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    console.print(f"Figure exportée dans {written}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
