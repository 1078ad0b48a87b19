"""Configuration centralisée des chemins de données."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    root: Path
    data_dir: Path
    output_dir: Path
    source_crs: str = "EPSG:4326"

    @classmethod
    def from_root(cls, root: Path | None = None) -> "Settings":
        base = root or Path(__file__).resolve().parents[2]
        return cls(
            root=base,
            data_dir=base / "data",
            output_dir=base / "results",
        )

    def resolve_path(self, candidate: Path | None) -> Path | None:
        """Rend un chemin relatif absolu par rapport à la racine."""

        if candidate is None:
            return None
        if candidate.is_absolute():
            return candidate
        return (self.root / candidate).resolve()


def get_settings(root: Path | None = None) -> Settings:
    """Helper for callers to fetch the repository settings."""

    return Settings.from_root(root)
