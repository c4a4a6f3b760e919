"""Discover overlay files stored in the overlay directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StoredOverlay:
    name: str
    size_kb: float


def list_overlay_files(overlay_dir: Path) -> list[StoredOverlay] | None:
    """Stored ``*.gpx`` files sorted by name, or ``None`` if the directory is missing."""
    if not overlay_dir.is_dir():
        return None
    return [
        StoredOverlay(name=path.name, size_kb=path.stat().st_size / 1024)
        for path in sorted(overlay_dir.glob("*.gpx"))
        if path.is_file()
    ]


def format_overlay_listing(overlay_dir: Path, entries: list[StoredOverlay] | None) -> list[str]:
    if entries is None:
        return [f"No overlay directory found. Create {overlay_dir}/ to store overlay files."]
    lines = ["Available overlay files:"]
    lines.extend(f"  {entry.name} ({entry.size_kb:.1f} KB)" for entry in entries)
    return lines
