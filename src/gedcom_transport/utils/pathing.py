# src/gedcom_transport/utils/pathing.py

from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]

# <project_root>/src/gedcom_transport/utils/pathing.py
_PROJECT_ROOT = Path(__file__).resolve().parents[3]

CONFIG_DIR = "config"
MOCK_FILES_DIR = "mock_files"


def project_root() -> Path:
    """Checkout root: the directory holding src/, config/ and mock_files/."""
    return _PROJECT_ROOT


def resolve_project_path(relative: PathLike) -> Path:
    """
    Resolve ``relative`` against the project root. Absolute paths are
    returned unchanged.
    """
    path = Path(relative)
    if path.is_absolute():
        return path
    return project_root() / path


def config_path(filename: PathLike = "gedcom_transport.yml") -> Path:
    return resolve_project_path(Path(CONFIG_DIR) / filename)


def mock_file_path(filename: PathLike) -> Path:
    """
    Path of a sample GEDCOM file under mock_files/, e.g.
    ``mock_file_path("sample-ansel.ged")``.
    """
    return resolve_project_path(Path(MOCK_FILES_DIR) / filename)
