# src/gedcom_transport/utils/__init__.py

from .pathing import (
    config_path,
    mock_file_path,
    project_root,
    resolve_project_path,
)

__all__ = [
    "config_path",
    "mock_file_path",
    "project_root",
    "resolve_project_path",
]
