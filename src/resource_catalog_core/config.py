from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from resource_catalog_core.exceptions import ConfigurationError

CONFIG_ENV_VAR = "RESOURCE_CATALOG_CONFIG"
DEFAULT_EXTENSIONS = ("csv", "xlsx", "json")


@dataclass
class CatalogConfig:
    """Catalog configuration container."""

    search_roots: list[Path] = field(default_factory=list)
    accepted_extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    # Skip the immutability check; tables are still never written back
    writeable: bool = False
    recycle: bool = True
    scan_packages: list[str] = field(default_factory=list)


def load_catalog_config(path: Path | str | None = None) -> CatalogConfig:
    """Load the catalog configuration from a YAML file.

    The file holds a top-level ``catalog`` mapping. Relative search roots are
    resolved against the directory containing the file.

    Args:
        path: Config file path. Defaults to the RESOURCE_CATALOG_CONFIG
            environment variable.

    Raises:
        ConfigurationError: If no path is available, the file is missing or
            its content is invalid.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
        if not path:
            raise ConfigurationError(f"{CONFIG_ENV_VAR} environment variable is required")

    config_path = Path(path)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigurationError(f"Cannot read catalog config [{config_path}]: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in catalog config [{config_path}]: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Catalog config [{config_path}] must be a mapping")
    section = data.get("catalog")
    if not isinstance(section, dict):
        raise ConfigurationError(f"Catalog config [{config_path}] has no 'catalog' section")

    return _parse_section(section, config_path.parent)


def _parse_section(section: dict[str, Any], base_dir: Path) -> CatalogConfig:
    roots = _string_list(section, "search_roots")
    if not roots:
        raise ConfigurationError("catalog.search_roots must list at least one directory")

    if section.get("accepted_extensions") is None:
        extensions = list(DEFAULT_EXTENSIONS)
    else:
        extensions = _string_list(section, "accepted_extensions")
        if not extensions:
            raise ConfigurationError("catalog.accepted_extensions must not be empty")

    return CatalogConfig(
        search_roots=[_resolve(base_dir, root) for root in roots],
        accepted_extensions=tuple(ext.lstrip(".").lower() for ext in extensions),
        writeable=_flag(section, "writeable", False),
        recycle=_flag(section, "recycle", True),
        scan_packages=_string_list(section, "scan_packages"),
    )


def _string_list(section: dict[str, Any], key: str) -> list[str]:
    value = section.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"catalog.{key} must be a string or a list of strings")
    return value


def _flag(section: dict[str, Any], key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ConfigurationError(f"catalog.{key} must be true or false")
    return value


def _resolve(base_dir: Path, root: str) -> Path:
    path = Path(root).expanduser()
    return path if path.is_absolute() else base_dir / path
