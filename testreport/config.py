"""Report builder configuration file management.

Reads a JSON file holding the defaults applied while building
reports: the fallback package name and the properties stamped on every
package.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

# Property key under which the Go version is recorded
GO_VERSION_PROPERTY = "go.version"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "package_name": "",
    "go_version": None,
    "properties": {},
}


class BuilderConfig:
    """Report builder settings, optionally read from a JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = _defaults()
        if path is not None and path.exists():
            self._load()

    def _load(self) -> None:
        """Load config from the file, keeping defaults for bad entries."""
        assert self.path is not None
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError):
            return
        if not isinstance(data, dict):
            return
        for key in ("package_name", "go_version"):
            if isinstance(data.get(key), str):
                self._data[key] = data[key]
        if isinstance(data.get("properties"), dict):
            self._data["properties"] = dict(data["properties"])

    @property
    def package_name(self) -> str:
        """Name given to a package that no summary event named."""
        val = self._data.get("package_name", DEFAULT_CONFIG["package_name"])
        return str(val) if val is not None else ""

    @property
    def go_version(self) -> str | None:
        val = self._data.get("go_version", DEFAULT_CONFIG["go_version"])
        return str(val) if val is not None else None

    @property
    def package_properties(self) -> dict[str, str]:
        """Properties applied to every package, including ``go.version``."""
        props: dict[str, str] = {}
        extra = self._data.get("properties")
        if isinstance(extra, dict):
            props.update({str(k): str(v) for k, v in extra.items()})
        if self.go_version is not None:
            props[GO_VERSION_PROPERTY] = self.go_version
        return props

    def set_config(
        self,
        package_name: str | None = None,
        go_version: str | None = None,
        properties: dict[str, str] | None = None,
    ) -> None:
        """Update configuration values."""
        if package_name is not None:
            self._data["package_name"] = package_name
        if go_version is not None:
            self._data["go_version"] = go_version
        if properties is not None:
            self._data["properties"] = dict(properties)


def _defaults() -> dict[str, Any]:
    data = dict(DEFAULT_CONFIG)
    data["properties"] = {}
    return data
