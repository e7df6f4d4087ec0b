"""
package.json loading and package-name helpers.
"""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ngkg.core.exceptions import ConfigLoadError
from ngkg.resolver.jsonc import find_upwards, load_jsonc

logger = logging.getLogger(__name__)


class PackageManifest(BaseModel):
    """The dependency-related parts of a package.json."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
    dev_dependencies: dict[str, str] = Field(default_factory=dict, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(default_factory=dict, alias="peerDependencies")
    path: Path | None = Field(default=None, exclude=True)

    def all_dependencies(self) -> dict[str, str]:
        """Every declared dependency; runtime ranges win over dev and peer ranges."""
        merged = dict(self.peer_dependencies)
        merged.update(self.dev_dependencies)
        merged.update(self.dependencies)
        return merged

    def has_dependency(self, package_name: str) -> bool:
        return package_name in self.all_dependencies()

    def dependency_version(self, package_name: str) -> str | None:
        return self.all_dependencies().get(package_name)

    def angular_version(self) -> str | None:
        """``@angular/core`` version with a leading ``^`` or ``~`` removed."""
        version = self.dependency_version("@angular/core")
        if version is None:
            return None
        return version.lstrip("^~") or None


def is_bare_specifier(specifier: str) -> bool:
    return not specifier.startswith((".", "/")) and ":" not in specifier[:3]


def extract_package_name(specifier: str) -> str:
    """``@angular/core/testing`` -> ``@angular/core``; ``rxjs/operators`` -> ``rxjs``."""
    parts = specifier.split("/")
    if specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2])
    return parts[0]


def load_package_manifest(root_dir: Path, manifest_path: Path | None = None) -> PackageManifest | None:
    """Load the package.json governing ``root_dir``.

    Looks in ``root_dir`` and its parents when no explicit path is given.
    Returns None when no manifest is found.

    Raises:
        ConfigLoadError: If a found manifest cannot be parsed.
    """
    path = manifest_path or find_upwards(root_dir, "package.json")
    if path is None:
        logger.debug(f"No package.json found above {root_dir}")
        return None
    data = load_jsonc(path)
    try:
        manifest = PackageManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid package.json: {e}", config_path=str(path)) from e
    return manifest.model_copy(update={"path": path})
