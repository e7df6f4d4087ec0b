"""
Import specifier classification.

Every specifier ends up in exactly one of five classes:

  - internal-resolved:   relative (or aliased) import found on disk inside the project
  - internal-unresolved: relative import whose target file does not exist
  - external-verified:   resolved on disk under node_modules
  - external-unverified: not on disk, but declared in package.json
  - unresolved:          none of the above

Resolution never raises; filesystem errors degrade to unresolved.
"""

import enum
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from ngkg.resolver.module_resolution import NODE_MODULES, ModuleResolver, probe_file
from ngkg.resolver.package_manifest import PackageManifest, extract_package_name, is_bare_specifier
from ngkg.resolver.tsconfig import CompilerConfig

logger = logging.getLogger(__name__)


class ImportClassification(enum.StrEnum):
    internal_resolved = "internal-resolved"
    internal_unresolved = "internal-unresolved"
    external_verified = "external-verified"
    external_unverified = "external-unverified"
    unresolved = "unresolved"


@dataclass(frozen=True)
class ImportResolution:
    """Outcome of resolving one specifier from one file.

    Attributes:
        import_path: The specifier as written
        resolved_path: Absolute file path when found on disk
        is_external: True for third-party packages
        exists: True when ``resolved_path`` exists
        package_name: First (or first two, when scoped) specifier segments for
            external imports
        is_relative: True for specifiers starting with "."
    """

    import_path: str
    resolved_path: str | None = None
    is_external: bool = False
    exists: bool = False
    package_name: str | None = None
    is_relative: bool = False

    @property
    def classification(self) -> ImportClassification:
        if self.is_external:
            if self.exists:
                return ImportClassification.external_verified
            return ImportClassification.external_unverified
        if self.exists:
            return ImportClassification.internal_resolved
        if self.is_relative:
            return ImportClassification.internal_unresolved
        return ImportClassification.unresolved


@dataclass
class ResolverStats:
    cache_hits: int = 0
    cache_misses: int = 0


class ImportResolver:
    """Classifies import specifiers for one project parse.

    Results are memoised per ``(source_file, specifier)``; create a new
    resolver for each parse.
    """

    def __init__(
        self,
        compiler_config: CompilerConfig | None = None,
        manifest: PackageManifest | None = None,
    ):
        self.compiler_config = compiler_config
        self.manifest = manifest
        self.module_resolver = ModuleResolver(compiler_config)
        self.stats = ResolverStats()
        self._cache: dict[tuple[str, str], ImportResolution] = {}
        self._lock = threading.Lock()

    def resolve_import(self, specifier: str, source_file: Path | str) -> ImportResolution:
        key = (str(source_file), specifier)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                self.stats.cache_hits += 1
                return cached
            self.stats.cache_misses += 1

        try:
            resolution = self._resolve(specifier, Path(source_file))
        except (OSError, ValueError) as e:
            logger.debug(f"Resolution of {specifier!r} from {source_file} failed: {e}")
            resolution = ImportResolution(import_path=specifier, is_relative=specifier.startswith("."))

        with self._lock:
            self._cache[key] = resolution
        return resolution

    def _resolve(self, specifier: str, source_file: Path) -> ImportResolution:
        if specifier.startswith("."):
            candidate = Path(os.path.normpath(source_file.parent / specifier))
            resolved = probe_file(candidate)
            return ImportResolution(
                import_path=specifier,
                resolved_path=str(resolved) if resolved else None,
                is_external=False,
                exists=resolved is not None,
                is_relative=True,
            )

        resolved = self.module_resolver.resolve(specifier, source_file)
        if resolved is not None:
            is_external = NODE_MODULES in resolved.parts
            return ImportResolution(
                import_path=specifier,
                resolved_path=str(resolved),
                is_external=is_external,
                exists=True,
                package_name=extract_package_name(specifier) if is_external else None,
            )

        if is_bare_specifier(specifier):
            package_name = extract_package_name(specifier)
            if self.manifest is not None and self.manifest.has_dependency(package_name):
                return ImportResolution(
                    import_path=specifier,
                    is_external=True,
                    exists=False,
                    package_name=package_name,
                )

        return ImportResolution(import_path=specifier)

    def package_version(self, package_name: str | None) -> str | None:
        if package_name is None or self.manifest is None:
            return None
        return self.manifest.dependency_version(package_name)
