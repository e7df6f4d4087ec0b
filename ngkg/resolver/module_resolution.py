"""
Node-style module resolution honouring tsconfig ``paths`` and ``baseUrl``.

Resolution order for a bare specifier:
  1. ``paths`` patterns, longest matching prefix first, ``*`` substituted
  2. ``baseUrl`` joined with the specifier
  3. ``node_modules`` lookup walking up from the importing file, honouring
     package.json ``types``/``typings``/``main`` and index files, then
     ``node_modules/@types``
"""

import json
import logging
from pathlib import Path

from ngkg.resolver.package_manifest import extract_package_name
from ngkg.resolver.tsconfig import CompilerConfig

logger = logging.getLogger(__name__)

FILE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx", ".mjs", ".cjs")
INDEX_FILES = ("index.ts", "index.tsx", "index.d.ts", "index.js")
PACKAGE_ENTRY_FIELDS = ("types", "typings", "main", "module")
NODE_MODULES = "node_modules"


def probe_file(candidate: Path) -> Path | None:
    """First existing file for ``candidate`` in the fixed probe order.

    Exact path, then each extension appended, then index files inside it.
    """
    if candidate.is_file():
        return candidate
    for extension in FILE_EXTENSIONS:
        with_extension = candidate.with_name(candidate.name + extension)
        if with_extension.is_file():
            return with_extension
    if candidate.is_dir():
        for index in INDEX_FILES:
            index_file = candidate / index
            if index_file.is_file():
                return index_file
    return None


class ModuleResolver:
    """Resolves non-relative specifiers the way the TypeScript compiler would."""

    def __init__(self, config: CompilerConfig | None = None):
        self.config = config

    def resolve(self, specifier: str, containing_file: Path) -> Path | None:
        if self.config is not None:
            resolved = self._resolve_paths(specifier) or self._resolve_base_url(specifier)
            if resolved is not None:
                return resolved
        return self._resolve_node_modules(specifier, containing_file)

    def _resolve_paths(self, specifier: str) -> Path | None:
        base = self.config.paths_base
        if not self.config.paths or base is None:
            return None

        matches: list[tuple[int, str, list[str]]] = []
        for pattern, targets in self.config.paths.items():
            if "*" in pattern:
                prefix, _, suffix = pattern.partition("*")
                if specifier.startswith(prefix) and specifier.endswith(suffix) and len(specifier) >= len(prefix) + len(suffix):
                    wildcard = specifier[len(prefix):len(specifier) - len(suffix)]
                    matches.append((len(prefix), wildcard, targets))
            elif pattern == specifier:
                matches.append((len(pattern) + 1, "", targets))

        for _, wildcard, targets in sorted(matches, key=lambda match: -match[0]):
            for target in targets:
                resolved = probe_file(base / target.replace("*", wildcard))
                if resolved is not None:
                    return resolved
        return None

    def _resolve_base_url(self, specifier: str) -> Path | None:
        if self.config.base_url is None:
            return None
        return probe_file(self.config.base_url / specifier)

    def _resolve_node_modules(self, specifier: str, containing_file: Path) -> Path | None:
        package_name = extract_package_name(specifier)
        subpath = specifier[len(package_name):].lstrip("/")
        start = containing_file.parent
        for directory in (start, *start.parents):
            modules_dir = directory / NODE_MODULES
            if not modules_dir.is_dir():
                continue
            for package_dir in (modules_dir / package_name, modules_dir / "@types" / self._types_name(package_name)):
                resolved = self._resolve_package(package_dir, subpath)
                if resolved is not None:
                    return resolved
        return None

    @staticmethod
    def _types_name(package_name: str) -> str:
        # @scope/name is published as @types/scope__name
        if package_name.startswith("@"):
            return package_name[1:].replace("/", "__")
        return package_name

    def _resolve_package(self, package_dir: Path, subpath: str) -> Path | None:
        if not package_dir.is_dir():
            return None
        if subpath:
            return probe_file(package_dir / subpath)

        manifest = package_dir / "package.json"
        if manifest.is_file():
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.debug(f"Unreadable package.json in {package_dir}: {e}")
                data = {}
            for field_name in PACKAGE_ENTRY_FIELDS:
                entry = data.get(field_name) if isinstance(data, dict) else None
                if isinstance(entry, str):
                    resolved = probe_file(package_dir / entry)
                    if resolved is not None:
                        return resolved
        return probe_file(package_dir / "index")
