"""
Import reference data models.

Extractors record the import specifier of every name they reference. The
specifier is resolved later, by the entity resolver, never during
extraction.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImportBinding:
    """One local name bound by an import.

    Attributes:
        local_name: The name visible in the importing file
        imported_name: The exported name in the module ("default" or "*" for
            default and namespace imports)
        module_path: The import specifier, e.g. "./user.service" or "@angular/core"
    """

    local_name: str
    imported_name: str
    module_path: str


@dataclass
class ImportReference:
    """Represents an import statement extracted from a TypeScript file.

    Attributes:
        module_path: The module specifier being imported
            ("./utils", "../lib", "rxjs", "@scope/pkg")
        bindings: Local names the statement binds; empty for side-effect imports
        is_relative: True for "./" and "../" specifiers
        is_type_only: True for ``import type { ... }``
        line_number: 1-indexed line where the import appears
    """

    module_path: str
    bindings: list[ImportBinding] = field(default_factory=list)
    is_relative: bool = False
    is_type_only: bool = False
    line_number: int = 0

    @property
    def imported_names(self) -> list[str]:
        return [binding.local_name for binding in self.bindings]


@dataclass
class ImportMap:
    """Local name -> binding lookup for one file."""

    bindings: dict[str, ImportBinding] = field(default_factory=dict)

    def specifier_for(self, name: str) -> str | None:
        """Import specifier that binds ``name``.

        ``ns.Foo`` is looked up through the namespace binding ``ns``; a
        ``...SPREAD`` name through ``SPREAD``.
        """
        name = name.removeprefix("...")
        binding = self.bindings.get(name)
        if binding is None and "." in name:
            binding = self.bindings.get(name.split(".", 1)[0])
        return binding.module_path if binding else None

    def imported_name(self, name: str) -> str:
        """The exported name behind a possibly aliased local name."""
        binding = self.bindings.get(name.removeprefix("..."))
        if binding is None or binding.imported_name in ("default", "*"):
            return name.removeprefix("...")
        return binding.imported_name
