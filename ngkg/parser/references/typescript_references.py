"""
TypeScript import extraction.

Only top-level ``import_statement`` nodes are read. Tree-sitter structure
for ``import { A, B as C } from './utils'``:

  import_statement
    ├── import_clause
    │   └── named_imports
    │       ├── import_specifier (name: A)
    │       └── import_specifier (name: B, alias: C)
    └── string "'./utils'"
"""

from tree_sitter import Node

from ngkg.parser.ast_helpers import string_value
from ngkg.parser.references.base import ImportBinding, ImportMap, ImportReference
from ngkg.parser.tree_sitter_parser import SourceFile


class TypeScriptImportExtractor:
    """Extracts ES import statements from a parsed TypeScript file."""

    @property
    def language(self) -> str:
        return "typescript"

    def extract(self, source: SourceFile) -> list[ImportReference]:
        references: list[ImportReference] = []
        for child in source.root.named_children:
            if child.type != "import_statement":
                continue
            reference = self._extract_import_statement(child, source)
            if reference is not None:
                references.append(reference)
        return references

    def _extract_import_statement(self, node: Node, source: SourceFile) -> ImportReference | None:
        """Handles default, named, aliased, namespace, mixed and side-effect imports."""
        source_node = node.child_by_field_name("source")
        if source_node is None:
            source_node = next((c for c in node.named_children if c.type == "string"), None)
        module_path = string_value(source_node, source)
        if not module_path:
            return None

        is_type_only = any(child.type == "type" for child in node.children)
        bindings: list[ImportBinding] = []

        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is not None:
            for child in clause.named_children:
                match child.type:
                    case "identifier":
                        bindings.append(ImportBinding(source.text(child), "default", module_path))
                    case "namespace_import":
                        alias = next((c for c in child.named_children if c.type == "identifier"), None)
                        if alias is not None:
                            bindings.append(ImportBinding(source.text(alias), "*", module_path))
                    case "named_imports":
                        for specifier in child.named_children:
                            if specifier.type != "import_specifier":
                                continue
                            binding = self._extract_import_specifier(specifier, source, module_path)
                            if binding is not None:
                                bindings.append(binding)

        return ImportReference(
            module_path=module_path,
            bindings=bindings,
            is_relative=module_path.startswith(("./", "../")) or module_path in (".", ".."),
            is_type_only=is_type_only,
            line_number=node.start_point[0] + 1,
        )

    def _extract_import_specifier(
        self,
        node: Node,
        source: SourceFile,
        module_path: str,
    ) -> ImportBinding | None:
        name = node.child_by_field_name("name")
        alias = node.child_by_field_name("alias")
        if name is None:
            return None
        imported = string_value(name, source) or source.text(name)
        local = source.text(alias) if alias is not None else imported
        return ImportBinding(local, imported, module_path)


def build_import_map(source: SourceFile) -> ImportMap:
    import_map = ImportMap()
    for reference in TypeScriptImportExtractor().extract(source):
        for binding in reference.bindings:
            import_map.bindings[binding.local_name] = binding
    return import_map
