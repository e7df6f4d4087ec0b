from ngkg.parser.references.base import ImportBinding, ImportMap, ImportReference
from ngkg.parser.references.typescript_references import TypeScriptImportExtractor, build_import_map

__all__ = [
    "ImportBinding",
    "ImportMap",
    "ImportReference",
    "TypeScriptImportExtractor",
    "build_import_map",
]
