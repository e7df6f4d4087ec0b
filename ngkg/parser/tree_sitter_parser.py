"""
Tree-sitter front end for TypeScript sources.

Parses ``.ts``/``.tsx`` files with the grammars from ``tree_sitter_language_pack``
and wraps the result in a ``SourceFile``: the path relative to the project
root, the raw bytes and the syntax tree. Declaration files (``.d.ts``) are
not parsed; they carry no decorated classes. Component templates are parsed with
the ``html`` grammar of the same pack.

Tree-sitter operates on byte offsets, so content is kept as ``bytes`` and
decoded per node on demand.
"""

import threading
from dataclasses import dataclass
from pathlib import Path

from tree_sitter import Node, Parser, Tree
from tree_sitter_language_pack import get_parser as get_ts_parser

from ngkg.core.exceptions import SourceParseError
from ngkg.parser.file_types import FileTypes

FILE_TYPE_TO_LANG = {
    FileTypes.TYPESCRIPT: "typescript",
    FileTypes.TSX: "tsx",
}


_local = threading.local()


def _parser_for(lang: str) -> Parser:
    # Parser instances are not thread-safe; keep one per thread and language
    parsers = getattr(_local, "parsers", None)
    if parsers is None:
        parsers = _local.parsers = {}
    if lang not in parsers:
        parsers[lang] = get_ts_parser(lang)
    return parsers[lang]


@dataclass(frozen=True)
class SourceFile:
    """A parsed TypeScript source file.

    Attributes:
        path: Absolute path on disk
        relative_path: Path relative to the project root, with forward slashes
        content: Raw file content as bytes
        tree: The Tree-sitter syntax tree
        language: Grammar name used for parsing ("typescript" or "tsx")
    """

    path: Path
    relative_path: str
    content: bytes
    tree: Tree
    language: str = "typescript"

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.content[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def declared_type(self, node: Node) -> str | None:
        """Return the annotated type text of a typed position, if any.

        ``node`` is a parameter, field or variable declarator; the answer is
        read from its ``type`` field, so it is the declared type as written.
        """
        annotation = node.child_by_field_name("type")
        if annotation is None:
            return None
        if annotation.type == "type_annotation":
            inner = [child for child in annotation.named_children if child.type != "comment"]
            if not inner:
                return None
            return self.text(inner[0]).strip()
        return self.text(annotation).strip()


def parse_source(
    content: bytes | str,
    relative_path: str = "source.ts",
    path: Path | None = None,
    language: str | None = None,
) -> SourceFile:
    """Parse in-memory TypeScript source.

    Args:
        content: Source text or bytes
        relative_path: Path used for entity ids and locations
        path: Absolute path on disk, defaults to ``relative_path``
        language: Grammar name, inferred from the path when omitted

    Returns:
        SourceFile wrapping the syntax tree.

    Raises:
        SourceParseError: If the grammar cannot be loaded or parsing fails.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    if language is None:
        language = FILE_TYPE_TO_LANG.get(FileTypes.from_path(Path(relative_path)), "typescript")

    try:
        tree = _parser_for(language).parse(content)
    except Exception as e:
        raise SourceParseError(f"Failed to parse source: {e}", file_path=relative_path) from e

    return SourceFile(
        path=path or Path(relative_path),
        relative_path=relative_path,
        content=content,
        tree=tree,
        language=language,
    )


def parse_file(file: Path, root_dir: Path) -> SourceFile:
    """Read and parse one file of a project.

    Raises:
        FileNotFoundError: If the file does not exist.
        SourceParseError: If the file type is unsupported or it cannot be read or parsed.
    """
    if not file.exists():
        raise FileNotFoundError(f"File not found: {file}")

    lang = FILE_TYPE_TO_LANG.get(FileTypes.from_path(file))
    relative_path = file.relative_to(root_dir).as_posix()
    if lang is None:
        raise SourceParseError(
            f"Unsupported file type for parsing: {file.suffix}", file_path=relative_path
        )

    try:
        content = file.read_bytes()
    except OSError as e:
        raise SourceParseError(f"Failed to read file: {e}", file_path=relative_path) from e

    return parse_source(content, relative_path=relative_path, path=file, language=lang)


def parse_markup(content: bytes | str) -> Tree:
    """Parse an HTML component template with the ``html`` grammar.

    Raises:
        SourceParseError: If the grammar cannot be loaded or parsing fails.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    try:
        return _parser_for("html").parse(content)
    except Exception as e:
        raise SourceParseError(f"Failed to parse template: {e}") from e
