"""
Global test configuration and fixtures for knowledge graph tests.

Provides settings, in-memory extraction over TypeScript snippets and an
on-disk project writer.
"""

from pathlib import Path
from typing import Callable

import pytest

from ngkg.core.config import ParserSettings
from ngkg.graph.knowledge_graph import ParseContext, VisitorContext
from ngkg.graph.visitor_registry import VisitorRegistry
from ngkg.parser.extractor import get_builtin_extractors
from ngkg.parser.references import build_import_map
from ngkg.parser.tree_sitter_parser import SourceFile, parse_source
from ngkg.resolver.import_resolver import ImportResolver


@pytest.fixture
def test_settings() -> ParserSettings:
    """Settings isolated from the environment and any .env file."""
    return ParserSettings(_env_file=None, max_workers=2, project_name="Test App")


@pytest.fixture
def parse_ts() -> Callable[..., SourceFile]:
    """Parse a TypeScript snippet under a project-relative path."""

    def _parse(code: str, relative_path: str = "src/app/feature/example.ts") -> SourceFile:
        return parse_source(code, relative_path=relative_path)

    return _parse


@pytest.fixture
def extract(test_settings) -> Callable[..., ParseContext]:
    """Run the built-in extractors (plus any extra visitors) over snippets.

    Accepts one snippet or a dict of relative path -> snippet. Returns the
    parse context holding the accumulated, unclassified graph.
    """

    def _extract(
        code: str | dict[str, str],
        relative_path: str = "src/app/feature/example.ts",
        visitors: list | None = None,
    ) -> ParseContext:
        files = code if isinstance(code, dict) else {relative_path: code}
        registry = VisitorRegistry()
        for visitor in get_builtin_extractors() + list(visitors or []):
            registry.register(visitor)

        context = ParseContext(Path("/project"), test_settings, ImportResolver())
        for path, text in files.items():
            source = parse_source(text, relative_path=path)
            visitor_context = VisitorContext(context, source, build_import_map(source))
            registry.run_before_parse(visitor_context)
            registry.traverse(source.root, visitor_context)
            registry.run_after_parse(visitor_context)
        return context

    return _extract


@pytest.fixture
def write_project(tmp_path) -> Callable[[dict[str, str]], Path]:
    """Write ``{relative path: content}`` under a temporary project root."""

    def _write(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
