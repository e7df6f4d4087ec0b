"""
Call-scoped graph state for one project parse.

``ParseContext`` owns the accumulating entity map and relationship list for
exactly one parse, plus the warnings, errors and metrics that
visitors report. ``VisitorContext`` is the per-file view handed to visitors.
Both are discarded when the parse returns; the finished graph is a frozen
``KnowledgeGraph``.
"""

import dataclasses
import logging
import threading
from pathlib import Path
from typing import Any

from tree_sitter import Node

from ngkg.core.config import ParserSettings
from ngkg.graph.graph_types import Entity, Relationship
from ngkg.parser.references.base import ImportMap
from ngkg.parser.tree_sitter_parser import SourceFile
from ngkg.resolver.import_resolver import ImportResolver

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class VisitorIssue:
    """ A warning or error reported during a parse

    Attributes:
        code: machine-readable code, e.g. "DUPLICATE_ENTITY_ID"
        message: human-readable description
        visitor: name of the visitor involved, if any
        file_path: relative path of the file involved, if any
        line: 1-indexed line, if known
        column: 1-indexed column, if known
        severity: "warning" or "error"
    """

    code: str
    message: str
    visitor: str | None = None
    file_path: str | None = None
    line: int | None = None
    column: int | None = None
    severity: str = "warning"


class GraphAccumulator:
    """Additive-only entity map and relationship list.

    Inserts are guarded by a lock so several producers can share one
    accumulator; the builder uses a single writer thread.
    """

    def __init__(self):
        self._entities: dict[str, Entity] = {}
        self._relationships: list[Relationship] = []
        self._relationship_ids: set[str] = set()
        self._entities_by_start: dict[tuple[str, int], Entity] = {}
        self._lock = threading.Lock()

    def add_entity(self, entity: Entity) -> bool:
        """Insert ``entity``; returns False when its id is already taken."""
        with self._lock:
            if entity.id in self._entities:
                return False
            self._entities[entity.id] = entity
            self._entities_by_start[(entity.location.file_path, entity.location.start)] = entity
            return True

    def add_relationship(self, relationship: Relationship) -> bool:
        """Append ``relationship``; returns False for a repeated id."""
        with self._lock:
            if relationship.id in self._relationship_ids:
                return False
            self._relationship_ids.add(relationship.id)
            self._relationships.append(relationship)
            return True

    def get_entity(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def entity_at(self, file_path: str, start_byte: int) -> Entity | None:
        return self._entities_by_start.get((file_path, start_byte))

    @property
    def entities(self) -> dict[str, Entity]:
        with self._lock:
            return dict(self._entities)

    @property
    def relationships(self) -> list[Relationship]:
        with self._lock:
            return list(self._relationships)


class ParseContext:
    """State shared by every visitor for the duration of one project parse."""

    def __init__(
        self,
        root_dir: Path,
        settings: ParserSettings,
        resolver: ImportResolver,
    ):
        self.root_dir = root_dir
        self.settings = settings
        self.resolver = resolver
        self.graph = GraphAccumulator()
        self.warnings: list[VisitorIssue] = []
        self.errors: list[VisitorIssue] = []
        self.metrics: dict[str, Any] = {}
        self._lock = threading.Lock()

    def add_warning(self, issue: VisitorIssue) -> None:
        with self._lock:
            self.warnings.append(issue)
        logger.warning(f"[{issue.code}] {issue.message}")

    def add_error(self, issue: VisitorIssue) -> None:
        with self._lock:
            self.errors.append(issue)
        logger.warning(f"[{issue.code}] {issue.message}")

    def add_metric(self, name: str, value: Any) -> None:
        with self._lock:
            self.metrics[name] = value


class VisitorContext:
    """Per-file view of the parse handed to ``visit_node`` and the file hooks."""

    def __init__(self, parse: ParseContext, source: SourceFile, import_map: ImportMap | None = None):
        self.parse = parse
        self.source = source
        self.import_map = import_map or ImportMap()

    @property
    def file_path(self) -> Path:
        return self.source.path

    @property
    def relative_path(self) -> str:
        return self.source.relative_path

    @property
    def settings(self) -> ParserSettings:
        return self.parse.settings

    def add_entity(self, entity: Entity, visitor: str | None = None) -> bool:
        """Insert an entity; a duplicate id is reported and skipped."""
        if self.parse.graph.add_entity(entity):
            return True
        self.add_warning(
            "DUPLICATE_ENTITY_ID",
            f"Duplicate entity id {entity.id} skipped",
            visitor=visitor,
            line=entity.location.line,
            column=entity.location.column,
        )
        return False

    def add_relationship(self, relationship: Relationship) -> bool:
        return self.parse.graph.add_relationship(relationship)

    def entity_for_node(self, node: Node) -> Entity | None:
        """Entity declared by ``node`` in this file, if one was inserted."""
        return self.parse.graph.entity_at(self.relative_path, node.start_byte)

    def add_warning(
        self,
        code: str,
        message: str,
        visitor: str | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.parse.add_warning(
            VisitorIssue(
                code=code,
                message=message,
                visitor=visitor,
                file_path=self.relative_path,
                line=line,
                column=column,
                severity="warning",
            )
        )

    def add_error(
        self,
        code: str,
        message: str,
        visitor: str | None = None,
        node: Node | None = None,
    ) -> None:
        self.parse.add_error(
            VisitorIssue(
                code=code,
                message=message,
                visitor=visitor,
                file_path=self.relative_path,
                line=node.start_point[0] + 1 if node is not None else None,
                column=node.start_point[1] + 1 if node is not None else None,
                severity="error",
            )
        )
