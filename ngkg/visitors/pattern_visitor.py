"""
Shared base for visitors that record code patterns.

A pattern visitor only extracts facts; it does not rate them. Each finding is
a ``CodePattern`` tied to the entity whose class body (or template) contains
it. Findings in a file outside any entity carry no entity id.

Results:

    {
        "patterns": [{"pattern", "entity_id", "entity_name", "file_path", "line", "column", "context"}, ...],
        "total_patterns": int,
        "by_pattern": {pattern: count},
        "affected_entities": [entity_id, ...],
    }
"""

import dataclasses
from collections import Counter
from typing import Any

from tree_sitter import Node

from ngkg.graph.graph_types import Entity
from ngkg.graph.knowledge_graph import ParseContext, VisitorContext
from ngkg.graph.visitor import BaseVisitor

LOOP_NODE_TYPES = frozenset({"for_statement", "for_in_statement", "while_statement", "do_statement"})


@dataclasses.dataclass(frozen=True)
class CodePattern:
    pattern: str
    entity_id: str | None
    entity_name: str | None
    file_path: str
    line: int
    column: int
    context: str | None = None


def inside_loop(node: Node, stop: Node | None = None) -> bool:
    """Whether a loop statement encloses ``node`` below ``stop``."""
    current = node.parent
    while current is not None and current != stop:
        if current.type in LOOP_NODE_TYPES:
            return True
        current = current.parent
    return False


class PatternVisitor(BaseVisitor):
    """Collects ``CodePattern`` findings and publishes per-pattern metrics."""

    def __init__(self):
        super().__init__()
        self.patterns: list[CodePattern] = []

    def add_pattern(
        self,
        pattern: str,
        entity: Entity | None,
        file_path: str,
        node: Node | None = None,
        context: str | None = None,
    ) -> None:
        if node is not None:
            line, column = node.start_point[0] + 1, node.start_point[1] + 1
        elif entity is not None:
            line, column = entity.location.line, entity.location.column
        else:
            line, column = 1, 1
        self.patterns.append(
            CodePattern(
                pattern=pattern,
                entity_id=entity.id if entity is not None else None,
                entity_name=entity.name if entity is not None else None,
                file_path=file_path,
                line=line,
                column=column,
                context=context,
            )
        )

    def by_pattern(self) -> dict[str, int]:
        return dict(sorted(Counter(p.pattern for p in self.patterns).items()))

    def publish_metrics(self, context: VisitorContext | ParseContext) -> None:
        self.add_metric(context, "total_patterns", len(self.patterns))
        for pattern, count in self.by_pattern().items():
            self.add_metric(context, f"pattern_{pattern}", count)

    def on_after_parse(self, context: VisitorContext) -> None:
        self.publish_metrics(context)

    def get_results(self) -> dict[str, Any]:
        affected = {p.entity_id for p in self.patterns if p.entity_id is not None}
        return {
            "patterns": [dataclasses.asdict(p) for p in self.patterns],
            "total_patterns": len(self.patterns),
            "by_pattern": self.by_pattern(),
            "affected_entities": sorted(affected),
        }

    def reset(self) -> None:
        self.patterns = []
