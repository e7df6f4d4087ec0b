"""
Priority-ordered visitor registry and traversal driver.

Visitors are kept sorted by descending priority. The sort is stable, so
visitors with equal priority run in registration order. Traversal is a
pre-order depth-first walk; at every node every visitor is called in
order, then the children are visited in source order. A visitor that
raises is recorded as an error for that node and the walk carries on.
Faults in the file hooks, ``reset`` and ``get_results`` are recorded the
same way; a failed ``get_results`` leaves that visitor's result as None.
"""

import logging
from typing import Any, Callable

from tree_sitter import Node

from ngkg.graph.graph_types import KnowledgeGraph
from ngkg.graph.knowledge_graph import ParseContext, VisitorContext, VisitorIssue
from ngkg.graph.visitor import Visitor

logger = logging.getLogger(__name__)

VISITOR_FAILED = "VISITOR_FAILED"
VISITOR_ENTITY_ERROR = "VISITOR_ENTITY_ERROR"


class VisitorRegistry:
    """Ordered collection of visitors for one builder."""

    def __init__(self):
        self._visitors: list[Visitor] = []

    def register(self, visitor: Visitor) -> None:
        """Add ``visitor`` and re-sort by descending priority.

        Names are not required to be unique; results of same-named visitors
        share one key and the one run last wins.

        Raises:
            TypeError: If ``visitor`` does not implement the visitor interface.
        """
        if not isinstance(visitor, Visitor):
            raise TypeError(f"{type(visitor).__name__} does not implement the Visitor interface")
        self._visitors.append(visitor)
        self._visitors.sort(key=lambda v: -v.priority)
        logger.debug(f"Registered visitor {visitor.name} (priority {visitor.priority})")

    def unregister(self, name: str) -> bool:
        """Remove every visitor named ``name``; returns whether any was removed."""
        before = len(self._visitors)
        self._visitors = [visitor for visitor in self._visitors if visitor.name != name]
        return len(self._visitors) != before

    def visitors(self) -> list[Visitor]:
        return list(self._visitors)

    def get(self, name: str) -> Visitor | None:
        return next((visitor for visitor in self._visitors if visitor.name == name), None)

    def clear(self) -> None:
        self._visitors = []

    def __len__(self) -> int:
        return len(self._visitors)

    def traverse(self, root: Node, context: VisitorContext) -> int:
        """Walk the tree under ``root``, calling every visitor at every node.

        Returns:
            Number of nodes visited.
        """
        visitors = tuple(self._visitors)
        visited = 0
        stack = [root]
        while stack:
            node = stack.pop()
            visited += 1
            for visitor in visitors:
                self._call(visitor, "visit_node", visitor.visit_node, context, node, node, context)
            stack.extend(reversed(node.children))
        return visited

    def run_before_parse(self, context: VisitorContext) -> None:
        for visitor in tuple(self._visitors):
            self._call(visitor, "on_before_parse", visitor.on_before_parse, context, None, context)

    def run_after_parse(self, context: VisitorContext) -> None:
        for visitor in tuple(self._visitors):
            self._call(visitor, "on_after_parse", visitor.on_after_parse, context, None, context)

    def run_graph_hooks(self, graph: KnowledgeGraph, context: ParseContext) -> None:
        """Offer every entity and relationship to visitors with post-pass hooks."""
        for visitor in tuple(self._visitors):
            visit_entity = getattr(visitor, "visit_entity", None)
            visit_relationship = getattr(visitor, "visit_relationship", None)
            if callable(visit_entity):
                for entity in graph.entities.values():
                    try:
                        visit_entity(entity, context)
                    except Exception as e:
                        self._record_graph_fault(visitor, context, f"Visitor failed on entity {entity.id}: {e}", entity.location.file_path)
            if callable(visit_relationship):
                for relationship in graph.relationships:
                    try:
                        visit_relationship(relationship, context)
                    except Exception as e:
                        self._record_graph_fault(visitor, context, f"Visitor failed on relationship {relationship.id}: {e}", None)

    def get_all_results(self, context: ParseContext) -> dict[str, Any]:
        """Results keyed by visitor name; a visitor that raises maps to None."""
        results: dict[str, Any] = {}
        for visitor in self._visitors:
            try:
                results[visitor.name] = visitor.get_results()
            except Exception as e:
                results[visitor.name] = None
                self._record_lifecycle_fault(visitor, "get_results", context, e)
        return results

    def reset_all(self, context: ParseContext) -> None:
        for visitor in self._visitors:
            try:
                visitor.reset()
            except Exception as e:
                self._record_lifecycle_fault(visitor, "reset", context, e)

    def _call(
        self,
        visitor: Visitor,
        hook: str,
        method: Callable[..., Any],
        context: VisitorContext,
        node: Node | None,
        *args: Any,
    ) -> None:
        try:
            method(*args)
        except Exception as e:
            context.add_error(
                VISITOR_FAILED,
                f"Visitor {visitor.name} failed in {hook}: {e}",
                visitor=visitor.name,
                node=node,
            )

    def _record_lifecycle_fault(
        self,
        visitor: Visitor,
        hook: str,
        context: ParseContext,
        error: Exception,
    ) -> None:
        context.add_error(
            VisitorIssue(
                code=VISITOR_FAILED,
                message=f"Visitor {visitor.name} failed in {hook}: {error}",
                visitor=visitor.name,
                severity="error",
            )
        )

    def _record_graph_fault(
        self,
        visitor: Visitor,
        context: ParseContext,
        message: str,
        file_path: str | None,
    ) -> None:
        context.add_error(
            VisitorIssue(
                code=VISITOR_ENTITY_ERROR,
                message=message,
                visitor=visitor.name,
                file_path=file_path,
                severity="error",
            )
        )
