"""
Visitor capability.

Built-in extractors and third-party analysis visitors implement the same
interface. A visitor is called for every syntax node of every file, in
priority order, and may hook the start and end of each file and the
finished graph's entities and relationships.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from tree_sitter import Node

from ngkg.graph.graph_types import Entity, Relationship

if TYPE_CHECKING:
    from ngkg.graph.knowledge_graph import ParseContext, VisitorContext

DEFAULT_PRIORITY = 50
MIN_PRIORITY = 0
MAX_PRIORITY = 100


@runtime_checkable
class Visitor(Protocol):
    """The interface the registry drives."""

    name: str
    priority: int

    def visit_node(self, node: Node, context: "VisitorContext") -> None: ...

    def on_before_parse(self, context: "VisitorContext") -> None: ...

    def on_after_parse(self, context: "VisitorContext") -> None: ...

    def get_results(self) -> Any: ...

    def reset(self) -> None: ...


class BaseVisitor(ABC):
    """Convenience base class for visitors.

    Subclasses set ``name`` and ``priority`` and implement ``visit_node``.
    The remaining hooks default to no-ops. ``add_metric`` namespaces metric
    names with the visitor's name.
    """

    name: str = "base"
    priority: int = DEFAULT_PRIORITY
    version: str = "1.0.0"
    description: str = ""

    def __init__(self):
        if not MIN_PRIORITY <= self.priority <= MAX_PRIORITY:
            raise ValueError(
                f"Visitor priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {self.priority}"
            )

    @abstractmethod
    def visit_node(self, node: Node, context: "VisitorContext") -> None:
        pass

    def on_before_parse(self, context: "VisitorContext") -> None:
        pass

    def on_after_parse(self, context: "VisitorContext") -> None:
        pass

    def visit_entity(self, entity: Entity, context: "ParseContext") -> None:
        pass

    def visit_relationship(self, relationship: Relationship, context: "ParseContext") -> None:
        pass

    def get_results(self) -> Any:
        return None

    def reset(self) -> None:
        pass

    def add_metric(self, context: "VisitorContext | ParseContext", name: str, value: Any) -> None:
        parse = getattr(context, "parse", context)
        parse.add_metric(f"{self.name}.{name}", value)

    def add_warning(self, context: "VisitorContext", code: str, message: str, node: Node | None = None) -> None:
        context.add_warning(
            code,
            message,
            visitor=self.name,
            line=node.start_point[0] + 1 if node is not None else None,
            column=node.start_point[1] + 1 if node is not None else None,
        )
