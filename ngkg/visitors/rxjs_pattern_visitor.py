"""
RxJS usage analysis.

An example third-party visitor. It runs after the built-in extractors
(priority 50 < 100), so at a class declaration the entity for that class is
already in the graph. For every class that became an entity it records the
Observable and Subject fields it declares, the ``.subscribe()`` calls in its
body and whether it implements ``ngOnDestroy``.

Results (``result.custom_analysis["rxjs-pattern"]``):

    {
        "fields": [{"entity_id", "class_name", "file_path", "member", "kind", "line"}, ...],
        "classes": [{"entity_id", "subscriptions", "has_on_destroy", "uses_take_until"}, ...],
        "missing_on_destroy": [entity_id, ...],
    }
"""

import dataclasses
from typing import Any

from tree_sitter import Node

from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.graph.visitor import BaseVisitor
from ngkg.parser.ast_helpers import (
    CLASS_NODE_TYPES,
    class_members,
    identifier_name,
    member_name,
    method_names,
    walk,
)
from ngkg.parser.type_helpers import normalize_type_name

SUBJECT_TYPES = frozenset({"Subject", "BehaviorSubject", "ReplaySubject", "AsyncSubject"})
OBSERVABLE_TYPES = frozenset({"Observable"})
TEARDOWN_OPERATORS = frozenset({"takeUntil", "takeUntilDestroyed"})

MISSING_ON_DESTROY = "RXJS_MISSING_ON_DESTROY"


@dataclasses.dataclass(frozen=True)
class ObservableField:
    entity_id: str
    class_name: str
    file_path: str
    member: str
    kind: str
    line: int


@dataclasses.dataclass(frozen=True)
class ClassUsage:
    entity_id: str
    subscriptions: int
    has_on_destroy: bool
    uses_take_until: bool


def _field_kind(member: Node, context: VisitorContext) -> str | None:
    """``subject``, ``observable`` or None for a class field."""
    source = context.source
    declared = normalize_type_name(source.declared_type(member))
    if declared in SUBJECT_TYPES:
        return "subject"
    if declared in OBSERVABLE_TYPES:
        return "observable"

    value = member.child_by_field_name("value")
    if value is not None and value.type == "new_expression":
        constructor = value.child_by_field_name("constructor")
        if constructor is not None and source.text(constructor) in SUBJECT_TYPES:
            return "subject"

    # naming convention: trailing $ marks a stream
    name = member_name(member, source)
    if name and name.endswith("$"):
        return "observable"
    return None


class RxJSPatternVisitor(BaseVisitor):
    """Records Observable/Subject fields and teardown of subscribing classes."""

    name = "rxjs-pattern"
    priority = 50
    description = "Detects RxJS fields, subscriptions and missing ngOnDestroy"

    def __init__(self, warn_on_missing_destroy: bool = False):
        super().__init__()
        self.warn_on_missing_destroy = warn_on_missing_destroy
        self.fields: list[ObservableField] = []
        self.classes: list[ClassUsage] = []

    def visit_node(self, node: Node, context: VisitorContext) -> None:
        if node.type not in CLASS_NODE_TYPES:
            return
        entity = context.entity_for_node(node)
        if entity is None:
            return

        source = context.source
        found = 0
        for member, _ in class_members(node):
            if member.type != "public_field_definition":
                continue
            kind = _field_kind(member, context)
            if kind is None:
                continue
            found += 1
            self.fields.append(
                ObservableField(
                    entity_id=entity.id,
                    class_name=entity.name,
                    file_path=context.relative_path,
                    member=member_name(member, source) or "",
                    kind=kind,
                    line=member.start_point[0] + 1,
                )
            )

        subscriptions = 0
        uses_take_until = False
        body = node.child_by_field_name("body")
        if body is not None:
            for child in walk(body):
                if child.type != "call_expression":
                    continue
                function = identifier_name(child.child_by_field_name("function"), source)
                if function == "subscribe":
                    subscriptions += 1
                elif function in TEARDOWN_OPERATORS:
                    uses_take_until = True

        if not found and not subscriptions:
            return

        usage = ClassUsage(
            entity_id=entity.id,
            subscriptions=subscriptions,
            has_on_destroy="ngOnDestroy" in method_names(node, source),
            uses_take_until=uses_take_until,
        )
        self.classes.append(usage)
        if subscriptions and not (usage.has_on_destroy or usage.uses_take_until) and self.warn_on_missing_destroy:
            self.add_warning(
                context,
                MISSING_ON_DESTROY,
                f"{entity.name} subscribes without ngOnDestroy or takeUntil",
                node,
            )

    def on_after_parse(self, context: VisitorContext) -> None:
        subjects = sum(1 for f in self.fields if f.kind == "subject")
        self.add_metric(context, "observable_fields", len(self.fields) - subjects)
        self.add_metric(context, "subject_fields", subjects)
        self.add_metric(context, "subscriptions", sum(c.subscriptions for c in self.classes))

    def get_results(self) -> dict[str, Any]:
        return {
            "fields": [dataclasses.asdict(f) for f in self.fields],
            "classes": [dataclasses.asdict(c) for c in self.classes],
            "missing_on_destroy": [
                c.entity_id for c in self.classes if c.subscriptions and not (c.has_on_destroy or c.uses_take_until)
            ],
        }

    def reset(self) -> None:
        self.fields = []
        self.classes = []
