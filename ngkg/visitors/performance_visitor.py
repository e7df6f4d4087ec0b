"""
Performance-relevant pattern extraction.

For components (after the graph is built):

  - ``change_detection_onpush`` / ``change_detection_default``
  - ``ngfor_with_trackby`` / ``ngfor_without_trackby``   per ``*ngFor`` in the template
  - ``function_in_template``   a call inside an interpolation or a property binding

In the class body of every entity:

  - ``http_in_constructor``    an HTTP call inside the constructor
  - ``loop_in_constructor``    a loop statement inside the constructor
  - ``array_chain``            ``.filter(...).map(...)`` or ``.map(...).filter(...)``
  - ``indexof_in_loop``        ``indexOf`` called inside a loop
  - ``storage_in_loop``        ``localStorage`` / ``sessionStorage`` called inside a loop

And per file, ``large_library_import`` for whole-package imports of
``lodash``, ``moment`` or ``rxjs``.
"""

import re

from tree_sitter import Node

from ngkg.graph.graph_types import ComponentEntity, Entity
from ngkg.graph.knowledge_graph import ParseContext, VisitorContext
from ngkg.parser.ast_helpers import CLASS_NODE_TYPES, find_constructor, identifier_name, string_value, walk
from ngkg.visitors.pattern_visitor import LOOP_NODE_TYPES, PatternVisitor, inside_loop

LARGE_LIBRARIES = frozenset({"lodash", "moment", "rxjs"})
CHAINED_ARRAY_METHODS = {"map": "filter", "filter": "map"}
STORAGE_OBJECTS = ("localStorage", "sessionStorage")
HTTP_MARKERS = ("http.", "HttpClient")

CALL = re.compile(r"[\w$]\s*\(")


class PerformanceVisitor(PatternVisitor):
    """Records performance-relevant code patterns per entity."""

    name = "performance"
    priority = 30
    description = "Extracts performance-relevant code patterns"

    def visit_node(self, node: Node, context: VisitorContext) -> None:
        if node.type == "import_statement":
            self._import(node, context)
            return
        if node.type not in CLASS_NODE_TYPES:
            return
        entity = context.entity_for_node(node)
        body = node.child_by_field_name("body")
        if entity is None or body is None:
            return
        self._constructor(node, entity, context)
        for child in walk(body):
            if child.type == "call_expression":
                self._call(child, body, entity, context)

    def visit_entity(self, entity: Entity, context: ParseContext) -> None:
        if not isinstance(entity, ComponentEntity):
            return
        path = entity.location.file_path
        if entity.change_detection is not None and entity.change_detection.endswith("OnPush"):
            self.add_pattern("change_detection_onpush", entity, path)
        else:
            self.add_pattern("change_detection_default", entity, path)

        analysis = entity.template_analysis
        if analysis is not None:
            for binding in analysis.bindings:
                if binding.kind == "structural" and binding.name == "ngFor":
                    tracked = "trackBy" in (binding.expression or "")
                    self.add_pattern(
                        "ngfor_with_trackby" if tracked else "ngfor_without_trackby",
                        entity,
                        path,
                        context=binding.expression,
                    )
            bound = [b.expression for b in analysis.bindings if b.kind == "property" and b.expression]
            if any(CALL.search(expression) for expression in [*analysis.interpolations, *bound]):
                self.add_pattern("function_in_template", entity, path)
        self.publish_metrics(context)

    def _import(self, node: Node, context: VisitorContext) -> None:
        specifier = string_value(node.child_by_field_name("source"), context.source)
        if specifier in LARGE_LIBRARIES:
            self.add_pattern("large_library_import", None, context.relative_path, node, specifier)

    def _constructor(self, class_node: Node, entity: Entity, context: VisitorContext) -> None:
        source = context.source
        constructor = find_constructor(class_node, source)
        body = constructor.child_by_field_name("body") if constructor is not None else None
        if body is None:
            return
        nodes = list(walk(body))
        has_http = any(
            n.type == "call_expression"
            and any(marker in source.text(n.child_by_field_name("function")) for marker in HTTP_MARKERS)
            for n in nodes
        )
        if has_http:
            self.add_pattern("http_in_constructor", entity, context.relative_path, constructor)
        if any(n.type in LOOP_NODE_TYPES for n in nodes):
            self.add_pattern("loop_in_constructor", entity, context.relative_path, constructor)

    def _call(self, node: Node, body: Node, entity: Entity, context: VisitorContext) -> None:
        source = context.source
        function = node.child_by_field_name("function")
        if function is None:
            return
        method = identifier_name(function, source) if function.type == "member_expression" else None
        if method in CHAINED_ARRAY_METHODS:
            inner = function.child_by_field_name("object")
            if inner is not None and inner.type == "call_expression":
                inner_function = inner.child_by_field_name("function")
                if (
                    inner_function is not None
                    and inner_function.type == "member_expression"
                    and identifier_name(inner_function, source) == CHAINED_ARRAY_METHODS[method]
                ):
                    self.add_pattern("array_chain", entity, context.relative_path, node)
        if method == "indexOf" and inside_loop(node, body):
            self.add_pattern("indexof_in_loop", entity, context.relative_path, node)
        text = source.text(function)
        if any(storage in text for storage in STORAGE_OBJECTS) and inside_loop(node, body):
            self.add_pattern("storage_in_loop", entity, context.relative_path, node)
