"""
Security-relevant pattern extraction.

Runs after the built-in extractors. In the class body of every entity it
records:

  - ``innerHTML`` / ``outerHTML``   assignments to those properties
  - ``bypassSecurityTrust``         calls to ``DomSanitizer.bypassSecurityTrust*``
  - ``eval`` / ``Function``         ``eval(...)``, ``Function(...)`` and ``new Function(...)``
  - ``http_url``                    plain ``http://`` URLs outside localhost
  - ``potential_secret``            strings that look like API keys, tokens or passwords
  - ``xsrf_disabled``               ``withNoXsrfProtection()`` and ``disableXSRF`` calls

and, for components, ``[innerHTML]`` / ``[outerHTML]`` template bindings.
"""

import re

from tree_sitter import Node

from ngkg.graph.graph_types import ComponentEntity, Entity
from ngkg.graph.knowledge_graph import ParseContext, VisitorContext
from ngkg.parser.ast_helpers import CLASS_NODE_TYPES, identifier_name, string_value, walk
from ngkg.visitors.pattern_visitor import PatternVisitor

HTML_PROPERTIES = frozenset({"innerHTML", "outerHTML"})
DYNAMIC_CODE = frozenset({"eval", "Function"})
XSRF_OPT_OUTS = ("withNoXsrfProtection", "disableXSRF")
LOCAL_HOSTS = ("localhost", "127.0.0.1")

API_KEY = re.compile(r"api[_-]?key|apikey", re.IGNORECASE)
TOKEN = re.compile(r"token|secret|private[_-]?key", re.IGNORECASE)


class SecurityVisitor(PatternVisitor):
    """Records security-relevant code patterns per entity."""

    name = "security"
    priority = 40
    description = "Extracts security-relevant code patterns"

    def visit_node(self, node: Node, context: VisitorContext) -> None:
        if node.type not in CLASS_NODE_TYPES:
            return
        entity = context.entity_for_node(node)
        body = node.child_by_field_name("body")
        if entity is None or body is None:
            return
        for child in walk(body):
            match child.type:
                case "assignment_expression":
                    self._html_assignment(child, entity, context)
                case "call_expression":
                    self._call(child, entity, context)
                case "new_expression":
                    constructor = child.child_by_field_name("constructor")
                    if constructor is not None and context.source.text(constructor) == "Function":
                        self.add_pattern("Function", entity, context.relative_path, child)
                case "string":
                    self._string(child, entity, context)

    def visit_entity(self, entity: Entity, context: ParseContext) -> None:
        if not isinstance(entity, ComponentEntity) or entity.template_analysis is None:
            return
        found = False
        for binding in entity.template_analysis.bindings:
            if binding.kind == "property" and binding.name in HTML_PROPERTIES:
                self.add_pattern(binding.name, entity, entity.location.file_path, context="template binding")
                found = True
        if found:
            self.publish_metrics(context)

    def _html_assignment(self, node: Node, entity: Entity, context: VisitorContext) -> None:
        left = node.child_by_field_name("left")
        if left is None or left.type != "member_expression":
            return
        name = identifier_name(left.child_by_field_name("property"), context.source)
        if name in HTML_PROPERTIES:
            self.add_pattern(name, entity, context.relative_path, left, "direct assignment")

    def _call(self, node: Node, entity: Entity, context: VisitorContext) -> None:
        function = node.child_by_field_name("function")
        if function is None:
            return
        text = context.source.text(function)
        if "bypassSecurityTrust" in text:
            self.add_pattern("bypassSecurityTrust", entity, context.relative_path, node, text)
        elif function.type == "identifier" and text in DYNAMIC_CODE:
            self.add_pattern(text, entity, context.relative_path, node)
        elif any(opt_out in text for opt_out in XSRF_OPT_OUTS):
            self.add_pattern("xsrf_disabled", entity, context.relative_path, node, text)

    def _string(self, node: Node, entity: Entity, context: VisitorContext) -> None:
        value = string_value(node, context.source)
        if not value:
            return
        path = context.relative_path
        if value.lower().startswith("http://") and not any(host in value for host in LOCAL_HOSTS):
            self.add_pattern("http_url", entity, path, node, value)
        if API_KEY.search(value) and len(value) > 20:
            self.add_pattern("potential_secret", entity, path, node, "api_key_pattern")
        if len(value) > 6 and _assigned_to_password(node, context):
            self.add_pattern("potential_secret", entity, path, node, "password_pattern")
        if TOKEN.search(value) and len(value) > 30:
            self.add_pattern("potential_secret", entity, path, node, "token_pattern")


def _assigned_to_password(node: Node, context: VisitorContext) -> bool:
    """Whether the string is the value of a property, field or variable named like a password."""
    parent = node.parent
    if parent is None:
        return False
    match parent.type:
        case "pair":
            name_node = parent.child_by_field_name("key")
        case "variable_declarator" | "public_field_definition":
            name_node = parent.child_by_field_name("name")
        case "assignment_expression":
            name_node = parent.child_by_field_name("left")
        case _:
            return False
    if name_node is None or name_node == node:
        return False
    return "password" in context.source.text(name_node).lower()
