"""
Exported constant extractor.

Recognises three kinds of exported ``const`` declarations:

  - ``new InjectionToken<T>('description')``         -> constant_type "injection_token"
  - ``provideSomething(...)`` factory calls           -> constant_type "provider_function"
  - Angular naming and typing conventions             -> constant_type "const"
    (``*_PROVIDERS``, ``*_CONFIG``, ``*_ROUTES`` ..., or typed ``Routes``,
    ``Provider[]``, ``ApplicationConfig``, ``EnvironmentProviders``)

Provider arrays and ``ApplicationConfig.providers`` produce ``provides``
edges from the constant.
"""

import re
from typing import Iterable

from tree_sitter import Node

from ngkg.graph.graph_types import ConstantEntity, Entity, EntityType, Relationship
from ngkg.graph.helpers.utils import generate_entity_id
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.parser.ast_helpers import (
    call_arguments,
    call_function_name,
    doc_comment,
    identifier_name,
    location_of,
    object_properties,
    string_value,
)
from ngkg.parser.extractor.base_extractor import EntityExtractor
from ngkg.parser.providers import parse_providers
from ngkg.parser.tree_sitter_parser import SourceFile
from ngkg.parser.type_helpers import normalize_type_name

CONSTANT_NAME_PATTERN = re.compile(
    r"^[A-Z][A-Z0-9_]*_(PROVIDERS|CONFIG|TOKEN|ROUTES|DECLARATIONS|IMPORTS|EXPORTS|COMPONENTS)$"
)
PROVIDER_FUNCTION_PATTERN = re.compile(r"^provide[A-Z]\w*$")
CONSTANT_TYPES = frozenset({"Routes", "Route", "Provider", "ApplicationConfig", "EnvironmentProviders"})
PROVIDER_TYPES = frozenset({"Provider", "EnvironmentProviders"})


class ConstantExtractor(EntityExtractor):
    name = "constant-extractor"
    description = "Extracts exported InjectionTokens, provider factories and Angular constants"
    entity_type = EntityType.constant

    def visit_node(self, node: Node, context: VisitorContext) -> None:
        if node.type != "lexical_declaration":
            return
        parent = node.parent
        if parent is None or parent.type != "export_statement":
            return
        if not any(child.type == "const" for child in node.children):
            return

        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            entity = self._build_constant(declarator, node, context)
            if entity is not None:
                self.record(entity, self._constant_relationships(declarator, entity, context), context)

    def _build_constant(
        self,
        declarator: Node,
        declaration: Node,
        context: VisitorContext,
    ) -> ConstantEntity | None:
        source = context.source
        name_node = declarator.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            return None
        name = source.text(name_node)
        value = declarator.child_by_field_name("value")
        declared_type = normalize_type_name(source.declared_type(declarator))

        classified = _classify(value, name, declared_type, source)
        if classified is None:
            return None
        constant_type, token_type, description = classified

        return ConstantEntity(
            id=generate_entity_id(entity_type=self.entity_type, relative_path=source.relative_path, name=name),
            name=name,
            location=location_of(declarator, source),
            documentation=doc_comment(declaration, source),
            modifiers=("export", "const"),
            constant_type=constant_type,
            token_type=token_type or declared_type or None,
            value=description,
        )

    def _constant_relationships(
        self,
        declarator: Node,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        source = context.source
        value = declarator.child_by_field_name("value")
        if value is None:
            return []
        if value.type == "array" and (entity.name.endswith("_PROVIDERS") or entity.token_type in PROVIDER_TYPES):
            providers = parse_providers(value, source)
            return self.provider_relationships(context, entity.id, providers, "value")
        if value.type == "object" and entity.token_type == "ApplicationConfig":
            providers_node = object_properties(value, source).get("providers")
            providers = parse_providers(providers_node, source)
            return self.provider_relationships(context, entity.id, providers, "providers")
        return []


def _classify(
    value: Node | None,
    name: str,
    declared_type: str,
    source: SourceFile,
) -> tuple[str, str | None, str | None] | None:
    """Return ``(constant_type, token_type, value)`` or None for unrelated constants."""
    if value is not None and value.type == "new_expression":
        constructor = identifier_name(value.child_by_field_name("constructor"), source)
        if constructor == "InjectionToken":
            type_arguments = value.child_by_field_name("type_arguments")
            token_type = source.text(type_arguments)[1:-1].strip() if type_arguments is not None else None
            arguments = call_arguments(value)
            description = string_value(arguments[0], source) if arguments else None
            return "injection_token", token_type or None, description

    if value is not None and value.type == "call_expression":
        function, _ = call_function_name(value, source)
        if function and PROVIDER_FUNCTION_PATTERN.match(function):
            return "provider_function", None, function

    if CONSTANT_NAME_PATTERN.match(name) or declared_type in CONSTANT_TYPES:
        return "const", None, None
    return None
