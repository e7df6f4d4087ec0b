"""
Base entity extractor.

Every built-in extractor is a visitor with priority 100. At each class
declaration it looks for a decorator with a recognised textual name
(``Component``, ``Injectable``, ...). On a match it builds a typed entity,
inserts it into the parse's accumulator, and appends the relationships the
declaration implies.

Recognition is by decorator name only: ``@Component`` imported from anywhere
counts. Declarations that do not fit (no class name, decorator not called)
are skipped without an error.

Extractors only record raw target names and the import specifier for each
name. Targets are classified after traversal by the entity resolver.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable

from tree_sitter import Node

from ngkg.graph.graph_types import (
    Dependency,
    Entity,
    EntityType,
    PropertyBinding,
    Relationship,
    RelationshipMetadata,
    RelationType,
)
from ngkg.graph.helpers.utils import generate_entity_id, generate_relationship_id
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.graph.visitor import BaseVisitor
from ngkg.parser.ast_helpers import (
    CLASS_NODE_TYPES,
    SIGNAL_FUNCTIONS,
    array_elements,
    call_arguments,
    call_function_name,
    class_decorators,
    class_members,
    decorator_arguments,
    decorator_metadata,
    decorator_name,
    doc_comment,
    find_decorator,
    identifier_name,
    location_of,
    member_name,
    modifiers_of,
    object_properties,
    reference_name,
    reference_names,
    string_value,
)
from ngkg.parser.providers import ProviderInfo, parse_providers
from ngkg.parser.tree_sitter_parser import SourceFile

EXTRACTOR_PRIORITY = 100


@dataclass
class ClassMatch:
    """A class declaration carrying a recognised decorator.

    Attributes:
        node: The class declaration node
        name: The class name
        decorator: The recognised decorator node
        options: Property name -> value node of the decorator's object argument
        decorators: Every decorator on the class
    """

    node: Node
    name: str
    decorator: Node
    options: dict[str, Node] = field(default_factory=dict)
    decorators: list[Node] = field(default_factory=list)


class EntityExtractor(BaseVisitor):
    """Base class for entity extractors.

    Holds the entity and relationship counters reported by ``get_results``
    and the helpers that build relationships with their import specifiers.
    """

    priority: int = EXTRACTOR_PRIORITY
    entity_type: EntityType

    def __init__(self):
        super().__init__()
        self.entity_count = 0
        self.relationship_count = 0

    def record(self, entity: Entity, relationships: Iterable[Relationship], context: VisitorContext) -> bool:
        """Insert ``entity`` and, when it was new, its relationships."""
        if not context.add_entity(entity, visitor=self.name):
            return False
        self.entity_count += 1
        for relationship in relationships:
            if context.add_relationship(relationship):
                self.relationship_count += 1
        return True

    def get_results(self) -> dict[str, int]:
        return {"entities": self.entity_count, "relationships": self.relationship_count}

    def reset(self) -> None:
        self.entity_count = 0
        self.relationship_count = 0

    def relationship(
        self,
        context: VisitorContext,
        source_id: str,
        relation_type: RelationType,
        target: str,
        metadata: dict[str, Any] | None = None,
    ) -> Relationship:
        return Relationship(
            id=generate_relationship_id(
                source_id=source_id,
                relation_type=relation_type,
                target=target,
                qualifier=(metadata or {}).get("property_name"),
            ),
            type=relation_type,
            source=source_id,
            target=target,
            metadata=RelationshipMetadata(
                original_name=target,
                import_path=context.import_map.specifier_for(target),
                **(metadata or {}),
            ),
        )

    def reference_relationships(
        self,
        context: VisitorContext,
        source_id: str,
        relation_type: RelationType,
        names: Iterable[str],
        property_name: str,
    ) -> list[Relationship]:
        return [
            self.relationship(context, source_id, relation_type, name, {"property_name": property_name})
            for name in names
        ]

    def injects_relationships(
        self,
        context: VisitorContext,
        source_id: str,
        dependencies: Iterable[Dependency],
    ) -> list[Relationship]:
        return [
            self.relationship(
                context,
                source_id,
                RelationType.injects,
                dependency.type,
                {
                    "optional": dependency.optional,
                    "self": dependency.self,
                    "skip_self": dependency.skip_self,
                    "host": dependency.host,
                    "injection_method": dependency.injection_method,
                    "property_name": dependency.name,
                },
            )
            for dependency in dependencies
        ]

    def provider_relationships(
        self,
        context: VisitorContext,
        source_id: str,
        providers: Iterable[ProviderInfo],
        property_name: str,
    ) -> list[Relationship]:
        """``provides`` edges to token and implementation, ``uses`` edges to values."""
        relationships: list[Relationship] = []
        for info in providers:
            common = {
                "multi": info.multi,
                "provider_type": info.provider_type,
                "property_name": property_name,
            }
            if info.provider_type != "spread":
                relationships.append(
                    self.relationship(context, source_id, RelationType.provides, info.token, common)
                )
            if info.implementation and info.implementation != info.token:
                relationships.append(
                    self.relationship(context, source_id, RelationType.provides, info.implementation, common)
                )
            if info.value:
                relationships.append(
                    self.relationship(
                        context, source_id, RelationType.uses, info.value, {**common, "usage": "provider-value"}
                    )
                )
        return relationships


class DecoratedClassExtractor(EntityExtractor):
    """Base class for decorator-driven class extractors.

    Subclasses set ``name``, ``entity_type`` and ``decorator_names`` and
    implement ``build_entity`` and, optionally, ``build_relationships``.
    """

    decorator_names: frozenset[str] = frozenset()

    def visit_node(self, node: Node, context: VisitorContext) -> None:
        match = self.match_class(node, context.source)
        if match is None:
            return
        entity = self.build_entity(match, context)
        if entity is None:
            return
        self.record(entity, self.build_relationships(match, entity, context), context)

    def match_class(self, node: Node, source: SourceFile) -> ClassMatch | None:
        if node.type not in CLASS_NODE_TYPES:
            return None
        decorators = class_decorators(node)
        decorator = find_decorator(decorators, self.decorator_names, source)
        if decorator is None:
            return None
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        arguments = decorator_arguments(decorator)
        if arguments is None:
            return None
        options = object_properties(arguments[0], source) if arguments else {}
        return ClassMatch(
            node=node,
            name=source.text(name_node),
            decorator=decorator,
            options=options,
            decorators=decorators,
        )

    @abstractmethod
    def build_entity(self, match: ClassMatch, context: VisitorContext) -> Entity | None:
        pass

    def build_relationships(
        self,
        match: ClassMatch,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        return []

    def common_fields(self, match: ClassMatch, context: VisitorContext) -> dict[str, Any]:
        source = context.source
        decorators = [decorator_metadata(d, source) for d in match.decorators]
        return {
            "id": generate_entity_id(
                entity_type=self.entity_type,
                relative_path=source.relative_path,
                name=match.name,
            ),
            "name": match.name,
            "location": location_of(match.node, source),
            "documentation": doc_comment(match.node, source),
            "decorators": tuple(d for d in decorators if d is not None),
            "modifiers": tuple(modifiers_of(match.node)),
        }

    def option_string(self, match: ClassMatch, key: str, source: SourceFile) -> str | None:
        return string_value(match.options.get(key), source)

    def option_bool(self, match: ClassMatch, key: str, default: bool = False) -> bool:
        node = match.options.get(key)
        if node is None:
            return default
        if node.type in ("true", "false"):
            return node.type == "true"
        return default

    def option_strings(self, match: ClassMatch, key: str, source: SourceFile) -> list[str]:
        node = match.options.get(key)
        if node is None:
            return []
        if node.type == "array":
            return [value for value in (string_value(e, source) for e in array_elements(node)) if value is not None]
        value = string_value(node, source)
        return [value] if value is not None else []

    def providers_of(self, match: ClassMatch, key: str, source: SourceFile) -> list[ProviderInfo]:
        return parse_providers(match.options.get(key), source)

    def references_of(self, match: ClassMatch, key: str, source: SourceFile) -> list[str]:
        node = match.options.get(key)
        if node is None:
            return []
        if node.type == "array":
            return reference_names(node, source)
        name = reference_name(node, source)
        return [name] if name else []


INPUT_DECORATORS = frozenset({"Input"})
OUTPUT_DECORATORS = frozenset({"Output"})


def _binding_from_string(entry: str, kind: str) -> PropertyBinding:
    name, _, alias = entry.partition(":")
    return PropertyBinding(name=name.strip(), alias=alias.strip() or None, kind=kind)


def collect_bindings(
    match: ClassMatch,
    source: SourceFile,
) -> tuple[list[PropertyBinding], list[PropertyBinding], list[str]]:
    """Inputs, outputs and signal member names of a component or directive.

    Reads ``inputs``/``outputs`` arrays of the decorator, ``@Input``/``@Output``
    members, and the signal functions ``input()``, ``output()`` and ``model()``.
    """
    inputs: list[PropertyBinding] = []
    outputs: list[PropertyBinding] = []
    signals: list[str] = []

    for key, target in (("inputs", inputs), ("outputs", outputs)):
        node = match.options.get(key)
        for element in array_elements(node):
            value = string_value(element, source)
            if value:
                target.append(_binding_from_string(value, "metadata"))

    for member, decorators in class_members(match.node):
        name = member_name(member, source)
        if not name:
            continue
        declared_type = source.declared_type(member) if member.type == "public_field_definition" else None
        for decorator in decorators:
            decorator_label = decorator_name(decorator, source)
            if decorator_label not in INPUT_DECORATORS | OUTPUT_DECORATORS:
                continue
            arguments = decorator_arguments(decorator) or []
            alias = string_value(arguments[0], source) if arguments else None
            required = False
            if arguments and arguments[0].type == "object":
                options = object_properties(arguments[0], source)
                alias = string_value(options.get("alias"), source)
                required = options.get("required") is not None and options["required"].type == "true"
            binding = PropertyBinding(name=name, alias=alias, kind="decorator", required=required, type=declared_type)
            (inputs if decorator_label in INPUT_DECORATORS else outputs).append(binding)

        if member.type != "public_field_definition":
            continue
        value = member.child_by_field_name("value")
        if value is None or value.type != "call_expression":
            continue
        function, qualifier = call_function_name(value, source)
        if function not in SIGNAL_FUNCTIONS:
            continue
        signals.append(name)
        required = qualifier == "required"
        alias = _signal_alias(value, source)
        match function:
            case "input":
                inputs.append(PropertyBinding(name=name, alias=alias, kind="input", required=required))
            case "output":
                outputs.append(PropertyBinding(name=name, alias=alias, kind="output"))
            case "model":
                inputs.append(PropertyBinding(name=name, alias=alias, kind="model", required=required))
                outputs.append(PropertyBinding(name=f"{name}Change", kind="model"))

    return inputs, outputs, signals


def _signal_alias(call: Node, source: SourceFile) -> str | None:
    for argument in call_arguments(call):
        if argument.type == "object":
            alias = string_value(object_properties(argument, source).get("alias"), source)
            if alias:
                return alias
    return None


def change_detection_of(match: ClassMatch, source: SourceFile) -> str | None:
    node = match.options.get("changeDetection")
    if node is None:
        return None
    return identifier_name(node, source) or source.text(node)
