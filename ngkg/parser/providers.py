"""
Dependency-injection provider parsing.

Pure functions turning provider expressions (the elements of a
``providers``/``viewProviders`` array) into ``ProviderInfo`` descriptors:

  - ``UserService``                                  -> token = implementation = "UserService"
  - ``{provide: Base, useClass: Impl}``              -> implementation = "Impl"
  - ``{provide: Base, useFactory: makeBase}``        -> implementation = "makeBase"
  - ``{provide: Base, useExisting: Other}``          -> implementation = "Other"
  - ``{provide: CONFIG, useValue: APP_CONFIG}``      -> value = "APP_CONFIG" (literals are ignored)
  - ``...SHARED_PROVIDERS``                          -> token = "...SHARED_PROVIDERS",
                                                        implementation = "SHARED_PROVIDERS"
"""

from dataclasses import dataclass

from tree_sitter import Node

from ngkg.parser.ast_helpers import (
    array_elements,
    call_arguments,
    identifier_name,
    named_children,
    object_properties,
    reference_name,
    string_value,
)
from ngkg.parser.tree_sitter_parser import SourceFile
from ngkg.parser.type_helpers import primary_type_name

PROVIDER_STRATEGIES = ("useClass", "useFactory", "useExisting")


@dataclass(frozen=True)
class ProviderInfo:
    """A parsed provider.

    Attributes:
        token: The injection token being provided
        implementation: The class, factory or alias behind the token
        value: A named reference passed via ``useValue``
        multi: Whether the provider is a multi-provider
        provider_type: "class", "useClass", "useFactory", "useExisting",
            "useValue" or "spread"
    """

    token: str
    implementation: str | None = None
    value: str | None = None
    multi: bool = False
    provider_type: str = "class"


def forward_ref_target(node: Node, source: SourceFile) -> Node | None:
    """Expression returned by the arrow function of a ``forwardRef(...)`` call."""
    function = node.child_by_field_name("function")
    if function is None or source.text(function) != "forwardRef":
        return None
    arguments = call_arguments(node)
    if not arguments or arguments[0].type != "arrow_function":
        return None
    body = arguments[0].child_by_field_name("body")
    if body is None:
        return None
    if body.type != "statement_block":
        return body
    for statement in named_children(body):
        if statement.type == "return_statement":
            returned = named_children(statement)
            return returned[0] if returned else None
    return None


def extract_token(node: Node, source: SourceFile) -> str:
    """Token name of a ``provide:`` expression.

    ``Foo`` -> "Foo"; ``Tokens.API`` -> "API"; ``new InjectionToken('api')`` ->
    "api" (or "InjectionToken" without a string argument). ``forwardRef(() => Foo)``
    -> "Foo". Anything else falls back to the primary type name of its text.
    """
    match node.type:
        case "call_expression":
            target = forward_ref_target(node, source)
            if target is not None:
                return extract_token(target, source)
        case "identifier" | "member_expression":
            name = identifier_name(node, source)
            if name:
                return name
        case "new_expression":
            arguments = call_arguments(node)
            if arguments:
                literal = string_value(arguments[0], source)
                if literal is not None:
                    return literal
            constructor = identifier_name(node.child_by_field_name("constructor"), source)
            if constructor:
                return constructor
        case "string" | "template_string":
            literal = string_value(node, source)
            if literal is not None:
                return literal
    return primary_type_name(source.text(node)) or source.text(node)


def parse_provider(node: Node, source: SourceFile) -> ProviderInfo | None:
    """Parse one provider expression, or return None when it is not recognised."""
    match node.type:
        case "identifier" | "member_expression":
            name = identifier_name(node, source)
            if not name:
                return None
            return ProviderInfo(token=name, implementation=name)
        case "spread_element":
            name = reference_name(node, source)
            if not name:
                return None
            return ProviderInfo(
                token=name,
                implementation=name.removeprefix("..."),
                provider_type="spread",
            )
        case "object":
            return _parse_provider_object(node, source)
        case _:
            return None


def _parse_provider_object(node: Node, source: SourceFile) -> ProviderInfo | None:
    properties = object_properties(node, source)
    provide = properties.get("provide")
    if provide is None:
        return None

    token = extract_token(provide, source)
    multi_node = properties.get("multi")
    multi = multi_node is not None and multi_node.type == "true"

    for strategy in PROVIDER_STRATEGIES:
        target = properties.get(strategy)
        if target is None:
            continue
        if target.type == "call_expression":
            target = forward_ref_target(target, source) or target
        return ProviderInfo(
            token=token,
            implementation=identifier_name(target, source),
            multi=multi,
            provider_type=strategy,
        )

    value_node = properties.get("useValue")
    if value_node is not None:
        value = identifier_name(value_node, source) if value_node.type == "identifier" else None
        return ProviderInfo(token=token, value=value, multi=multi, provider_type="useValue")

    return ProviderInfo(token=token, multi=multi)


def parse_providers(elements: list[Node] | Node | None, source: SourceFile) -> list[ProviderInfo]:
    """Parse a providers array (or its element list) in source order.

    Nested arrays are flattened; unrecognised elements are skipped.
    """
    if elements is None:
        return []
    if isinstance(elements, Node):
        elements = array_elements(elements) if elements.type == "array" else [elements]

    providers: list[ProviderInfo] = []
    for element in elements:
        if element.type == "array":
            providers.extend(parse_providers(named_children(element), source))
            continue
        info = parse_provider(element, source)
        if info is not None:
            providers.append(info)
    return providers
