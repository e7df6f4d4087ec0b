"""
Dependency discovery for injectable classes.

Two injection styles are recognised:

  - constructor parameters, typed or ``@Inject(TOKEN)``-decorated, with
    ``@Optional``/``@Self``/``@SkipSelf``/``@Host`` flags
  - ``inject(Token, {optional: true, ...})`` calls in field initialisers and
    in the constructor body
"""

from tree_sitter import Node

from ngkg.graph.graph_types import Dependency
from ngkg.parser.ast_helpers import (
    call_arguments,
    call_function_name,
    class_members,
    decorator_arguments,
    decorator_name,
    find_constructor,
    identifier_name,
    member_name,
    named_children,
    object_properties,
    walk,
)
from ngkg.parser.providers import extract_token
from ngkg.parser.tree_sitter_parser import SourceFile
from ngkg.parser.type_helpers import is_primitive_type, primary_type_name

PARAMETER_FLAGS = {
    "Optional": "optional",
    "Self": "self",
    "SkipSelf": "skip_self",
    "Host": "host",
}

INJECT_OPTION_FLAGS = {
    "optional": "optional",
    "self": "self",
    "skipSelf": "skip_self",
    "host": "host",
}

PARAMETER_NODE_TYPES = frozenset({"required_parameter", "optional_parameter"})


def constructor_dependencies(class_node: Node, source: SourceFile) -> list[Dependency]:
    constructor = find_constructor(class_node, source)
    if constructor is None:
        return []
    parameters = constructor.child_by_field_name("parameters")
    if parameters is None:
        return []

    dependencies: list[Dependency] = []
    for parameter in named_children(parameters):
        if parameter.type not in PARAMETER_NODE_TYPES:
            continue
        dependency = _parameter_dependency(parameter, source)
        if dependency is not None:
            dependencies.append(dependency)
    return dependencies


def _parameter_dependency(parameter: Node, source: SourceFile) -> Dependency | None:
    pattern = parameter.child_by_field_name("pattern")
    name = source.text(pattern) if pattern is not None else ""

    flags: dict[str, bool] = {}
    token: str | None = None
    for child in parameter.children:
        if child.type != "decorator":
            continue
        label = decorator_name(child, source)
        if label in PARAMETER_FLAGS:
            flags[PARAMETER_FLAGS[label]] = True
        elif label == "Inject":
            arguments = decorator_arguments(child) or []
            if arguments:
                token = extract_token(arguments[0], source)

    dependency_type = token or primary_type_name(source.declared_type(parameter))
    if not dependency_type:
        return None
    if token is None and is_primitive_type(dependency_type):
        return None
    return Dependency(name=name, type=dependency_type, **flags)


def _inject_call_dependency(call: Node, name: str, source: SourceFile) -> Dependency | None:
    function, qualifier = call_function_name(call, source)
    if function != "inject" or qualifier is not None:
        return None
    arguments = call_arguments(call)
    if not arguments:
        return None
    token = extract_token(arguments[0], source)
    if not token:
        return None
    flags: dict[str, bool] = {}
    if len(arguments) > 1:
        for key, value in object_properties(arguments[1], source).items():
            if key in INJECT_OPTION_FLAGS and value.type == "true":
                flags[INJECT_OPTION_FLAGS[key]] = True
    return Dependency(name=name or token, type=token, injection_method="inject-function", **flags)


def _assigned_name(call: Node, source: SourceFile) -> str:
    parent = call.parent
    while parent is not None and parent.type in ("as_expression", "non_null_expression", "parenthesized_expression"):
        parent = parent.parent
    if parent is None:
        return ""
    if parent.type == "variable_declarator":
        return source.text(parent.child_by_field_name("name"))
    if parent.type == "assignment_expression":
        return identifier_name(parent.child_by_field_name("left"), source) or ""
    return ""


def inject_function_dependencies(class_node: Node, source: SourceFile) -> list[Dependency]:
    dependencies: list[Dependency] = []
    for member, _ in class_members(class_node):
        if member.type == "public_field_definition":
            value = member.child_by_field_name("value")
            if value is not None and value.type == "call_expression":
                dependency = _inject_call_dependency(value, member_name(member, source) or "", source)
                if dependency is not None:
                    dependencies.append(dependency)
        elif member.type == "method_definition" and member_name(member, source) == "constructor":
            body = member.child_by_field_name("body")
            if body is None:
                continue
            for node in walk(body):
                if node.type != "call_expression":
                    continue
                dependency = _inject_call_dependency(node, _assigned_name(node, source), source)
                if dependency is not None:
                    dependencies.append(dependency)
    return dependencies


def class_dependencies(class_node: Node, source: SourceFile) -> list[Dependency]:
    """Constructor dependencies followed by ``inject()`` dependencies."""
    return constructor_dependencies(class_node, source) + inject_function_dependencies(class_node, source)
