"""
Syntax helpers shared by the entity extractors.

These functions read decorators, object literals, doc comments and class
members from tree-sitter TypeScript nodes. They never raise on unexpected
shapes; a missing piece comes back as ``None`` or an empty collection so the
caller can skip the declaration.
"""

from typing import Any, Iterator

from tree_sitter import Node

from ngkg.graph.graph_types import DecoratorMetadata, SourceLocation
from ngkg.parser.tree_sitter_parser import SourceFile

CLASS_NODE_TYPES = frozenset({"class_declaration", "abstract_class_declaration", "class"})

LIFECYCLE_HOOKS = (
    "ngOnChanges",
    "ngOnInit",
    "ngDoCheck",
    "ngAfterContentInit",
    "ngAfterContentChecked",
    "ngAfterViewInit",
    "ngAfterViewChecked",
    "ngOnDestroy",
)

SIGNAL_FUNCTIONS = frozenset({
    "signal",
    "computed",
    "effect",
    "input",
    "output",
    "model",
    "viewChild",
    "viewChildren",
    "contentChild",
    "contentChildren",
    "toSignal",
})


def named_children(node: Node) -> list[Node]:
    """Named children of ``node`` without comments."""
    return [child for child in node.named_children if child.type != "comment"]


def string_value(node: Node | None, source: SourceFile) -> str | None:
    """Return the value of a string literal or substitution-free template string."""
    if node is None:
        return None
    if node.type == "string":
        return source.text(node)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.named_children):
            return None
        return source.text(node)[1:-1]
    return None


def identifier_name(node: Node | None, source: SourceFile) -> str | None:
    """Name referenced by an identifier or the property of a member access."""
    if node is None:
        return None
    match node.type:
        case "identifier" | "type_identifier" | "property_identifier" | "shorthand_property_identifier":
            return source.text(node)
        case "member_expression":
            return identifier_name(node.child_by_field_name("property"), source)
        case "parenthesized_expression":
            inner = named_children(node)
            return identifier_name(inner[0], source) if inner else None
        case "as_expression" | "satisfies_expression" | "non_null_expression":
            inner = named_children(node)
            return identifier_name(inner[0], source) if inner else None
        case _:
            return None


def reference_name(node: Node, source: SourceFile) -> str | None:
    """Name of the class or constant an array element refers to.

    ``Foo`` -> ``Foo``, ``ns.Foo`` -> ``Foo``, ``RouterModule.forRoot(routes)``
    -> ``RouterModule``, ``provideRouter(routes)`` -> ``provideRouter``,
    ``...SHARED`` -> ``...SHARED``.
    """
    match node.type:
        case "identifier" | "member_expression":
            return identifier_name(node, source)
        case "call_expression":
            function = node.child_by_field_name("function")
            if function is None:
                return None
            if function.type == "member_expression":
                owner = function.child_by_field_name("object")
                if owner is not None and owner.type in ("identifier", "member_expression"):
                    return identifier_name(owner, source)
            return identifier_name(function, source)
        case "spread_element":
            inner = named_children(node)
            name = identifier_name(inner[0], source) if inner else None
            return f"...{name}" if name else None
        case _:
            return None


def array_elements(node: Node | None) -> list[Node]:
    if node is None or node.type != "array":
        return []
    return named_children(node)


def reference_names(node: Node | None, source: SourceFile) -> list[str]:
    """Flatten an array literal (nested arrays included) into reference names."""
    names: list[str] = []
    for element in array_elements(node):
        if element.type == "array":
            names.extend(reference_names(element, source))
            continue
        name = reference_name(element, source)
        if name:
            names.append(name)
    return names


def property_key(pair: Node, source: SourceFile) -> str | None:
    key = pair.child_by_field_name("key")
    if key is None:
        return None
    if key.type in ("string", "template_string"):
        return string_value(key, source)
    if key.type in ("property_identifier", "identifier", "number"):
        return source.text(key)
    return None


def object_properties(node: Node | None, source: SourceFile) -> dict[str, Node]:
    """Map property names of an object literal to their value nodes.

    Shorthand properties map to the identifier node itself; spreads and
    methods are ignored.
    """
    properties: dict[str, Node] = {}
    if node is None or node.type != "object":
        return properties
    for child in named_children(node):
        if child.type == "pair":
            key = property_key(child, source)
            value = child.child_by_field_name("value")
            if key is not None and value is not None:
                properties[key] = value
        elif child.type == "shorthand_property_identifier":
            properties[source.text(child)] = child
    return properties


def literal_value(node: Node | None, source: SourceFile) -> Any:
    """Convert a literal expression to a Python value.

    Strings, numbers, booleans, null, arrays and objects are converted;
    anything else is returned as its source text.
    """
    if node is None:
        return None
    match node.type:
        case "string" | "template_string":
            value = string_value(node, source)
            return value if value is not None else source.text(node)
        case "number":
            text = source.text(node).replace("_", "")
            try:
                return int(text, 0)
            except ValueError:
                try:
                    return float(text)
                except ValueError:
                    return text
        case "true":
            return True
        case "false":
            return False
        case "null" | "undefined":
            return None
        case "array":
            return [literal_value(element, source) for element in array_elements(node)]
        case "object":
            return {
                key: literal_value(value, source)
                for key, value in object_properties(node, source).items()
            }
        case _:
            return source.text(node)


def location_of(node: Node, source: SourceFile) -> SourceLocation:
    return SourceLocation(
        file_path=source.relative_path,
        start=node.start_byte,
        end=node.end_byte,
        line=node.start_point[0] + 1,
        column=node.start_point[1] + 1,
    )


def outer_declaration(node: Node) -> Node:
    """The export statement wrapping ``node``, or ``node`` itself."""
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        return parent
    return node


def class_decorators(class_node: Node) -> list[Node]:
    """Decorators on a class, including those written before ``export``."""
    decorators = [child for child in class_node.children if child.type == "decorator"]
    outer = outer_declaration(class_node)
    if outer is not class_node:
        decorators = [child for child in outer.children if child.type == "decorator"] + decorators
    return decorators


def decorator_expression(decorator: Node) -> Node | None:
    inner = named_children(decorator)
    return inner[0] if inner else None


def decorator_name(decorator: Node, source: SourceFile) -> str | None:
    """Textual decorator name; ``@core.Component()`` -> ``Component``."""
    expression = decorator_expression(decorator)
    if expression is None:
        return None
    if expression.type == "call_expression":
        expression = expression.child_by_field_name("function")
    return identifier_name(expression, source)


def decorator_arguments(decorator: Node) -> list[Node] | None:
    """Argument nodes of a called decorator, or None when it is not called."""
    expression = decorator_expression(decorator)
    if expression is None or expression.type != "call_expression":
        return None
    arguments = expression.child_by_field_name("arguments")
    if arguments is None:
        return []
    return named_children(arguments)


def find_decorator(decorators: list[Node], names: set[str] | frozenset[str], source: SourceFile) -> Node | None:
    for decorator in decorators:
        if decorator_name(decorator, source) in names:
            return decorator
    return None


def decorator_metadata(decorator: Node, source: SourceFile) -> DecoratorMetadata | None:
    name = decorator_name(decorator, source)
    if name is None:
        return None
    arguments = decorator_arguments(decorator) or []
    parsed: dict[str, Any] = {}
    if arguments and arguments[0].type == "object":
        parsed = literal_value(arguments[0], source)
    elif arguments:
        parsed = {"args": [literal_value(argument, source) for argument in arguments]}
    return DecoratorMetadata(name=name, arguments=parsed, location=location_of(decorator, source))


def clean_doc_comment(text: str) -> str | None:
    if not text.startswith("/**"):
        return None
    body = text[3:]
    if body.endswith("*/"):
        body = body[:-2]
    lines = []
    for line in body.splitlines():
        line = line.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip())
    cleaned = "\n".join(lines).strip()
    return cleaned or None


def doc_comment(node: Node, source: SourceFile) -> str | None:
    """The ``/** ... */`` comment directly above a declaration.

    Decorators belong to the declaration node, so a comment above
    ``@Component`` is the declaration's previous sibling.
    """
    sibling = outer_declaration(node).prev_sibling
    if sibling is None or sibling.type != "comment":
        return None
    return clean_doc_comment(source.text(sibling))


def modifiers_of(node: Node) -> list[str]:
    modifiers: list[str] = []
    outer = outer_declaration(node)
    if outer is not node:
        modifiers.append("export")
        if any(child.type == "default" for child in outer.children):
            modifiers.append("default")
    if node.type == "abstract_class_declaration":
        modifiers.append("abstract")
    return modifiers


def class_members(class_node: Node) -> Iterator[tuple[Node, list[Node]]]:
    """Yield ``(member, decorators)`` for each member of a class body.

    Method decorators precede the method as siblings inside the body; field
    and parameter decorators are children of the member itself. Both are
    returned.
    """
    body = class_node.child_by_field_name("body")
    if body is None:
        return
    pending: list[Node] = []
    for child in body.named_children:
        if child.type == "decorator":
            pending.append(child)
            continue
        if child.type == "comment":
            continue
        own = [grandchild for grandchild in child.children if grandchild.type == "decorator"]
        yield child, pending + own
        pending = []


def member_name(member: Node, source: SourceFile) -> str | None:
    name = member.child_by_field_name("name")
    if name is None:
        name = member.child_by_field_name("property")
    if name is None:
        return None
    if name.type in ("string", "template_string"):
        return string_value(name, source)
    return source.text(name)


def method_names(class_node: Node, source: SourceFile) -> list[str]:
    names = []
    for member, _ in class_members(class_node):
        if member.type in ("method_definition", "abstract_method_signature"):
            name = member_name(member, source)
            if name:
                names.append(name)
    return names


def lifecycle_hooks(class_node: Node, source: SourceFile) -> list[str]:
    declared = set(method_names(class_node, source))
    return [hook for hook in LIFECYCLE_HOOKS if hook in declared]


def find_constructor(class_node: Node, source: SourceFile) -> Node | None:
    for member, _ in class_members(class_node):
        if member.type == "method_definition" and member_name(member, source) == "constructor":
            return member
    return None


def call_function_name(call: Node, source: SourceFile) -> tuple[str | None, str | None]:
    """Return ``(function, qualifier)`` for a call.

    ``input()`` -> ``("input", None)``; ``input.required()`` -> ``("input", "required")``.
    """
    function = call.child_by_field_name("function")
    if function is None:
        return None, None
    if function.type == "identifier":
        return source.text(function), None
    if function.type == "member_expression":
        owner = function.child_by_field_name("object")
        prop = function.child_by_field_name("property")
        if owner is not None and owner.type == "identifier":
            return source.text(owner), source.text(prop) if prop is not None else None
    return None, None


def call_arguments(call: Node) -> list[Node]:
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return named_children(arguments)


def walk(node: Node, max_depth: int = 200) -> Iterator[Node]:
    """Pre-order walk below ``node`` using an explicit stack."""
    stack: list[tuple[Node, int]] = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        yield current
        if depth >= max_depth:
            continue
        for child in reversed(current.children):
            stack.append((child, depth + 1))
