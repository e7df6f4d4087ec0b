"""
Component template analysis.

Parses an Angular HTML template with the tree-sitter ``html`` grammar and
records what it uses:

  - ``<app-card>``                      -> used component "app-card"
  - ``*ngFor="let x of xs"``            -> used directive "ngFor" and a structural binding
  - ``[ngClass]="..."``                 -> used directive "ngClass" and a property binding
  - ``(click)="save()"``                -> event binding
  - ``[(ngModel)]="name"``              -> two-way binding
  - ``[attr.role]`` / ``[class.x]`` / ``[style.width.px]`` -> attribute, class, style bindings
  - ``#form``                           -> template reference "form"
  - ``{{ when | date:'short' }}``       -> used pipe "date"

Angular syntax the HTML grammar does not understand (control flow blocks,
interpolations) stays inside text nodes; pipes are read from the text of
interpolations and bound expressions.
"""

import logging
import re
from pathlib import Path

from tree_sitter import Node

from ngkg.core.exceptions import SourceParseError
from ngkg.graph.graph_types import TemplateAnalysis, TemplateBinding
from ngkg.parser.ast_helpers import named_children
from ngkg.parser.tree_sitter_parser import parse_markup

logger = logging.getLogger(__name__)

INTERPOLATION = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
PIPE = re.compile(r"(?<!\|)\|(?!\|)\s*([A-Za-z_$][\w$]*)")

BINDING_PREFIXES = (("attr.", "attribute"), ("class.", "class"), ("style.", "style"))


def _decode(content: bytes, node: Node) -> str:
    return content[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _attribute_parts(attribute: Node, content: bytes) -> tuple[str | None, str | None]:
    name = value = None
    for child in named_children(attribute):
        if child.type == "attribute_name":
            name = _decode(content, child)
        elif child.type == "quoted_attribute_value":
            inner = [c for c in named_children(child) if c.type == "attribute_value"]
            value = _decode(content, inner[0]) if inner else ""
        elif child.type == "attribute_value":
            value = _decode(content, child)
    return name, value


def _classify_binding(name: str) -> tuple[str, str] | None:
    """``(kind, bound name)`` for a binding attribute, None for a plain attribute."""
    if name.startswith("[(") and name.endswith(")]"):
        return "two-way", name[2:-2]
    if name.startswith("(") and name.endswith(")"):
        return "event", name[1:-1]
    if name.startswith("[") and name.endswith("]"):
        inner = name[1:-1]
        for prefix, kind in BINDING_PREFIXES:
            if inner.startswith(prefix):
                return kind, inner[len(prefix):]
        return "property", inner
    if name.startswith("bind-"):
        return "property", name[len("bind-"):]
    if name.startswith("on-"):
        return "event", name[len("on-"):]
    return None


class _TemplateWalker:
    """Accumulates one template's facts during a single walk."""

    def __init__(self, content: bytes):
        self.content = content
        self.components: set[str] = set()
        self.directives: set[str] = set()
        self.expressions: list[str] = []
        self.interpolations: list[str] = []
        self.bindings: list[TemplateBinding] = []
        self.refs: list[str] = []
        self.complexity = 0

    def walk(self, root: Node) -> None:
        stack: list[tuple[Node, int]] = [(root, 0)]
        while stack:
            node, depth = stack.pop()
            if node.type in ("element", "script_element", "style_element"):
                depth += 1
                self.complexity += depth
            elif node.type in ("start_tag", "self_closing_tag"):
                self._tag(node)
            elif node.type == "text":
                found = [text.strip() for text in INTERPOLATION.findall(_decode(self.content, node))]
                self.interpolations.extend(found)
                self.expressions.extend(found)
            for child in reversed(named_children(node)):
                stack.append((child, depth))

    def _tag(self, tag: Node) -> None:
        for child in named_children(tag):
            if child.type == "tag_name":
                tag_name = _decode(self.content, child)
                if "-" in tag_name:
                    self.components.add(tag_name)
            elif child.type == "attribute":
                self._attribute(child)

    def _attribute(self, attribute: Node) -> None:
        name, value = _attribute_parts(attribute, self.content)
        if not name:
            return
        line = attribute.start_point[0] + 1
        if name.startswith("*"):
            self.directives.add(name[1:])
            self.bindings.append(TemplateBinding(kind="structural", name=name[1:], expression=value, line=line))
            self.complexity += 2
            if value:
                self.expressions.append(value)
            return
        if name.startswith("#"):
            self.refs.append(name[1:])
            return
        binding = _classify_binding(name)
        if binding is None:
            if value:
                self.expressions.extend(INTERPOLATION.findall(value))
            return
        kind, bound = binding
        if bound.startswith("ng") and kind in ("property", "two-way"):
            self.directives.add(bound)
        self.bindings.append(TemplateBinding(kind=kind, name=bound, expression=value, line=line))
        self.complexity += 1
        if value and kind != "event":
            self.expressions.append(value)

    def result(self) -> TemplateAnalysis:
        pipes = {pipe for expression in self.expressions for pipe in PIPE.findall(expression)}
        return TemplateAnalysis(
            used_components=tuple(sorted(self.components)),
            used_directives=tuple(sorted(self.directives)),
            used_pipes=tuple(sorted(pipes)),
            bindings=tuple(self.bindings),
            interpolations=tuple(self.interpolations),
            template_refs=tuple(self.refs),
            complexity=self.complexity,
        )


def analyze_template(template: str) -> TemplateAnalysis:
    """Analyse template text.

    Raises:
        SourceParseError: If the html grammar cannot be loaded.
    """
    content = template.encode("utf-8")
    tree = parse_markup(content)
    walker = _TemplateWalker(content)
    walker.walk(tree.root_node)
    return walker.result()


def read_template(component_file: Path, template_url: str) -> str | None:
    """Text of an external template, resolved against the component's directory."""
    path = (component_file.parent / template_url).resolve()
    if not path.is_file():
        logger.debug(f"Template {template_url} of {component_file} not found")
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read template {path}: {e}")
        return None


def component_template_analysis(
    component_file: Path,
    template: str | None,
    template_url: str | None,
) -> TemplateAnalysis | None:
    """Analysis of a component's inline template, else of its ``templateUrl`` file."""
    text = template
    if text is None and template_url:
        text = read_template(component_file, template_url)
    if text is None:
        return None
    try:
        return analyze_template(text)
    except SourceParseError as e:
        logger.warning(f"Skipping template analysis of {component_file}: {e}")
        return None
