"""
Markdown rendering of an entity group.

Each detail level appends sections to the output of the level below it, so
for a fixed entity set the rendered length never decreases from
``overview`` to ``complete``:

  - overview: header, counts by type, entity index
  - features: one section per entity with its headline facts
  - detailed: inputs/outputs, dependencies, module lists, providers, docs
  - complete: relationships with classification, decorators, locations
"""

from collections import Counter
from typing import Iterable

from ngkg.chunking.schema import DetailLevel
from ngkg.graph.graph_types import (
    ComponentEntity,
    ConstantEntity,
    DirectiveEntity,
    Entity,
    ModuleEntity,
    PipeEntity,
    PropertyBinding,
    Relationship,
    ServiceEntity,
)


def _bindings(bindings: Iterable[PropertyBinding]) -> str:
    rendered = []
    for binding in bindings:
        label = f"`{binding.name}`"
        if binding.alias:
            label += f" (as `{binding.alias}`)"
        if binding.required:
            label += " required"
        if binding.kind not in ("decorator", "metadata"):
            label += f" [{binding.kind}()]"
        rendered.append(label)
    return ", ".join(rendered)


def _names(names: Iterable[str]) -> str:
    return ", ".join(f"`{name}`" for name in names)


class MarkdownRenderer:
    """Renders a group of entities and their outgoing relationships."""

    def __init__(self, project_name: str, angular_version: str | None = None):
        self.project_name = project_name
        self.angular_version = angular_version

    def render(
        self,
        title: str,
        entities: list[Entity],
        relationships: list[Relationship],
        level: DetailLevel,
    ) -> str:
        sections = [self._overview(title, entities, level)]
        if level.includes(DetailLevel.features):
            sections.append(self._features(entities))
        if level.includes(DetailLevel.detailed):
            sections.append(self._detailed(entities))
        if level.includes(DetailLevel.complete):
            sections.append(self._complete(entities, relationships))
        return "\n\n".join(section for section in sections if section) + "\n"

    def _overview(self, title: str, entities: list[Entity], level: DetailLevel) -> str:
        lines = [
            "---",
            f"project: {self.project_name}",
            f"feature: {title}",
            f"entities: {len(entities)}",
            f"detail: {level}",
        ]
        if self.angular_version:
            lines.append(f"angular: {self.angular_version}")
        lines += ["---", "", f"# {self.project_name} - {title}", ""]

        counts = Counter(str(entity.type) for entity in entities)
        if counts:
            lines.append("| Type | Count |")
            lines.append("|------|-------|")
            for entity_type, count in sorted(counts.items()):
                lines.append(f"| {entity_type} | {count} |")
            lines.append("")

        lines.append("## Entities")
        lines.append("")
        for entity in entities:
            lines.append(f"- **{entity.name}** ({entity.type}) `{entity.location.file_path}`")
        return "\n".join(lines)

    def _features(self, entities: list[Entity]) -> str:
        blocks = ["## Overview by entity"]
        for entity in entities:
            lines = [f"### {entity.name}", f"- Type: {entity.type}", f"- File: `{entity.location.file_path}`"]
            match entity:
                case ComponentEntity() | DirectiveEntity():
                    if entity.selector:
                        lines.append(f"- Selector: `{entity.selector}`")
                    lines.append(f"- Standalone: {'yes' if entity.standalone else 'no'}")
                case ServiceEntity():
                    if entity.provided_in:
                        lines.append(f"- Provided in: `{entity.provided_in}`")
                case PipeEntity():
                    lines.append(f"- Pipe name: `{entity.pipe_name}`")
                    lines.append(f"- Pure: {'yes' if entity.pure else 'no'}")
                case ModuleEntity():
                    lines.append(f"- Declarations: {len(entity.declarations)}")
                case ConstantEntity():
                    lines.append(f"- Kind: {entity.constant_type}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def _detailed(self, entities: list[Entity]) -> str:
        blocks = ["## Details"]
        for entity in entities:
            lines = [f"### {entity.name} details"]
            if entity.documentation:
                lines.append("")
                lines.append(entity.documentation)
                lines.append("")
            match entity:
                case ComponentEntity():
                    if entity.change_detection:
                        lines.append(f"- Change detection: {entity.change_detection}")
                    if entity.template_url:
                        lines.append(f"- Template: `{entity.template_url}`")
                    analysis = entity.template_analysis
                    if analysis is not None:
                        if analysis.used_components:
                            lines.append(f"- Template components: {_names(analysis.used_components)}")
                        if analysis.used_directives:
                            lines.append(f"- Template directives: {_names(analysis.used_directives)}")
                        if analysis.used_pipes:
                            lines.append(f"- Template pipes: {_names(analysis.used_pipes)}")
                    if entity.imports:
                        lines.append(f"- Imports: {_names(entity.imports)}")
                    if entity.view_providers:
                        lines.append(f"- View providers: {_names(entity.view_providers)}")
                    if entity.signals:
                        lines.append(f"- Signals: {_names(entity.signals)}")
            match entity:
                case ComponentEntity() | DirectiveEntity():
                    if entity.inputs:
                        lines.append(f"- Inputs: {_bindings(entity.inputs)}")
                    if entity.outputs:
                        lines.append(f"- Outputs: {_bindings(entity.outputs)}")
                    if entity.lifecycle:
                        lines.append(f"- Lifecycle: {_names(entity.lifecycle)}")
                    if entity.providers:
                        lines.append(f"- Providers: {_names(entity.providers)}")
                case ModuleEntity():
                    for label, names in (
                        ("Declarations", entity.declarations),
                        ("Imports", entity.imports),
                        ("Exports", entity.exports),
                        ("Providers", entity.providers),
                        ("Bootstrap", entity.bootstrap),
                    ):
                        if names:
                            lines.append(f"- {label}: {_names(names)}")
                case ConstantEntity():
                    if entity.token_type:
                        lines.append(f"- Type: `{entity.token_type}`")
                    if entity.value:
                        lines.append(f"- Value: `{entity.value}`")
            dependencies = getattr(entity, "dependencies", ())
            if dependencies:
                lines.append("- Dependencies:")
                for dependency in dependencies:
                    flags = [
                        flag
                        for flag, enabled in (
                            ("optional", dependency.optional),
                            ("self", dependency.self),
                            ("skipSelf", dependency.skip_self),
                            ("host", dependency.host),
                        )
                        if enabled
                    ]
                    suffix = f" ({', '.join(flags)})" if flags else ""
                    lines.append(f"  - `{dependency.name}`: `{dependency.type}`{suffix}")
            blocks.append("\n".join(lines))
        return "\n\n".join(blocks)

    def _complete(self, entities: list[Entity], relationships: list[Relationship]) -> str:
        ids = {entity.id for entity in entities}
        lines = ["## Relationships", ""]
        outgoing = [rel for rel in relationships if rel.source in ids]
        if not outgoing:
            lines.append("_No outgoing relationships._")
        for rel in outgoing:
            classification = rel.metadata.classification or "raw"
            name = rel.metadata.original_name or rel.target
            lines.append(f"- `{rel.source}` {rel.type} `{name}` -> `{rel.target}` [{classification}]")

        lines += ["", "## Source locations", ""]
        for entity in entities:
            location = entity.location
            decorators = ", ".join(f"@{decorator.name}" for decorator in entity.decorators)
            modifiers = " ".join(entity.modifiers)
            lines.append(
                f"- `{entity.id}` at {location.file_path}:{location.line}:{location.column}"
                + (f" {decorators}" if decorators else "")
                + (f" [{modifiers}]" if modifiers else "")
            )
        return "\n".join(lines)
