"""
``@Component`` extractor.

Reads selector, inline template and styles, template/style URLs, template
usage (see ``template_analyzer``), standalone flag, change detection,
standalone imports, providers and viewProviders, inputs/outputs (decorator
and signal forms), lifecycle hooks and injected dependencies.

Relationships:
  - imports  -> each entry of a standalone component's ``imports``
  - provides -> provider tokens and implementations (providers, viewProviders)
  - uses     -> ``useValue`` references and animation references
  - injects  -> constructor parameters and ``inject()`` calls
"""

from typing import Iterable

from ngkg.graph.graph_types import ComponentEntity, Entity, EntityType, Relationship, RelationType
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.parser.ast_helpers import array_elements, identifier_name, lifecycle_hooks
from ngkg.parser.extractor.base_extractor import (
    ClassMatch,
    DecoratedClassExtractor,
    change_detection_of,
    collect_bindings,
)
from ngkg.parser.extractor.injection import class_dependencies
from ngkg.parser.template_analyzer import component_template_analysis


class ComponentExtractor(DecoratedClassExtractor):
    name = "component-extractor"
    description = "Extracts @Component classes"
    entity_type = EntityType.component
    decorator_names = frozenset({"Component"})

    def build_entity(self, match: ClassMatch, context: VisitorContext) -> Entity | None:
        source = context.source
        inputs, outputs, signals = collect_bindings(match, source)
        style_urls = self.option_strings(match, "styleUrls", source) + self.option_strings(match, "styleUrl", source)
        template = self.option_string(match, "template", source)
        template_url = self.option_string(match, "templateUrl", source)
        template_analysis = None
        if context.settings.analyze_templates:
            template_analysis = component_template_analysis(context.file_path, template, template_url)
        return ComponentEntity(
            **self.common_fields(match, context),
            selector=self.option_string(match, "selector", source),
            inputs=tuple(inputs),
            outputs=tuple(outputs),
            lifecycle=tuple(lifecycle_hooks(match.node, source)),
            standalone=self.option_bool(match, "standalone"),
            change_detection=change_detection_of(match, source),
            template=template,
            template_url=template_url,
            template_analysis=template_analysis,
            styles=tuple(self.option_strings(match, "styles", source)),
            style_urls=tuple(style_urls),
            imports=tuple(self.references_of(match, "imports", source)),
            providers=tuple(p.token for p in self.providers_of(match, "providers", source)),
            view_providers=tuple(p.token for p in self.providers_of(match, "viewProviders", source)),
            signals=tuple(signals),
            dependencies=tuple(class_dependencies(match.node, source)),
        )

    def build_relationships(
        self,
        match: ClassMatch,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        source = context.source
        relationships = self.reference_relationships(
            context, entity.id, RelationType.imports, entity.imports, "imports"
        )
        relationships += self.provider_relationships(
            context, entity.id, self.providers_of(match, "providers", source), "providers"
        )
        relationships += self.provider_relationships(
            context, entity.id, self.providers_of(match, "viewProviders", source), "viewProviders"
        )
        for element in array_elements(match.options.get("animations")):
            if element.type not in ("identifier", "member_expression"):
                continue
            name = identifier_name(element, source)
            if name:
                relationships.append(
                    self.relationship(
                        context, entity.id, RelationType.uses, name,
                        {"usage": "animation", "property_name": "animations"},
                    )
                )
        relationships += self.injects_relationships(context, entity.id, entity.dependencies)
        return relationships
