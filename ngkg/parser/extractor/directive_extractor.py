"""``@Directive`` extractor: selector, inputs/outputs, providers, dependencies."""

from typing import Iterable

from ngkg.graph.graph_types import DirectiveEntity, Entity, EntityType, Relationship
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.parser.ast_helpers import lifecycle_hooks
from ngkg.parser.extractor.base_extractor import ClassMatch, DecoratedClassExtractor, collect_bindings
from ngkg.parser.extractor.injection import class_dependencies


class DirectiveExtractor(DecoratedClassExtractor):
    name = "directive-extractor"
    description = "Extracts @Directive classes"
    entity_type = EntityType.directive
    decorator_names = frozenset({"Directive"})

    def build_entity(self, match: ClassMatch, context: VisitorContext) -> Entity | None:
        source = context.source
        inputs, outputs, _ = collect_bindings(match, source)
        return DirectiveEntity(
            **self.common_fields(match, context),
            selector=self.option_string(match, "selector", source),
            inputs=tuple(inputs),
            outputs=tuple(outputs),
            lifecycle=tuple(lifecycle_hooks(match.node, source)),
            standalone=self.option_bool(match, "standalone"),
            providers=tuple(p.token for p in self.providers_of(match, "providers", source)),
            dependencies=tuple(class_dependencies(match.node, source)),
        )

    def build_relationships(
        self,
        match: ClassMatch,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        relationships = self.provider_relationships(
            context, entity.id, self.providers_of(match, "providers", context.source), "providers"
        )
        relationships += self.injects_relationships(context, entity.id, entity.dependencies)
        return relationships
