"""``@Injectable`` extractor: providedIn scope and injected dependencies."""

from typing import Iterable

from ngkg.graph.graph_types import Entity, EntityType, Relationship, ServiceEntity
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.parser.ast_helpers import identifier_name, string_value
from ngkg.parser.extractor.base_extractor import ClassMatch, DecoratedClassExtractor
from ngkg.parser.extractor.injection import class_dependencies


class ServiceExtractor(DecoratedClassExtractor):
    name = "service-extractor"
    description = "Extracts @Injectable classes"
    entity_type = EntityType.service
    decorator_names = frozenset({"Injectable"})

    def build_entity(self, match: ClassMatch, context: VisitorContext) -> Entity | None:
        source = context.source
        provided_in_node = match.options.get("providedIn")
        provided_in = string_value(provided_in_node, source) or identifier_name(provided_in_node, source)
        return ServiceEntity(
            **self.common_fields(match, context),
            provided_in=provided_in,
            dependencies=tuple(class_dependencies(match.node, source)),
        )

    def build_relationships(
        self,
        match: ClassMatch,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        return self.injects_relationships(context, entity.id, entity.dependencies)
