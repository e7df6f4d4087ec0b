"""``@Pipe`` extractor. A pipe without a ``name`` is skipped."""

from typing import Iterable

from ngkg.graph.graph_types import Entity, EntityType, PipeEntity, Relationship
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.parser.extractor.base_extractor import ClassMatch, DecoratedClassExtractor
from ngkg.parser.extractor.injection import class_dependencies


class PipeExtractor(DecoratedClassExtractor):
    name = "pipe-extractor"
    description = "Extracts @Pipe classes"
    entity_type = EntityType.pipe
    decorator_names = frozenset({"Pipe"})

    def build_entity(self, match: ClassMatch, context: VisitorContext) -> Entity | None:
        source = context.source
        pipe_name = self.option_string(match, "name", source)
        if not pipe_name:
            return None
        return PipeEntity(
            **self.common_fields(match, context),
            pipe_name=pipe_name,
            pure=self.option_bool(match, "pure", default=True),
            standalone=self.option_bool(match, "standalone"),
            dependencies=tuple(class_dependencies(match.node, source)),
        )

    def build_relationships(
        self,
        match: ClassMatch,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        return self.injects_relationships(context, entity.id, entity.dependencies)
