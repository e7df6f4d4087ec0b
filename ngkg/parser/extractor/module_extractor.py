"""``@NgModule`` extractor: declarations, imports, exports, providers and bootstrap."""

from typing import Iterable

from ngkg.graph.graph_types import Entity, EntityType, ModuleEntity, Relationship, RelationType
from ngkg.graph.knowledge_graph import VisitorContext
from ngkg.parser.extractor.base_extractor import ClassMatch, DecoratedClassExtractor


class ModuleExtractor(DecoratedClassExtractor):
    name = "module-extractor"
    description = "Extracts @NgModule classes"
    entity_type = EntityType.module
    decorator_names = frozenset({"NgModule"})

    def build_entity(self, match: ClassMatch, context: VisitorContext) -> Entity | None:
        source = context.source
        return ModuleEntity(
            **self.common_fields(match, context),
            declarations=tuple(self.references_of(match, "declarations", source)),
            imports=tuple(self.references_of(match, "imports", source)),
            exports=tuple(self.references_of(match, "exports", source)),
            providers=tuple(p.token for p in self.providers_of(match, "providers", source)),
            bootstrap=tuple(self.references_of(match, "bootstrap", source)),
        )

    def build_relationships(
        self,
        match: ClassMatch,
        entity: Entity,
        context: VisitorContext,
    ) -> Iterable[Relationship]:
        relationships = self.reference_relationships(
            context, entity.id, RelationType.declares, entity.declarations, "declarations"
        )
        relationships += self.reference_relationships(
            context, entity.id, RelationType.imports, entity.imports, "imports"
        )
        relationships += self.reference_relationships(
            context, entity.id, RelationType.exports, entity.exports, "exports"
        )
        relationships += self.provider_relationships(
            context, entity.id, self.providers_of(match, "providers", context.source), "providers"
        )
        relationships += self.reference_relationships(
            context, entity.id, RelationType.uses, entity.bootstrap, "bootstrap"
        )
        return relationships
