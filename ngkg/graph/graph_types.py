"""Type definitions for entities and relationships in the Angular knowledge graph."""

import dataclasses
import enum
from types import MappingProxyType
from typing import Any, Mapping, Union


class EntityType(enum.StrEnum):
    """ The kind of an Angular construct """

    component = "component"
    service = "service"
    module = "module"
    directive = "directive"
    pipe = "pipe"
    constant = "constant"


class RelationType(enum.StrEnum):
    """ The type of a relationship between entities """

    injects = "injects"
    declares = "declares"
    imports = "imports"
    exports = "exports"
    provides = "provides"
    uses = "uses"


class Classification(enum.StrEnum):
    """ How a relationship target was resolved """

    internal = "internal"
    external = "external"
    unresolved = "unresolved"
    internal_file = "internal-file"


@dataclasses.dataclass(frozen=True)
class SourceLocation:
    """ Where a declaration lives

    Attributes:
        file_path: path relative to the project root, forward slashes
        start: start byte offset
        end: end byte offset
        line: 1-indexed line of the declaration start
        column: 1-indexed column of the declaration start
        source_url: optional link to the source (e.g. a repository URL)
    """

    file_path: str
    start: int
    end: int
    line: int
    column: int
    source_url: str | None = None


@dataclasses.dataclass(frozen=True)
class DecoratorMetadata:
    """ A decorator applied to a declaration

    Attributes:
        name: the decorator's name without '@' or namespace
        arguments: the parsed first argument when it is an object literal
        location: where the decorator appears
    """

    name: str
    arguments: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    location: SourceLocation | None = None


@dataclasses.dataclass(frozen=True)
class PropertyBinding:
    """ An input or output of a component or directive

    Attributes:
        name: the class member name
        alias: the public binding name when it differs from ``name``
        kind: "decorator" for @Input/@Output, or the signal function name
        required: whether the binding is declared required
        type: the declared type text, if any
    """

    name: str
    alias: str | None = None
    kind: str = "decorator"
    required: bool = False
    type: str | None = None


@dataclasses.dataclass(frozen=True)
class Dependency:
    """ A constructor or inject() dependency """

    name: str
    type: str
    optional: bool = False
    self: bool = False
    skip_self: bool = False
    host: bool = False
    injection_method: str = "constructor"


@dataclasses.dataclass(frozen=True)
class TemplateBinding:
    """ A binding on an element of a component template

    Attributes:
        kind: "property", "event", "two-way", "attribute", "class", "style"
            or "structural" (``*ngFor`` and friends)
        name: the bound name without brackets or prefix
        expression: the bound expression text
        line: 1-indexed line within the template
    """

    kind: str
    name: str
    expression: str | None = None
    line: int = 1


@dataclasses.dataclass(frozen=True)
class TemplateAnalysis:
    """ What a component template uses

    Attributes:
        used_components: custom element names (containing a dash), sorted
        used_directives: structural and ``ng``-prefixed attribute directives, sorted
        used_pipes: pipe names from interpolations and bindings, sorted
        bindings: element bindings in document order
        interpolations: ``{{ }}`` expression texts in document order
        template_refs: ``#ref`` names in document order
        complexity: nesting depth plus structural directives and bindings
    """

    used_components: tuple[str, ...] = ()
    used_directives: tuple[str, ...] = ()
    used_pipes: tuple[str, ...] = ()
    bindings: tuple[TemplateBinding, ...] = ()
    interpolations: tuple[str, ...] = ()
    template_refs: tuple[str, ...] = ()
    complexity: int = 0


@dataclasses.dataclass(frozen=True, kw_only=True)
class Entity:
    """ An Angular construct found in the source tree

    Attributes:
        id: ``f"{type}:{relative_path}:{name}"``, deterministic per declaration
        type: the construct kind
        name: the class or constant name
        location: where the declaration lives
        documentation: the cleaned doc comment preceding the declaration
        decorators: decorators applied to the declaration
        modifiers: export/default/abstract keywords
    """

    id: str
    type: EntityType
    name: str
    location: SourceLocation
    documentation: str | None = None
    decorators: tuple[DecoratorMetadata, ...] = ()
    modifiers: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, kw_only=True)
class ComponentEntity(Entity):
    type: EntityType = EntityType.component
    selector: str | None = None
    inputs: tuple[PropertyBinding, ...] = ()
    outputs: tuple[PropertyBinding, ...] = ()
    lifecycle: tuple[str, ...] = ()
    standalone: bool = False
    change_detection: str | None = None
    template: str | None = None
    template_url: str | None = None
    template_analysis: TemplateAnalysis | None = None
    styles: tuple[str, ...] = ()
    style_urls: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    providers: tuple[str, ...] = ()
    view_providers: tuple[str, ...] = ()
    signals: tuple[str, ...] = ()
    dependencies: tuple[Dependency, ...] = ()


@dataclasses.dataclass(frozen=True, kw_only=True)
class DirectiveEntity(Entity):
    type: EntityType = EntityType.directive
    selector: str | None = None
    inputs: tuple[PropertyBinding, ...] = ()
    outputs: tuple[PropertyBinding, ...] = ()
    lifecycle: tuple[str, ...] = ()
    standalone: bool = False
    providers: tuple[str, ...] = ()
    dependencies: tuple[Dependency, ...] = ()


@dataclasses.dataclass(frozen=True, kw_only=True)
class ServiceEntity(Entity):
    type: EntityType = EntityType.service
    provided_in: str | None = None
    dependencies: tuple[Dependency, ...] = ()


@dataclasses.dataclass(frozen=True, kw_only=True)
class ModuleEntity(Entity):
    type: EntityType = EntityType.module
    declarations: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()
    providers: tuple[str, ...] = ()
    bootstrap: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, kw_only=True)
class PipeEntity(Entity):
    type: EntityType = EntityType.pipe
    pipe_name: str | None = None
    pure: bool = True
    standalone: bool = False
    dependencies: tuple[Dependency, ...] = ()


@dataclasses.dataclass(frozen=True, kw_only=True)
class ConstantEntity(Entity):
    type: EntityType = EntityType.constant
    constant_type: str = "const"
    token_type: str | None = None
    value: str | None = None


AnyEntity = Union[
    ComponentEntity, DirectiveEntity, ServiceEntity, ModuleEntity, PipeEntity, ConstantEntity
]


@dataclasses.dataclass(frozen=True)
class EntityRef:
    """ Target is a real entity in the graph """

    entity_id: str


@dataclasses.dataclass(frozen=True)
class ExternalRef:
    """ Target lives in a third-party package """

    package_name: str
    name: str
    version: str | None = None
    resolved_path: str | None = None

    @property
    def synthetic_id(self) -> str:
        return f"external:{self.package_name}:{self.name}"


@dataclasses.dataclass(frozen=True)
class UnresolvedRef:
    """ Target could not be classified by any strategy """

    name: str

    @property
    def synthetic_id(self) -> str:
        return f"unresolved:{self.name}"


@dataclasses.dataclass(frozen=True)
class InternalFileRef:
    """ Target is a project file that holds no recognized entity of that name """

    path: str
    name: str

    @property
    def synthetic_id(self) -> str:
        return f"internal-file:{self.path}:{self.name}"


TargetRef = Union[EntityRef, ExternalRef, UnresolvedRef, InternalFileRef]


@dataclasses.dataclass(frozen=True)
class RelationshipMetadata:
    """ Extra facts carried by a relationship

    Extraction fills the injection flags, ``import_path`` and the provider
    fields; classification fills ``classification``, ``package_name``,
    ``version``, ``resolved_path`` and ``original_name``.
    """

    classification: Classification | None = None
    package_name: str | None = None
    version: str | None = None
    original_name: str | None = None
    optional: bool = False
    self: bool = False
    skip_self: bool = False
    host: bool = False
    multi: bool = False
    import_path: str | None = None
    resolved_path: str | None = None
    provider_type: str | None = None
    injection_method: str | None = None
    property_name: str | None = None
    usage: str | None = None


@dataclasses.dataclass(frozen=True)
class Relationship:
    """ A typed edge between an entity and a target

    Attributes:
        id: deterministic id derived from source, type and raw target name
        type: the relationship type
        source: id of the entity the edge starts at, always a real entity
        target: the raw referenced name before classification; afterwards a
            real entity id or a synthetic ``external:``/``unresolved:``/
            ``internal-file:`` id
        metadata: extra facts about the edge
        target_ref: the classified target, set by the entity resolver
    """

    id: str
    type: RelationType
    source: str
    target: str
    metadata: RelationshipMetadata = dataclasses.field(default_factory=RelationshipMetadata)
    target_ref: TargetRef | None = None

    @property
    def target_entity_id(self) -> str | None:
        match self.target_ref:
            case EntityRef(entity_id=entity_id):
                return entity_id
            case _:
                return None


@dataclasses.dataclass(frozen=True)
class HierarchyNode:
    """ Placeholder project hierarchy: one root holding every entity id """

    id: str = "root"
    name: str = "Angular Project"
    type: str = "app"
    children: tuple["HierarchyNode", ...] = ()
    entities: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class GraphMetadata:
    project_name: str
    total_entities: int
    total_relationships: int
    timestamp: str
    angular_version: str | None = None
    root_dir: str | None = None


@dataclasses.dataclass(frozen=True)
class KnowledgeGraph:
    """ The finished, read-only graph for one parse

    ``entities`` is a read-only mapping and ``relationships`` a tuple; the
    graph is never mutated after construction.
    """

    entities: Mapping[str, Entity]
    relationships: tuple[Relationship, ...]
    hierarchy: HierarchyNode
    metadata: GraphMetadata

    @classmethod
    def build(
        cls,
        entities: Mapping[str, Entity],
        relationships: list[Relationship] | tuple[Relationship, ...],
        metadata: GraphMetadata,
    ) -> "KnowledgeGraph":
        frozen_entities = MappingProxyType(dict(entities))
        hierarchy = HierarchyNode(
            name=metadata.project_name,
            entities=tuple(frozen_entities.keys()),
        )
        return cls(
            entities=frozen_entities,
            relationships=tuple(relationships),
            hierarchy=hierarchy,
            metadata=metadata,
        )

    @classmethod
    def empty(cls, project_name: str = "Angular Project", timestamp: str = "") -> "KnowledgeGraph":
        return cls.build(
            {},
            (),
            GraphMetadata(
                project_name=project_name,
                total_entities=0,
                total_relationships=0,
                timestamp=timestamp,
            ),
        )

    def entities_of_type(self, entity_type: EntityType) -> list[Entity]:
        return [entity for entity in self.entities.values() if entity.type == entity_type]

    def relationships_from(self, entity_id: str) -> list[Relationship]:
        return [rel for rel in self.relationships if rel.source == entity_id]
