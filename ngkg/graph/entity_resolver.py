"""
Relationship classification.

Runs once after traversal. Every raw relationship target (a referenced
name) is classified as:

  - internal:      an entity of that name exists in the graph
  - external:      the name is imported from a third-party package
  - internal-file: the name is imported from a project file holding no
                   recognised entity of that name
  - unresolved:    none of the above

Relationships whose source is not an entity are dropped with a warning.
"""

import dataclasses
import logging
import os
from pathlib import Path
from typing import Mapping

from ngkg.graph.graph_types import (
    Classification,
    Entity,
    EntityRef,
    ExternalRef,
    InternalFileRef,
    Relationship,
    UnresolvedRef,
)
from ngkg.graph.knowledge_graph import ParseContext, VisitorIssue
from ngkg.resolver.import_resolver import ImportResolver
from ngkg.resolver.package_manifest import extract_package_name

logger = logging.getLogger(__name__)

ORPHAN_RELATIONSHIP = "ORPHAN_RELATIONSHIP"

_SOURCE_SUFFIXES = (".d.ts", ".ts", ".tsx", ".js", ".jsx")


def _strip_source_suffix(path: str) -> str:
    for suffix in _SOURCE_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path


def _lookup_name(name: str) -> str:
    """``...NAME`` -> ``NAME``; ``ns.Foo`` -> ``Foo``."""
    name = name.removeprefix("...")
    return name.rsplit(".", 1)[-1]


class EntityResolver:
    """Resolves referenced names to entity ids and classifies the rest."""

    def __init__(
        self,
        entities: Mapping[str, Entity],
        import_resolver: ImportResolver,
        root_dir: Path,
    ):
        self.entities = entities
        self.import_resolver = import_resolver
        self.root_dir = root_dir
        self.name_index = self._build_name_index(entities)

    @staticmethod
    def _build_name_index(entities: Mapping[str, Entity]) -> dict[str, list[str]]:
        index: dict[str, list[str]] = {}
        for entity_id, entity in entities.items():
            index.setdefault(entity.name, []).append(entity_id)
        for name, ids in index.items():
            if len(ids) > 1:
                logger.debug(f"{len(ids)} entities named {name!r}")
        return index

    def resolve_entity_id(
        self,
        name: str,
        source_file: str | None = None,
        import_path: str | None = None,
    ) -> str | None:
        """Entity id for ``name``, disambiguating same-named entities.

        Candidates whose file matches the import path win; then the one
        sharing the longest directory prefix with ``source_file``; then the
        first indexed.
        """
        candidates = self.name_index.get(_lookup_name(name))
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        if import_path:
            needle = _strip_source_suffix(import_path.lstrip("./").replace("../", ""))
            if needle:
                for candidate in candidates:
                    file_path = _strip_source_suffix(self.entities[candidate].location.file_path)
                    if file_path.endswith(needle) or f"{needle}/index" in file_path:
                        return candidate

        if source_file:
            source_dir = os.path.dirname(source_file)

            def shared_prefix(candidate: str) -> int:
                candidate_dir = os.path.dirname(self.entities[candidate].location.file_path)
                return len(os.path.commonpath([source_dir, candidate_dir])) if source_dir and candidate_dir else 0

            return max(candidates, key=shared_prefix)

        return candidates[0]

    def classify(self, relationship: Relationship, context: ParseContext) -> Relationship | None:
        source = self.entities.get(relationship.source)
        if source is None:
            context.add_warning(
                VisitorIssue(
                    code=ORPHAN_RELATIONSHIP,
                    message=f"Relationship {relationship.id} dropped: source {relationship.source} is not an entity",
                )
            )
            return None

        raw_name = relationship.metadata.original_name or relationship.target
        import_path = relationship.metadata.import_path
        source_file = source.location.file_path

        entity_id = self.resolve_entity_id(raw_name, source_file, import_path)
        if entity_id is not None:
            return self._with_target(relationship, entity_id, EntityRef(entity_id), Classification.internal)

        if import_path:
            resolution = self.import_resolver.resolve_import(import_path, self.root_dir / source_file)
            name = _lookup_name(raw_name)
            if resolution.is_external:
                package_name = resolution.package_name or extract_package_name(import_path)
                ref = ExternalRef(
                    package_name=package_name,
                    name=name,
                    version=self.import_resolver.package_version(package_name),
                    resolved_path=resolution.resolved_path,
                )
                return self._with_target(
                    relationship,
                    ref.synthetic_id,
                    ref,
                    Classification.external,
                    package_name=ref.package_name,
                    version=ref.version,
                    resolved_path=ref.resolved_path,
                )
            if resolution.exists and resolution.resolved_path:
                ref = InternalFileRef(path=self._relative(resolution.resolved_path), name=name)
                return self._with_target(
                    relationship,
                    ref.synthetic_id,
                    ref,
                    Classification.internal_file,
                    resolved_path=resolution.resolved_path,
                )

        ref = UnresolvedRef(name=_lookup_name(raw_name))
        return self._with_target(relationship, ref.synthetic_id, ref, Classification.unresolved)

    def classify_all(self, relationships: list[Relationship], context: ParseContext) -> list[Relationship]:
        classified: list[Relationship] = []
        for relationship in relationships:
            result = self.classify(relationship, context)
            if result is not None:
                classified.append(result)
        return classified

    def _relative(self, path: str) -> str:
        try:
            return Path(path).relative_to(self.root_dir).as_posix()
        except ValueError:
            return Path(path).as_posix()

    @staticmethod
    def _with_target(
        relationship: Relationship,
        target: str,
        ref,
        classification: Classification,
        **metadata,
    ) -> Relationship:
        return dataclasses.replace(
            relationship,
            target=target,
            target_ref=ref,
            metadata=dataclasses.replace(
                relationship.metadata,
                classification=classification,
                original_name=relationship.metadata.original_name or relationship.target,
                **metadata,
            ),
        )
