"""
Semantic chunking of a finished knowledge graph.

Entities are grouped by feature: the first directory below the source-root
marker (``src/app/<feature>/...``). Entities outside any feature directory
fall into the ``core`` bucket. Each group becomes one Markdown chunk.
Chunks are ordered by feature name and numbered ``chunk-000``,
``chunk-001``, ... Cross-feature relationships link the source chunk to the
target chunk through ``related_chunks``.

Token counts are a coarse estimate: 0.25 tokens per character.
"""

import logging
import math
from datetime import datetime, timezone

from ngkg.chunking.markdown_renderer import MarkdownRenderer
from ngkg.chunking.schema import Chunk, ChunkManifest, ChunkMetadata, ChunkResult, DetailLevel
from ngkg.core.config import ParserSettings, settings as default_settings
from ngkg.graph.graph_types import Entity, KnowledgeGraph, Relationship

logger = logging.getLogger(__name__)

TOKEN_ESTIMATE_RATIO = 0.25
CHUNK_ID_WIDTH = 3


def estimate_tokens(content: str) -> int:
    """``round(len(content) * 0.25)``, halves rounded up."""
    return math.floor(len(content) * TOKEN_ESTIMATE_RATIO + 0.5)


def format_chunk_id(index: int) -> str:
    return f"chunk-{index:0{CHUNK_ID_WIDTH}d}"


class SemanticChunker:
    """Splits a knowledge graph into feature-coherent, cross-linked chunks.

    Example:
        result = SemanticChunker(parse_result.graph).chunk(DetailLevel.detailed)
        manifest_json = result.manifest.model_dump(by_alias=True)
    """

    def __init__(self, graph: KnowledgeGraph, settings: ParserSettings | None = None):
        self.graph = graph
        self.settings = settings or default_settings
        self.renderer = MarkdownRenderer(
            project_name=graph.metadata.project_name or self.settings.project_name,
            angular_version=graph.metadata.angular_version,
        )

    def chunk(self, level: DetailLevel | str | None = None) -> ChunkResult:
        detail = DetailLevel(level or self.settings.detail_level)
        groups = self.group_entities_by_feature()

        chunks: list[Chunk] = []
        for feature in sorted(groups):
            for label, entities, content in self._render_feature(feature, groups[feature], detail):
                chunks.append(
                    Chunk(
                        content=content,
                        metadata=ChunkMetadata(
                            chunk_id=format_chunk_id(len(chunks)),
                            feature=label,
                            entities=[entity.id for entity in entities],
                            token_count=estimate_tokens(content),
                        ),
                    )
                )

        self._link_related_chunks(chunks)
        manifest = ChunkManifest(
            project_name=self.renderer.project_name,
            total_entities=len(self.graph.entities),
            total_chunks=len(chunks),
            generated=datetime.now(timezone.utc).isoformat(),
            chunks=[chunk.metadata for chunk in chunks],
        )
        logger.info(f"Created {len(chunks)} chunks from {len(self.graph.entities)} entities at level {detail}")
        return ChunkResult(chunks=chunks, manifest=manifest)

    def feature_of(self, file_path: str) -> str:
        """Feature key for a project-relative path.

        ``src/app/auth/login.component.ts`` -> ``auth``; files directly in the
        source root, or outside it, belong to ``core``.
        """
        parts = file_path.replace("\\", "/").split("/")
        marker = self.settings.source_root_marker
        if marker in parts[:-1]:
            index = parts.index(marker)
            # the segment after the marker must be a directory, not the file itself
            if index + 2 < len(parts):
                feature = parts[index + 1]
                if self.settings.group_shared_features and feature in self.settings.shared_feature_names:
                    return "shared"
                return feature
        return self.settings.core_feature

    def group_entities_by_feature(self) -> dict[str, list[Entity]]:
        groups: dict[str, list[Entity]] = {}
        for entity in self.graph.entities.values():
            groups.setdefault(self.feature_of(entity.location.file_path), []).append(entity)
        return groups

    def _relationships_for(self, entities: list[Entity]) -> list[Relationship]:
        ids = {entity.id for entity in entities}
        return [rel for rel in self.graph.relationships if rel.source in ids]

    def _render(self, title: str, entities: list[Entity], level: DetailLevel) -> str:
        return self.renderer.render(title, entities, self._relationships_for(entities), level)

    def _render_feature(
        self,
        feature: str,
        entities: list[Entity],
        level: DetailLevel,
    ) -> list[tuple[str, list[Entity], str]]:
        """One ``(label, entities, content)`` unit, or several parts when the
        feature exceeds ``max_chunk_tokens``."""
        content = self._render(feature, entities, level)
        limit = self.settings.max_chunk_tokens
        if limit is None or estimate_tokens(content) <= limit or len(entities) < 2:
            return [(feature, entities, content)]

        per_part = max(1, self.settings.entities_per_part)
        total_parts = math.ceil(len(entities) / per_part)
        size = math.ceil(len(entities) / total_parts)
        total_parts = math.ceil(len(entities) / size)
        units = []
        for part in range(total_parts):
            part_entities = entities[part * size:(part + 1) * size]
            label = f"{feature} (part {part + 1}/{total_parts})"
            units.append((label, part_entities, self._render(label, part_entities, level)))
        logger.debug(f"Split feature {feature} into {total_parts} parts")
        return units

    def _link_related_chunks(self, chunks: list[Chunk]) -> None:
        entity_chunk: dict[str, int] = {}
        for index, chunk in enumerate(chunks):
            for entity_id in chunk.metadata.entities:
                entity_chunk[entity_id] = index

        name_index: dict[str, str] = {}
        for entity in self.graph.entities.values():
            name_index.setdefault(entity.name, entity.id)

        for rel in self.graph.relationships:
            source_index = entity_chunk.get(rel.source)
            if source_index is None:
                continue
            target_id = rel.target_entity_id or rel.target
            if target_id not in entity_chunk:
                lookup = (rel.metadata.original_name or rel.target).removeprefix("...").rsplit(".", 1)[-1]
                target_id = name_index.get(lookup)
            target_index = entity_chunk.get(target_id) if target_id else None
            if target_index is None or target_index == source_index:
                continue
            related = chunks[source_index].metadata.related_chunks
            target_chunk_id = chunks[target_index].metadata.chunk_id
            if target_chunk_id not in related:
                related.append(target_chunk_id)
