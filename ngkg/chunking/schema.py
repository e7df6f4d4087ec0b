"""Chunk and manifest schemas.

Serialised with ``model_dump(by_alias=True)`` these produce the camelCase
shape consumed by documentation tooling (``chunkId``, ``relatedChunks``,
``totalChunks`` ...).
"""

import enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DetailLevel(enum.StrEnum):
    """Rendering depth, from least to most detailed."""

    overview = "overview"
    features = "features"
    detailed = "detailed"
    complete = "complete"

    @property
    def rank(self) -> int:
        return list(DetailLevel).index(self)

    def includes(self, other: "DetailLevel") -> bool:
        return self.rank >= other.rank


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChunkMetadata(_CamelModel):
    chunk_id: str = Field(description="Sequential id, e.g. chunk-000")
    feature: str = Field(description="Feature label, e.g. auth or 'auth (part 1/2)'")
    entities: list[str] = Field(default_factory=list, description="Ids of the entities in this chunk")
    token_count: int = Field(default=0, ge=0)
    related_chunks: list[str] = Field(default_factory=list)


class Chunk(_CamelModel):
    content: str
    metadata: ChunkMetadata


class ChunkManifest(_CamelModel):
    project_name: str
    total_entities: int = Field(ge=0)
    total_chunks: int = Field(ge=0)
    generated: str
    chunks: list[ChunkMetadata] = Field(default_factory=list)


class ChunkResult(_CamelModel):
    chunks: list[Chunk] = Field(default_factory=list)
    manifest: ChunkManifest
