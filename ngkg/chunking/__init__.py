from ngkg.chunking.schema import Chunk, ChunkManifest, ChunkMetadata, ChunkResult, DetailLevel
from ngkg.chunking.semantic_chunker import SemanticChunker

__all__ = [
    "Chunk",
    "ChunkManifest",
    "ChunkMetadata",
    "ChunkResult",
    "DetailLevel",
    "SemanticChunker",
]
