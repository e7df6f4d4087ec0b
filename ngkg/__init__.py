"""Angular knowledge-graph extraction and semantic chunking."""

from ngkg.graph.project_graph_builder import ProjectGraphBuilder
from ngkg.chunking.semantic_chunker import SemanticChunker

__all__ = ["ProjectGraphBuilder", "SemanticChunker"]
