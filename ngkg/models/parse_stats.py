from dataclasses import dataclass, field


@dataclass
class ParseStats:
    """Statistics collected during a project parse.

    Attributes:
        total_files: Number of TypeScript files discovered.
        parsed_files: Number of files successfully traversed.
        failed_files: Number of files that could not be read or parsed.
        skipped_files: Number of files skipped (declarations, tests, excluded dirs).
        nodes_visited: Total syntax nodes visited across all files.
        total_entities: Entities in the finished graph.
        total_relationships: Relationships in the finished graph.
        dropped_relationships: Relationships dropped during classification.
        resolver_cache_hits: Import resolution cache hits.
        resolver_cache_misses: Import resolution cache misses.
        duration_seconds: Wall-clock time of the parse.
        errors: Error messages for failed files.
    """
    total_files: int = 0
    parsed_files: int = 0
    failed_files: int = 0
    skipped_files: int = 0
    nodes_visited: int = 0
    total_entities: int = 0
    total_relationships: int = 0
    dropped_relationships: int = 0
    resolver_cache_hits: int = 0
    resolver_cache_misses: int = 0
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)
