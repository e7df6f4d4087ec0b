from dataclasses import dataclass, field
from typing import Any

from ngkg.graph.graph_types import KnowledgeGraph
from ngkg.graph.knowledge_graph import VisitorIssue
from ngkg.models.parse_stats import ParseStats


@dataclass
class ProjectParseResult:
    """Result of parsing an Angular project.

    Attributes:
        graph: The finished, read-only knowledge graph.
        custom_analysis: Visitor name -> that visitor's ``get_results()``.
        warnings: Non-fatal issues (duplicate ids, dropped relationships, ...).
        errors: Visitor faults and per-file failures.
        metrics: Metrics reported by visitors, namespaced by visitor name.
        stats: Statistics about the parse.
    """
    graph: KnowledgeGraph
    custom_analysis: dict[str, Any] = field(default_factory=dict)
    warnings: list[VisitorIssue] = field(default_factory=list)
    errors: list[VisitorIssue] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)
    stats: ParseStats = field(default_factory=ParseStats)
