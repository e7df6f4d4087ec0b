"""Building the knowledge graph for an entire Angular project.

This module drives one full, independent parse:
  1. Validate the project root and load tsconfig.json and package.json.
  2. Discover TypeScript files (sorted, excluded directories pruned).
  3. Parse syntax trees in parallel on a thread pool.
  4. Traverse each tree in file order on the calling thread, running every
     registered visitor at every node. The calling thread is the only writer
     of the graph accumulator.
  5. Classify relationship targets, freeze the graph, run the post-pass
     entity/relationship hooks and collect visitor results.

Per-file failures are recorded and skipped. A cancel event or deadline is
checked between files.
"""

import os
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path

from ngkg.core.config import ParserSettings, settings as default_settings
from ngkg.core.exceptions import ConfigLoadError, ParseCancelledError, ProjectLoadError, SourceParseError
from ngkg.graph.entity_resolver import EntityResolver
from ngkg.graph.graph_types import GraphMetadata, KnowledgeGraph
from ngkg.graph.knowledge_graph import ParseContext, VisitorContext, VisitorIssue
from ngkg.graph.visitor import Visitor
from ngkg.graph.visitor_registry import VisitorRegistry
from ngkg.models.parse_stats import ParseStats
from ngkg.models.project_parse_result import ProjectParseResult
from ngkg.parser.extractor import get_builtin_extractors
from ngkg.parser.file_types import FileTypes, is_test_file
from ngkg.parser.references import ImportMap, build_import_map
from ngkg.parser.tree_sitter_parser import SourceFile, parse_file
from ngkg.resolver.import_resolver import ImportResolver
from ngkg.resolver.package_manifest import PackageManifest, load_package_manifest
from ngkg.resolver.tsconfig import CompilerConfig, load_tsconfig
from ngkg.utils.logging import Logger

FILE_PARSE_FAILED = "FILE_PARSE_FAILED"
CONFIG_INVALID = "CONFIG_INVALID"


class ProjectGraphBuilder:
    """Builds a knowledge graph from an Angular project directory.

    The builder owns a visitor registry preloaded with the built-in
    extractors. Third-party visitors register through ``register_visitor``
    and their results appear in ``result.custom_analysis`` by name.

    Example:
        builder = ProjectGraphBuilder("/path/to/angular-app")
        builder.register_visitor(RxJSPatternVisitor())
        result = builder.build()
        # result.graph.entities, result.graph.relationships
    """

    def __init__(
        self,
        root_dir: Path | str,
        settings: ParserSettings | None = None,
        register_builtin_extractors: bool = True,
    ):
        """Initialize the ProjectGraphBuilder.

        Args:
            root_dir: Path to the project root.
            settings: Parser settings; defaults to the environment-driven settings.
            register_builtin_extractors: Register the component, directive,
                service, module, pipe and constant extractors.
        """
        self.root_dir = Path(root_dir)
        self.settings = settings or default_settings
        self.registry = VisitorRegistry()
        self.log = Logger(__name__, {"root_dir": str(self.root_dir)})
        if register_builtin_extractors:
            for extractor in get_builtin_extractors():
                self.registry.register(extractor)

    def register_visitor(self, visitor: Visitor) -> None:
        self.registry.register(visitor)

    def unregister_visitor(self, name: str) -> bool:
        return self.registry.unregister(name)

    def build(
        self,
        cancel_event: threading.Event | None = None,
        deadline: float | None = None,
        timeout: float | None = None,
    ) -> ProjectParseResult:
        """Parse the whole project into a knowledge graph.

        Args:
            cancel_event: Set it from another thread to stop the parse.
            deadline: Absolute ``time.monotonic()`` value after which the parse stops.
            timeout: Seconds from now after which the parse stops.

        Returns:
            ProjectParseResult with the graph, visitor results, issues and stats.

        Raises:
            ProjectLoadError: If the root is missing, holds no TypeScript
                files, or an explicit tsconfig cannot be loaded.
            ParseCancelledError: If cancelled or past the deadline between files.
        """
        started = time.monotonic()
        if timeout is not None:
            timeout_deadline = started + timeout
            deadline = timeout_deadline if deadline is None else min(deadline, timeout_deadline)

        if not self.root_dir.exists():
            raise ProjectLoadError("Project root does not exist", root_dir=str(self.root_dir))
        if not self.root_dir.is_dir():
            raise ProjectLoadError("Project root is not a directory", root_dir=str(self.root_dir))
        root = self.root_dir.resolve()

        stats = ParseStats()
        load_warnings: list[VisitorIssue] = []
        compiler_config = self._load_compiler_config(root, load_warnings)
        manifest = self._load_manifest(root, load_warnings)

        files = self._discover_files(root, stats)
        if not files:
            raise ProjectLoadError("No TypeScript files found", root_dir=str(root))
        stats.total_files = len(files)

        resolver = ImportResolver(compiler_config, manifest)
        context = ParseContext(root, self.settings, resolver)
        for issue in load_warnings:
            context.add_warning(issue)
        self.registry.reset_all(context)

        self.log.info(f"Parsing {len(files)} TypeScript files", {"visitors": len(self.registry)})
        self._traverse_files(root, files, context, stats, cancel_event, deadline)

        entities = context.graph.entities
        raw_relationships = context.graph.relationships
        relationships = EntityResolver(entities, resolver, root).classify_all(raw_relationships, context)
        stats.dropped_relationships = len(raw_relationships) - len(relationships)

        graph = KnowledgeGraph.build(
            entities,
            relationships,
            GraphMetadata(
                project_name=self.settings.project_name,
                total_entities=len(entities),
                total_relationships=len(relationships),
                timestamp=datetime.now(timezone.utc).isoformat(),
                angular_version=manifest.angular_version() if manifest else None,
                root_dir=str(root),
            ),
        )
        self.registry.run_graph_hooks(graph, context)

        stats.total_entities = len(graph.entities)
        stats.total_relationships = len(graph.relationships)
        stats.resolver_cache_hits = resolver.stats.cache_hits
        stats.resolver_cache_misses = resolver.stats.cache_misses
        stats.duration_seconds = time.monotonic() - started

        self.log.info(
            f"Finished building project graph: "
            f"{stats.parsed_files} files parsed, "
            f"{stats.total_entities} entities, "
            f"{stats.total_relationships} relationships, "
            f"{stats.skipped_files} skipped, "
            f"{stats.failed_files} failed"
        )

        return ProjectParseResult(
            graph=graph,
            custom_analysis=self.registry.get_all_results(context),
            warnings=list(context.warnings),
            errors=list(context.errors),
            metrics=dict(context.metrics),
            stats=stats,
        )

    def _load_compiler_config(self, root: Path, warnings: list[VisitorIssue]) -> CompilerConfig | None:
        explicit = self.settings.tsconfig_path
        if explicit is not None:
            path = explicit if explicit.is_absolute() else root / explicit
            if not path.is_file():
                raise ProjectLoadError("Configured tsconfig not found", root_dir=str(root), config_path=str(path))
            try:
                return load_tsconfig(root, path)
            except ConfigLoadError as e:
                raise ProjectLoadError(
                    f"Configured tsconfig could not be loaded: {e.message}",
                    root_dir=str(root),
                    config_path=str(path),
                ) from e

        try:
            return load_tsconfig(root)
        except ConfigLoadError as e:
            warnings.append(
                VisitorIssue(code=CONFIG_INVALID, message=f"Ignoring tsconfig: {e}", file_path=e.config_path)
            )
            return None

    def _load_manifest(self, root: Path, warnings: list[VisitorIssue]) -> PackageManifest | None:
        try:
            return load_package_manifest(root)
        except ConfigLoadError as e:
            warnings.append(
                VisitorIssue(code=CONFIG_INVALID, message=f"Ignoring package.json: {e}", file_path=e.config_path)
            )
            return None

    def _discover_files(self, root: Path, stats: ParseStats) -> list[Path]:
        """Sorted TypeScript sources under ``root``.

        Declaration files, excluded directories and (unless enabled) test
        files are skipped; directories deeper than ``max_depth`` are not entered.
        """
        excluded = set(self.settings.excluded_dirs)
        files: list[Path] = []
        for dir_path, dir_names, file_names in os.walk(root):
            current = Path(dir_path)
            depth = len(current.relative_to(root).parts)
            if depth >= self.settings.max_depth:
                dir_names[:] = []
            else:
                dir_names[:] = sorted(d for d in dir_names if d not in excluded)
            for file_name in sorted(file_names):
                path = current / file_name
                file_type = FileTypes.from_path(path)
                if file_type in (FileTypes.TYPESCRIPT, FileTypes.TSX):
                    if is_test_file(path) and not self.settings.include_tests:
                        stats.skipped_files += 1
                        continue
                    files.append(path)
                elif file_type == FileTypes.DECLARATION:
                    stats.skipped_files += 1
        return sorted(files)

    @staticmethod
    def _load_file(path: Path, root: Path) -> tuple[SourceFile, ImportMap]:
        source = parse_file(path, root)
        return source, build_import_map(source)

    def _traverse_files(
        self,
        root: Path,
        files: list[Path],
        context: ParseContext,
        stats: ParseStats,
        cancel_event: threading.Event | None,
        deadline: float | None,
    ) -> None:
        executor = ThreadPoolExecutor(max_workers=max(1, self.settings.max_workers))
        try:
            futures: list[Future] = [executor.submit(self._load_file, path, root) for path in files]
            for path, future in zip(files, futures):
                self._check_cancelled(cancel_event, deadline, stats.parsed_files)
                relative = path.relative_to(root).as_posix()
                try:
                    source, import_map = future.result()
                except (SourceParseError, OSError) as e:
                    stats.failed_files += 1
                    stats.errors.append(f"{relative}: {e}")
                    context.add_error(
                        VisitorIssue(
                            code=FILE_PARSE_FAILED,
                            message=f"Failed to parse {relative}: {e}",
                            file_path=relative,
                            severity="error",
                        )
                    )
                    continue

                visitor_context = VisitorContext(context, source, import_map)
                self.registry.run_before_parse(visitor_context)
                nodes = self.registry.traverse(source.root, visitor_context)
                stats.nodes_visited += nodes
                self.log.bind(file=relative).debug("Traversed file", {"nodes": nodes})
                self.registry.run_after_parse(visitor_context)
                stats.parsed_files += 1
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    @staticmethod
    def _check_cancelled(
        cancel_event: threading.Event | None,
        deadline: float | None,
        files_processed: int,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ParseCancelledError(files_processed, reason="cancelled")
        if deadline is not None and time.monotonic() >= deadline:
            raise ParseCancelledError(files_processed, reason="deadline")
