"""
Tests for VisitorRegistry ordering, membership and fault isolation.
"""

import pytest

from ngkg.graph.project_graph_builder import ProjectGraphBuilder
from ngkg.graph.visitor import BaseVisitor
from ngkg.graph.visitor_registry import VISITOR_ENTITY_ERROR, VISITOR_FAILED, VisitorRegistry


class RecordingVisitor(BaseVisitor):
    """Appends its name to a shared log at every program node."""

    def __init__(self, name: str, priority: int, log: list[str]):
        self.name = name
        self.priority = priority
        super().__init__()
        self.log = log
        self.nodes = 0

    def visit_node(self, node, context):
        self.nodes += 1
        if node.type == "program":
            self.log.append(self.name)

    def get_results(self):
        return {"nodes": self.nodes}

    def reset(self):
        self.nodes = 0


class ExplodingVisitor(BaseVisitor):
    name = "exploding"
    priority = 90

    def visit_node(self, node, context):
        if node.type == "class_declaration":
            raise RuntimeError("boom")


class FaultyVisitor(BaseVisitor):
    """Raises from one named hook and behaves everywhere else."""

    name = "faulty"
    priority = 20

    def __init__(self, hook: str):
        super().__init__()
        self.hook = hook

    def _maybe_fail(self, hook: str):
        if hook == self.hook:
            raise RuntimeError(f"boom in {hook}")

    def visit_node(self, node, context):
        self._maybe_fail("visit_node")

    def on_before_parse(self, context):
        self._maybe_fail("on_before_parse")

    def on_after_parse(self, context):
        self._maybe_fail("on_after_parse")

    def visit_entity(self, entity, context):
        self._maybe_fail("visit_entity")

    def visit_relationship(self, relationship, context):
        self._maybe_fail("visit_relationship")

    def get_results(self):
        self._maybe_fail("get_results")
        return {"ok": True}

    def reset(self):
        self._maybe_fail("reset")


class TestRegistration:

    def test_descending_priority_with_stable_ties(self):
        log: list[str] = []
        registry = VisitorRegistry()
        registry.register(RecordingVisitor("low", 10, log))
        registry.register(RecordingVisitor("first-tie", 50, log))
        registry.register(RecordingVisitor("high", 100, log))
        registry.register(RecordingVisitor("second-tie", 50, log))

        assert [v.name for v in registry.visitors()] == ["high", "first-tie", "second-tie", "low"]

    def test_duplicate_names_are_kept_and_unregistered_together(self):
        registry = VisitorRegistry()
        registry.register(RecordingVisitor("same", 50, []))
        registry.register(RecordingVisitor("same", 60, []))

        assert [v.priority for v in registry.visitors()] == [60, 50]
        assert registry.unregister("same") is True
        assert len(registry) == 0

    def test_non_visitor_rejected(self):
        with pytest.raises(TypeError):
            VisitorRegistry().register(object())

    def test_priority_out_of_range(self):
        with pytest.raises(ValueError):
            RecordingVisitor("bad", 101, [])

    def test_unregister(self):
        registry = VisitorRegistry()
        registry.register(RecordingVisitor("a", 50, []))

        assert registry.unregister("a") is True
        assert registry.unregister("a") is False
        assert len(registry) == 0


class TestTraversal:

    def test_visitors_called_in_priority_order(self, extract):
        log: list[str] = []
        extract(
            "export const x = 1;",
            visitors=[RecordingVisitor("late", 5, log), RecordingVisitor("early", 95, log)],
        )

        assert log == ["early", "late"]

    def test_failing_visitor_does_not_stop_others(self, extract):
        log: list[str] = []
        recorder = RecordingVisitor("recorder", 10, log)
        context = extract(
            "@Injectable() export class Survivor {}",
            visitors=[ExplodingVisitor(), recorder],
        )

        assert "service:src/app/feature/example.ts:Survivor" in context.graph.entities
        assert log == ["recorder"]
        assert recorder.nodes > 0
        assert [e.code for e in context.errors] == [VISITOR_FAILED]
        error = context.errors[0]
        assert error.visitor == "exploding"
        assert error.file_path == "src/app/feature/example.ts"
        assert error.line == 1

    @pytest.mark.parametrize("hook", ["on_before_parse", "on_after_parse"])
    def test_file_hook_fault_is_recorded(self, extract, hook):
        context = extract("@Injectable() export class Survivor {}", visitors=[FaultyVisitor(hook)])

        assert len(context.graph.entities) == 1
        [error] = context.errors
        assert error.code == VISITOR_FAILED
        assert error.visitor == "faulty"
        assert hook in error.message


LIFECYCLE_PROJECT = {
    "src/app/data.service.ts": """
        @Injectable({ providedIn: 'root' })
        export class DataService {
          constructor(private http: HttpClient) {}
        }
    """,
}


class TestLifecycleFaults:
    """Faults outside traversal never escape a build."""

    @pytest.mark.parametrize("hook", ["reset", "get_results"])
    def test_result_hook_fault(self, write_project, test_settings, hook):
        builder = ProjectGraphBuilder(write_project(LIFECYCLE_PROJECT), settings=test_settings)
        builder.register_visitor(FaultyVisitor(hook))

        result = builder.build()

        assert len(result.graph.entities) == 1
        assert [(e.code, e.visitor) for e in result.errors] == [(VISITOR_FAILED, "faulty")]
        expected = None if hook == "get_results" else {"ok": True}
        assert result.custom_analysis["faulty"] == expected
        assert result.custom_analysis["service-extractor"] == {"entities": 1, "relationships": 1}

    @pytest.mark.parametrize("hook", ["visit_entity", "visit_relationship"])
    def test_graph_hook_fault(self, write_project, test_settings, hook):
        builder = ProjectGraphBuilder(write_project(LIFECYCLE_PROJECT), settings=test_settings)
        builder.register_visitor(FaultyVisitor(hook))

        result = builder.build()

        assert len(result.graph.relationships) == 1
        [error] = result.errors
        assert error.code == VISITOR_ENTITY_ERROR
        assert error.visitor == "faulty"
