"""
Tests for SecurityVisitor
"""

from ngkg.graph.project_graph_builder import ProjectGraphBuilder
from ngkg.visitors import SecurityVisitor

PREVIEW_COMPONENT = """
@Component({ selector: 'app-preview', template: '' })
export class PreviewComponent {
  private endpoint = 'http://api.example.com/v1';
  private local = 'http://localhost:4200';
  private password = 'hunter2-secret';

  constructor(private sanitizer: DomSanitizer, private el: ElementRef) {}

  render(html: string) {
    this.el.nativeElement.innerHTML = html;
    return this.sanitizer.bypassSecurityTrustHtml(html);
  }

  run(code: string) {
    eval(code);
    return new Function('a', code);
  }
}
"""


def _patterns(results):
    return [(p["pattern"], p["context"]) for p in results["patterns"]]


class TestSecurityVisitor:
    """Test suite for SecurityVisitor."""

    def test_class_body_patterns(self, extract):
        visitor = SecurityVisitor()
        context = extract(PREVIEW_COMPONENT, "src/app/preview/preview.component.ts", visitors=[visitor])

        results = visitor.get_results()
        assert sorted(_patterns(results)) == sorted([
            ("http_url", "http://api.example.com/v1"),
            ("potential_secret", "password_pattern"),
            ("innerHTML", "direct assignment"),
            ("bypassSecurityTrust", "this.sanitizer.bypassSecurityTrustHtml"),
            ("eval", None),
            ("Function", None),
        ])
        assert results["affected_entities"] == ["component:src/app/preview/preview.component.ts:PreviewComponent"]
        assert results["by_pattern"]["potential_secret"] == 1
        assert context.metrics["security.total_patterns"] == 6

    def test_xsrf_opt_out(self, extract):
        visitor = SecurityVisitor()
        extract(
            """
            @Injectable({ providedIn: 'root' })
            export class HttpSetup {
              providers() { return [provideHttpClient(withNoXsrfProtection())]; }
            }
            """,
            visitors=[visitor],
        )

        assert [p["pattern"] for p in visitor.get_results()["patterns"]] == ["xsrf_disabled"]

    def test_code_outside_entities_is_ignored(self, extract):
        visitor = SecurityVisitor()
        extract("export class Plain { go(s) { eval(s); } }", visitors=[visitor])

        assert visitor.get_results()["total_patterns"] == 0

    def test_template_binding(self, write_project, test_settings):
        root = write_project({
            "src/app/note/note.component.ts": """
                @Component({ selector: 'app-note', template: '<div [innerHTML]="body"></div>' })
                export class NoteComponent {}
            """,
        })
        builder = ProjectGraphBuilder(root, settings=test_settings)
        builder.register_visitor(SecurityVisitor())

        result = builder.build()

        [pattern] = result.custom_analysis["security"]["patterns"]
        assert pattern["pattern"] == "innerHTML"
        assert pattern["context"] == "template binding"
        assert pattern["file_path"] == "src/app/note/note.component.ts"
        assert result.metrics["security.pattern_innerHTML"] == 1

    def test_reset(self, extract):
        visitor = SecurityVisitor()
        extract(PREVIEW_COMPONENT, visitors=[visitor])
        visitor.reset()

        assert visitor.get_results() == {
            "patterns": [], "total_patterns": 0, "by_pattern": {}, "affected_entities": [],
        }
