"""
Tests for component template analysis.
"""

from ngkg.graph.graph_types import TemplateBinding
from ngkg.parser.template_analyzer import analyze_template, component_template_analysis

ORDERS_TEMPLATE = """
<section class="orders" #panel>
  <app-order-row
    *ngFor="let order of orders; trackBy: byId"
    [order]="order"
    [attr.aria-label]="order.title"
    [class.active]="order.id === selected"
    (select)="open(order)">
  </app-order-row>
  <input [(ngModel)]="query" [ngClass]="{ dim: loading }" />
  <p>{{ total | currency:'EUR' }} - {{ updated | date }} {{ a || b }}</p>
</section>
"""


class TestAnalyzeTemplate:
    """Test suite for analyze_template."""

    def test_usage(self):
        analysis = analyze_template(ORDERS_TEMPLATE)

        assert analysis.used_components == ("app-order-row",)
        assert analysis.used_directives == ("ngClass", "ngFor", "ngModel")
        assert analysis.used_pipes == ("currency", "date")
        assert analysis.template_refs == ("panel",)
        assert analysis.interpolations == ("total | currency:'EUR'", "updated | date", "a || b")

    def test_bindings(self):
        analysis = analyze_template(ORDERS_TEMPLATE)

        kinds = [(b.kind, b.name) for b in analysis.bindings]
        assert kinds == [
            ("structural", "ngFor"),
            ("property", "order"),
            ("attribute", "aria-label"),
            ("class", "active"),
            ("event", "select"),
            ("two-way", "ngModel"),
            ("property", "ngClass"),
        ]
        assert analysis.bindings[4] == TemplateBinding(kind="event", name="select", expression="open(order)", line=8)

    def test_complexity_grows_with_nesting_and_bindings(self):
        flat = analyze_template("<div></div>")
        nested = analyze_template("<div><span [title]=\"t\"></span></div>")

        assert flat.complexity == 1
        assert nested.complexity == 1 + 2 + 1

    def test_plain_markup(self):
        analysis = analyze_template("<p>Hello</p>")

        assert analysis.used_components == ()
        assert analysis.bindings == ()
        assert analysis.used_pipes == ()


class TestComponentTemplate:

    def test_external_template(self, write_project):
        root = write_project({
            "src/app/card/card.component.ts": "",
            "src/app/card/card.component.html": "<app-avatar></app-avatar>",
        })

        analysis = component_template_analysis(
            root / "src/app/card/card.component.ts", None, "./card.component.html"
        )

        assert analysis.used_components == ("app-avatar",)

    def test_inline_template_wins(self, write_project):
        root = write_project({"src/a.component.ts": "", "src/a.component.html": "<app-x></app-x>"})

        analysis = component_template_analysis(root / "src/a.component.ts", "<app-y></app-y>", "./a.component.html")

        assert analysis.used_components == ("app-y",)

    def test_missing_template_file(self, tmp_path):
        assert component_template_analysis(tmp_path / "a.component.ts", None, "./gone.html") is None
        assert component_template_analysis(tmp_path / "a.component.ts", None, None) is None
