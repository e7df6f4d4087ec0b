"""
Tests for the built-in entity extractors.

Each test parses a real TypeScript snippet and inspects the entities and
raw (unclassified) relationships the extractors accumulate.
"""

from ngkg.graph.graph_types import (
    ComponentEntity,
    ConstantEntity,
    DirectiveEntity,
    EntityType,
    ModuleEntity,
    PipeEntity,
    RelationType,
    ServiceEntity,
)

SERVICE_PATH = "src/app/auth/auth.service.ts"
COMPONENT_PATH = "src/app/users/user-list.component.ts"


def _relationships(context, relation_type=None):
    return [
        rel for rel in context.graph.relationships
        if relation_type is None or rel.type == relation_type
    ]


class TestServiceExtractor:
    """Test suite for @Injectable extraction."""

    def test_service_without_dependencies(self, extract):
        """A root-provided service with no constructor yields one entity and no injects edges."""
        context = extract(
            """
            import { Injectable } from '@angular/core';

            @Injectable({ providedIn: 'root' })
            export class AuthService {
              login(): void {}
            }
            """,
            SERVICE_PATH,
        )

        entities = list(context.graph.entities.values())
        assert len(entities) == 1
        service = entities[0]
        assert isinstance(service, ServiceEntity)
        assert service.id == f"service:{SERVICE_PATH}:AuthService"
        assert service.type == EntityType.service
        assert service.provided_in == "root"
        assert service.dependencies == ()
        assert _relationships(context, RelationType.injects) == []

    def test_service_modifiers_and_decorators(self, extract):
        context = extract(
            """
            /** Handles sessions. */
            @Injectable({ providedIn: 'root' })
            export class SessionService {}
            """,
            SERVICE_PATH,
        )

        service = context.graph.get_entity(f"service:{SERVICE_PATH}:SessionService")
        assert service is not None
        assert service.modifiers == ("export",)
        assert service.documentation == "Handles sessions."
        assert [d.name for d in service.decorators] == ["Injectable"]
        assert service.decorators[0].arguments == {"providedIn": "root"}

    def test_undecorated_class_is_ignored(self, extract):
        context = extract("export class PlainHelper { run() {} }")
        assert context.graph.entities == {}

    def test_uncalled_decorator_is_skipped(self, extract):
        context = extract("@Injectable export class Broken {}")
        assert context.graph.entities == {}


class TestDependencyInjection:
    """Test suite for constructor and inject() dependencies."""

    def test_constructor_parameter_injects(self, extract):
        """A typed constructor parameter becomes an injects edge to the type name."""
        context = extract(
            """
            import { Component } from '@angular/core';
            import { UserService } from './user.service';

            @Component({ selector: 'app-user-list', template: '' })
            export class UserListComponent {
              constructor(private userService: UserService) {}
            }
            """,
            COMPONENT_PATH,
        )

        component_id = f"component:{COMPONENT_PATH}:UserListComponent"
        injects = _relationships(context, RelationType.injects)
        assert len(injects) == 1
        rel = injects[0]
        assert rel.source == component_id
        assert rel.target == "UserService"
        assert rel.metadata.optional is False
        assert rel.metadata.import_path == "./user.service"
        assert rel.metadata.property_name == "userService"

    def test_parameter_flags_and_inject_token(self, extract):
        context = extract(
            """
            @Injectable()
            export class ApiClient {
              constructor(
                @Optional() private logger: Logger,
                @Inject(API_URL) private url: string,
                @Self() @SkipSelf() private cache: CacheService | null,
                private retries: number,
              ) {}
            }
            """
        )

        service = next(iter(context.graph.entities.values()))
        by_name = {d.name: d for d in service.dependencies}
        assert set(by_name) == {"logger", "url", "cache"}
        assert by_name["logger"].optional is True
        assert by_name["url"].type == "API_URL"
        assert by_name["cache"].type == "CacheService"
        assert by_name["cache"].self is True
        assert by_name["cache"].skip_self is True

    def test_inject_forward_ref(self, extract):
        context = extract(
            """
            @Injectable()
            export class Cart {
              constructor(
                @Inject(forwardRef(() => Store)) private store: any,
                @Inject(forwardRef(() => { return Tokens.API; })) private api: any,
              ) {}
            }
            """
        )

        service = next(iter(context.graph.entities.values()))
        assert [d.type for d in service.dependencies] == ["Store", "API"]
        assert {rel.target for rel in _relationships(context, RelationType.injects)} == {"Store", "API"}

    def test_inject_function_dependencies(self, extract):
        context = extract(
            """
            @Component({ selector: 'app-x', template: '' })
            export class XComponent {
              private readonly http = inject(HttpClient);
              private readonly store = inject(Store, { optional: true });
            }
            """
        )

        injects = {rel.target: rel for rel in _relationships(context, RelationType.injects)}
        assert set(injects) == {"HttpClient", "Store"}
        assert injects["Store"].metadata.optional is True
        assert injects["HttpClient"].metadata.optional is False
        assert injects["HttpClient"].metadata.injection_method == "inject-function"


class TestComponentExtractor:
    """Test suite for @Component extraction."""

    def test_component_metadata(self, extract):
        context = extract(
            """
            @Component({
              selector: 'app-profile',
              standalone: true,
              templateUrl: './profile.component.html',
              styleUrls: ['./profile.component.scss'],
              changeDetection: ChangeDetectionStrategy.OnPush,
              imports: [CommonModule, SharedModule],
              providers: [ProfileStore],
            })
            export class ProfileComponent implements OnInit, OnDestroy {
              @Input() userId: string;
              @Input({ alias: 'mode', required: true }) viewMode: string;
              @Output() saved = new EventEmitter<string>();
              name = input<string>();
              count = input.required<number>();
              closed = output<void>();
              value = model(0);

              ngOnInit() {}
              ngOnDestroy() {}
            }
            """,
            "src/app/profile/profile.component.ts",
        )

        component = next(iter(context.graph.entities.values()))
        assert isinstance(component, ComponentEntity)
        assert component.selector == "app-profile"
        assert component.standalone is True
        assert component.template_url == "./profile.component.html"
        assert component.style_urls == ("./profile.component.scss",)
        assert component.change_detection == "OnPush"
        assert component.imports == ("CommonModule", "SharedModule")
        assert component.providers == ("ProfileStore",)
        assert component.lifecycle == ("ngOnInit", "ngOnDestroy")

        inputs = {binding.name: binding for binding in component.inputs}
        assert set(inputs) == {"userId", "viewMode", "name", "count", "value"}
        assert inputs["viewMode"].alias == "mode"
        assert inputs["viewMode"].required is True
        assert inputs["count"].required is True
        assert inputs["count"].kind == "input"
        assert inputs["userId"].type == "string"

        outputs = {binding.name for binding in component.outputs}
        assert outputs == {"saved", "closed", "valueChange"}
        assert set(component.signals) == {"name", "count", "closed", "value"}

    def test_component_relationships(self, extract):
        context = extract(
            """
            @Component({
              selector: 'app-shell',
              standalone: true,
              imports: [HeaderComponent],
              providers: [{ provide: Logger, useClass: ConsoleLogger }],
              viewProviders: [LocalStore],
            })
            export class ShellComponent {}
            """
        )

        edges = {(rel.type, rel.target) for rel in context.graph.relationships}
        assert (RelationType.imports, "HeaderComponent") in edges
        assert (RelationType.provides, "Logger") in edges
        assert (RelationType.provides, "ConsoleLogger") in edges
        assert (RelationType.provides, "LocalStore") in edges

    def test_same_token_in_providers_and_view_providers(self, extract):
        context = extract(
            """
            @Component({ selector: 'app-cart', providers: [Store], viewProviders: [Store] })
            export class CartComponent {}
            """
        )

        provides = _relationships(context, RelationType.provides)
        assert sorted(rel.metadata.property_name for rel in provides) == ["providers", "viewProviders"]
        assert len({rel.id for rel in provides}) == 2

    def test_inline_template_and_styles(self, extract):
        context = extract(
            """
            @Component({
              selector: 'app-badge',
              template: '<app-icon [name]="icon"></app-icon>{{ label | uppercase }}',
              styles: [':host { display: block; }'],
            })
            export class BadgeComponent {}
            """
        )

        component = next(iter(context.graph.entities.values()))
        assert component.template.startswith("<app-icon")
        assert component.styles == (":host { display: block; }",)
        assert component.template_analysis.used_components == ("app-icon",)
        assert component.template_analysis.used_pipes == ("uppercase",)

    def test_template_analysis_can_be_disabled(self, extract, test_settings):
        test_settings.analyze_templates = False
        context = extract("@Component({ selector: 'x-a', template: '<x-b></x-b>' }) export class A {}")

        component = next(iter(context.graph.entities.values()))
        assert component.template == "<x-b></x-b>"
        assert component.template_analysis is None


class TestOtherExtractors:
    """Test suite for directive, module, pipe and constant extraction."""

    def test_directive(self, extract):
        context = extract(
            """
            @Directive({ selector: '[appHighlight]', standalone: true })
            export class HighlightDirective {
              @Input('appHighlight') color = 'yellow';
            }
            """
        )

        directive = next(iter(context.graph.entities.values()))
        assert isinstance(directive, DirectiveEntity)
        assert directive.selector == "[appHighlight]"
        assert directive.inputs[0].alias == "appHighlight"

    def test_module_relationships(self, extract):
        context = extract(
            """
            @NgModule({
              declarations: [AppComponent, [NavComponent]],
              imports: [BrowserModule, RouterModule.forRoot(routes)],
              exports: [NavComponent],
              providers: [AuthService, ...SHARED_PROVIDERS],
              bootstrap: [AppComponent],
            })
            export class AppModule {}
            """,
            "src/app/app.module.ts",
        )

        module = next(iter(context.graph.entities.values()))
        assert isinstance(module, ModuleEntity)
        assert module.declarations == ("AppComponent", "NavComponent")
        assert module.imports == ("BrowserModule", "RouterModule")
        assert module.exports == ("NavComponent",)
        assert module.providers == ("AuthService", "...SHARED_PROVIDERS")
        assert module.bootstrap == ("AppComponent",)

        edges = {(rel.type, rel.target) for rel in context.graph.relationships}
        assert (RelationType.declares, "AppComponent") in edges
        assert (RelationType.declares, "NavComponent") in edges
        assert (RelationType.imports, "RouterModule") in edges
        assert (RelationType.exports, "NavComponent") in edges
        assert (RelationType.provides, "AuthService") in edges
        assert (RelationType.provides, "SHARED_PROVIDERS") in edges
        assert (RelationType.provides, "...SHARED_PROVIDERS") not in edges
        assert (RelationType.uses, "AppComponent") in edges

    def test_pipe_defaults_to_pure(self, extract):
        context = extract(
            """
            @Pipe({ name: 'truncate', standalone: true })
            export class TruncatePipe {}

            @Pipe({ name: 'live', pure: false })
            export class LivePipe {}
            """
        )

        pipes = {entity.name: entity for entity in context.graph.entities.values()}
        assert isinstance(pipes["TruncatePipe"], PipeEntity)
        assert pipes["TruncatePipe"].pipe_name == "truncate"
        assert pipes["TruncatePipe"].pure is True
        assert pipes["LivePipe"].pure is False

    def test_pipe_without_name_is_skipped(self, extract):
        context = extract("@Pipe({}) export class NamelessPipe {}")
        assert context.graph.entities == {}

    def test_constants(self, extract):
        context = extract(
            """
            export const API_URL = new InjectionToken<string>('api.url');
            export const APP_PROVIDERS: Provider[] = [AuthService, { provide: API_URL, useValue: BASE }];
            export const routerProviders = provideRouter(routes);
            export const appConfig: ApplicationConfig = { providers: [provideHttpClient()] };
            export const notAngular = 42;
            const INTERNAL_CONFIG = {};
            """,
            "src/app/app.config.ts",
        )

        constants = {entity.name: entity for entity in context.graph.entities.values()}
        assert set(constants) == {"API_URL", "APP_PROVIDERS", "routerProviders", "appConfig"}
        assert all(isinstance(entity, ConstantEntity) for entity in constants.values())
        assert constants["API_URL"].constant_type == "injection_token"
        assert constants["API_URL"].token_type == "string"
        assert constants["API_URL"].value == "api.url"
        assert constants["routerProviders"].constant_type == "provider_function"
        assert constants["APP_PROVIDERS"].constant_type == "const"

        edges = {(rel.source.rsplit(":", 1)[-1], rel.type, rel.target) for rel in context.graph.relationships}
        assert ("APP_PROVIDERS", RelationType.provides, "AuthService") in edges
        assert ("APP_PROVIDERS", RelationType.provides, "API_URL") in edges
        assert ("APP_PROVIDERS", RelationType.uses, "BASE") in edges
        assert constants["appConfig"].token_type == "ApplicationConfig"

    def test_duplicate_entity_id_is_reported(self, extract):
        context = extract(
            """
            @Injectable() export class Twin {}
            @Injectable() export class Twin {}
            """
        )

        assert len(context.graph.entities) == 1
        assert [w.code for w in context.warnings] == ["DUPLICATE_ENTITY_ID"]
