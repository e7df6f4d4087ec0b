"""
Tests for SemanticChunker and the Markdown renderer.
"""

import pytest

from ngkg.chunking import DetailLevel, SemanticChunker
from ngkg.chunking.semantic_chunker import estimate_tokens
from ngkg.graph.graph_types import (
    Classification,
    ComponentEntity,
    Dependency,
    EntityRef,
    GraphMetadata,
    KnowledgeGraph,
    Relationship,
    RelationshipMetadata,
    RelationType,
    ServiceEntity,
    SourceLocation,
)


def _location(path: str) -> SourceLocation:
    return SourceLocation(file_path=path, start=0, end=10, line=1, column=1)


def _service(name: str, path: str, **fields) -> ServiceEntity:
    return ServiceEntity(id=f"service:{path}:{name}", name=name, location=_location(path), **fields)


def _component(name: str, path: str, **fields) -> ComponentEntity:
    return ComponentEntity(id=f"component:{path}:{name}", name=name, location=_location(path), **fields)


def _injects(source_id: str, target_id: str, name: str) -> Relationship:
    return Relationship(
        id=f"{source_id}:injects:{name}",
        type=RelationType.injects,
        source=source_id,
        target=target_id,
        metadata=RelationshipMetadata(classification=Classification.internal, original_name=name),
        target_ref=EntityRef(target_id),
    )


def _graph(entities, relationships=()) -> KnowledgeGraph:
    return KnowledgeGraph.build(
        {entity.id: entity for entity in entities},
        list(relationships),
        GraphMetadata(
            project_name="Shop",
            total_entities=len(entities),
            total_relationships=len(relationships),
            timestamp="2024-01-01T00:00:00+00:00",
            angular_version="17.0.0",
        ),
    )


@pytest.fixture
def two_feature_graph() -> KnowledgeGraph:
    """Three auth and three products entities; products injects an auth service."""
    auth_service = _service("AuthService", "src/app/auth/auth.service.ts", provided_in="root")
    catalog = _component(
        "CatalogComponent",
        "src/app/products/catalog.component.ts",
        selector="app-catalog",
        dependencies=(Dependency(name="auth", type="AuthService"),),
    )
    entities = [
        auth_service,
        _component("LoginComponent", "src/app/auth/login/login.component.ts", selector="app-login"),
        _service("SessionStore", "src/app/auth/session.store.ts"),
        catalog,
        _service("ProductService", "src/app/products/product.service.ts"),
        _component("ProductCardComponent", "src/app/products/card/product-card.component.ts"),
    ]
    return _graph(entities, [_injects(catalog.id, auth_service.id, "AuthService")])


class TestSemanticChunker:
    """Test suite for SemanticChunker."""

    def test_cross_feature_links(self, two_feature_graph, test_settings):
        result = SemanticChunker(two_feature_graph, test_settings).chunk()

        features = [chunk.metadata.feature for chunk in result.chunks]
        assert features == ["auth", "products"]
        auth_chunk, products_chunk = result.chunks
        assert auth_chunk.metadata.chunk_id == "chunk-000"
        assert products_chunk.metadata.chunk_id == "chunk-001"
        assert products_chunk.metadata.related_chunks == ["chunk-000"]
        assert auth_chunk.metadata.related_chunks == []

    def test_chunks_partition_entities(self, two_feature_graph, test_settings):
        result = SemanticChunker(two_feature_graph, test_settings).chunk()

        chunked = [entity_id for chunk in result.chunks for entity_id in chunk.metadata.entities]
        assert sorted(chunked) == sorted(two_feature_graph.entities)
        assert len(chunked) == len(set(chunked))
        assert result.manifest.total_entities == 6
        assert result.manifest.total_chunks == 2
        assert result.manifest.project_name == "Shop"

    def test_token_count_matches_content(self, two_feature_graph, test_settings):
        result = SemanticChunker(two_feature_graph, test_settings).chunk()

        for chunk in result.chunks:
            assert chunk.metadata.token_count == estimate_tokens(chunk.content)

    def test_tokens_monotonic_in_detail_level(self, two_feature_graph, test_settings):
        chunker = SemanticChunker(two_feature_graph, test_settings)
        totals = [
            sum(chunk.metadata.token_count for chunk in chunker.chunk(level).chunks)
            for level in DetailLevel
        ]

        assert totals == sorted(totals)
        assert totals[0] < totals[-1]

    def test_empty_graph(self, test_settings):
        result = SemanticChunker(KnowledgeGraph.empty("Empty"), test_settings).chunk()

        assert result.chunks == []
        assert result.manifest.total_chunks == 0
        assert result.manifest.model_dump(by_alias=True)["totalChunks"] == 0

    def test_single_feature_project(self, test_settings):
        graph = _graph([
            _service("AppService", "src/app/app.service.ts"),
            _component("AppComponent", "src/app/app.component.ts"),
        ])

        result = SemanticChunker(graph, test_settings).chunk(DetailLevel.overview)

        assert [chunk.metadata.feature for chunk in result.chunks] == ["core"]
        assert result.chunks[0].metadata.related_chunks == []

    def test_oversized_feature_is_split(self, two_feature_graph, test_settings):
        settings = test_settings.model_copy(update={"max_chunk_tokens": 1, "entities_per_part": 2})
        result = SemanticChunker(two_feature_graph, settings).chunk()

        assert [chunk.metadata.feature for chunk in result.chunks] == [
            "auth (part 1/2)", "auth (part 2/2)", "products (part 1/2)", "products (part 2/2)",
        ]
        chunked = [entity_id for chunk in result.chunks for entity_id in chunk.metadata.entities]
        assert sorted(chunked) == sorted(two_feature_graph.entities)

    def test_manifest_serialises_camel_case(self, two_feature_graph, test_settings):
        manifest = SemanticChunker(two_feature_graph, test_settings).chunk().manifest.model_dump(by_alias=True)

        assert set(manifest) == {"projectName", "totalEntities", "totalChunks", "generated", "chunks"}
        assert set(manifest["chunks"][0]) == {"chunkId", "feature", "entities", "tokenCount", "relatedChunks"}


class TestFeatureGrouping:

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/app/auth/login.component.ts", "auth"),
            ("src/app/auth/deep/nested/x.ts", "auth"),
            ("src/app/app.component.ts", "core"),
            ("libs/ui/button.ts", "core"),
            ("main.ts", "core"),
        ],
    )
    def test_feature_of(self, path, expected, test_settings):
        assert SemanticChunker(KnowledgeGraph.empty(), test_settings).feature_of(path) == expected

    def test_shared_grouping(self, test_settings):
        settings = test_settings.model_copy(update={"group_shared_features": True})
        chunker = SemanticChunker(KnowledgeGraph.empty(), settings)

        assert chunker.feature_of("src/app/utils/format.ts") == "shared"
        assert chunker.feature_of("src/app/orders/list.ts") == "orders"


class TestMarkdownContent:

    def test_levels_add_sections(self, two_feature_graph, test_settings):
        chunker = SemanticChunker(two_feature_graph, test_settings)
        overview = chunker.chunk(DetailLevel.overview).chunks[1].content
        detailed = chunker.chunk(DetailLevel.detailed).chunks[1].content
        complete = chunker.chunk(DetailLevel.complete).chunks[1].content

        assert "# Shop - products" in overview
        assert "## Details" not in overview
        assert "`auth`: `AuthService`" in detailed
        assert "## Relationships" in complete
        assert "[internal]" in complete

    def test_estimate_tokens_rounds_half_up(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("ab") == 1
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcdef") == 2
