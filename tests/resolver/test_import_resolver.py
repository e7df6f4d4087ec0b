"""
Tests for import resolution, tsconfig loading and package manifests.

Every test builds a small project on disk under ``tmp_path``.
"""

import json

import pytest

from ngkg.core.exceptions import ConfigLoadError
from ngkg.resolver.import_resolver import ImportClassification, ImportResolver
from ngkg.resolver.jsonc import strip_jsonc
from ngkg.resolver.package_manifest import (
    PackageManifest,
    extract_package_name,
    is_bare_specifier,
    load_package_manifest,
)
from ngkg.resolver.tsconfig import load_tsconfig


class TestRelativeImports:

    def test_sibling_file_resolves(self, write_project):
        """``./sibling`` from src/a.ts finds src/sibling.ts."""
        root = write_project({"src/a.ts": "", "src/sibling.ts": ""})

        resolution = ImportResolver().resolve_import("./sibling", root / "src" / "a.ts")

        assert resolution.is_external is False
        assert resolution.exists is True
        assert resolution.resolved_path == str(root / "src" / "sibling.ts")
        assert resolution.classification == ImportClassification.internal_resolved

    def test_directory_index(self, write_project):
        root = write_project({"src/a.ts": "", "src/shared/index.ts": ""})

        resolution = ImportResolver().resolve_import("./shared", root / "src" / "a.ts")

        assert resolution.resolved_path == str(root / "src" / "shared" / "index.ts")

    def test_missing_relative_file(self, write_project):
        root = write_project({"src/a.ts": ""})

        resolution = ImportResolver().resolve_import("../gone", root / "src" / "a.ts")

        assert resolution.exists is False
        assert resolution.resolved_path is None
        assert resolution.classification == ImportClassification.internal_unresolved


class TestBareImports:

    def test_manifest_dependency_not_on_disk(self, write_project):
        """A package declared in package.json but not installed is external and unverified."""
        root = write_project({"src/a.ts": ""})
        manifest = PackageManifest(dependencies={"@angular/core": "^17.0.0"})

        resolution = ImportResolver(manifest=manifest).resolve_import("@angular/core", root / "src" / "a.ts")

        assert resolution.is_external is True
        assert resolution.exists is False
        assert resolution.package_name == "@angular/core"
        assert resolution.classification == ImportClassification.external_unverified

    def test_installed_package(self, write_project):
        root = write_project({
            "src/a.ts": "",
            "node_modules/rxjs/package.json": json.dumps({"types": "index.d.ts"}),
            "node_modules/rxjs/index.d.ts": "",
        })

        resolution = ImportResolver().resolve_import("rxjs", root / "src" / "a.ts")

        assert resolution.is_external is True
        assert resolution.exists is True
        assert resolution.package_name == "rxjs"
        assert resolution.resolved_path == str(root / "node_modules" / "rxjs" / "index.d.ts")
        assert resolution.classification == ImportClassification.external_verified

    def test_types_package(self, write_project):
        root = write_project({
            "src/a.ts": "",
            "node_modules/@types/lodash/index.d.ts": "",
        })

        resolution = ImportResolver().resolve_import("lodash", root / "src" / "a.ts")

        assert resolution.exists is True
        assert resolution.is_external is True

    def test_unknown_package(self, write_project):
        root = write_project({"src/a.ts": ""})

        resolution = ImportResolver(manifest=PackageManifest()).resolve_import("left-pad", root / "src" / "a.ts")

        assert resolution.is_external is False
        assert resolution.exists is False
        assert resolution.classification == ImportClassification.unresolved

    def test_results_are_cached(self, write_project):
        root = write_project({"src/a.ts": "", "src/b.ts": ""})
        resolver = ImportResolver()

        first = resolver.resolve_import("./b", root / "src" / "a.ts")
        second = resolver.resolve_import("./b", root / "src" / "a.ts")

        assert first is second
        assert resolver.stats.cache_hits == 1
        assert resolver.stats.cache_misses == 1


class TestTsconfigPaths:

    def test_paths_alias_resolves_internal_file(self, write_project):
        root = write_project({
            "tsconfig.json": """
            {
              // project aliases
              "compilerOptions": {
                "baseUrl": "./",
                "paths": {
                  "@app/*": ["src/app/*"],
                  "@env": ["src/environments/environment"],
                },
              },
            }
            """,
            "src/app/core/auth.service.ts": "",
            "src/environments/environment.ts": "",
            "src/main.ts": "",
        })
        config = load_tsconfig(root)
        resolver = ImportResolver(config)

        aliased = resolver.resolve_import("@app/core/auth.service", root / "src" / "main.ts")
        exact = resolver.resolve_import("@env", root / "src" / "main.ts")

        assert aliased.exists is True
        assert aliased.is_external is False
        assert aliased.resolved_path == str(root.resolve() / "src" / "app" / "core" / "auth.service.ts")
        assert aliased.classification == ImportClassification.internal_resolved
        assert exact.resolved_path == str(root.resolve() / "src" / "environments" / "environment.ts")

    def test_extends_chain(self, write_project):
        root = write_project({
            "tsconfig.base.json": '{"compilerOptions": {"baseUrl": "src", "target": "es2022"}}',
            "tsconfig.json": '{"extends": "./tsconfig.base.json", "compilerOptions": {"strict": true}}',
        })

        config = load_tsconfig(root)

        assert config is not None
        assert config.base_url == (root / "src").resolve()
        assert config.target == "es2022"
        assert config.strict is True

    def test_explicit_missing_tsconfig(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            load_tsconfig(tmp_path, tmp_path / "tsconfig.app.json")

    def test_invalid_tsconfig(self, write_project):
        root = write_project({"tsconfig.json": "{ not json"})
        with pytest.raises(ConfigLoadError):
            load_tsconfig(root, root / "tsconfig.json")

    def test_strip_jsonc_keeps_strings(self):
        text = '{"url": "http://x//y", /* c */ "a": [1, 2,],}'
        assert json.loads(strip_jsonc(text)) == {"url": "http://x//y", "a": [1, 2]}


class TestPackageManifest:

    def test_load_manifest(self, write_project):
        root = write_project({
            "package.json": json.dumps({
                "name": "demo",
                "dependencies": {"@angular/core": "^17.3.0"},
                "devDependencies": {"typescript": "~5.4.0"},
            }),
        })

        manifest = load_package_manifest(root)

        assert manifest is not None
        assert manifest.has_dependency("typescript")
        assert manifest.dependency_version("@angular/core") == "^17.3.0"
        assert manifest.angular_version() == "17.3.0"

    @pytest.mark.parametrize(
        "specifier,expected",
        [
            ("@angular/core/testing", "@angular/core"),
            ("rxjs/operators", "rxjs"),
            ("lodash", "lodash"),
        ],
    )
    def test_extract_package_name(self, specifier, expected):
        assert extract_package_name(specifier) == expected

    def test_bare_specifier(self):
        assert is_bare_specifier("rxjs")
        assert not is_bare_specifier("./local")
        assert not is_bare_specifier("/abs/path")

    def test_dependency_precedence(self):
        manifest = PackageManifest.model_validate(
            {"dependencies": {"rxjs": "~7.8.0"}, "devDependencies": {"rxjs": "7.0.0", "jest": "^29.0.0"}}
        )

        assert manifest.all_dependencies() == {"rxjs": "~7.8.0", "jest": "^29.0.0"}
        assert manifest.dependency_version("rxjs") == "~7.8.0"
        assert manifest.has_dependency("jest")


class TestMalformedSpecifiers:

    @pytest.mark.parametrize("specifier", ["", "@", "@scope", "/abs", "node:fs", "..", "./a\x00b", "bad\x00pkg"])
    def test_resolution_never_raises(self, write_project, specifier):
        root = write_project({"src/a.ts": ""})
        resolver = ImportResolver(manifest=PackageManifest(dependencies={"@scope/pkg": "1.0.0"}))

        resolution = resolver.resolve_import(specifier, root / "src" / "a.ts")

        assert resolution.import_path == specifier
        assert resolution.classification in set(ImportClassification)
