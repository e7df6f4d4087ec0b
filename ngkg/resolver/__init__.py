from ngkg.resolver.import_resolver import ImportClassification, ImportResolution, ImportResolver
from ngkg.resolver.module_resolution import ModuleResolver
from ngkg.resolver.package_manifest import PackageManifest, extract_package_name, load_package_manifest
from ngkg.resolver.tsconfig import CompilerConfig, load_tsconfig

__all__ = [
    "CompilerConfig",
    "ImportClassification",
    "ImportResolution",
    "ImportResolver",
    "ModuleResolver",
    "PackageManifest",
    "extract_package_name",
    "load_package_manifest",
    "load_tsconfig",
]
