from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_EXCLUDED_DIRS = [
    "node_modules",
    "dist",
    "build",
    "coverage",
    "tmp",
    "out-tsc",
    ".git",
    ".angular",
    ".cache",
]


class ParserSettings(BaseSettings):
    """Settings for project parsing and chunking.

    Every field can be overridden through an ``NGKG_``-prefixed environment
    variable or a ``.env`` file, e.g. ``NGKG_INCLUDE_TESTS=true``.
    """

    model_config = SettingsConfigDict(
        env_prefix="NGKG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Discovery
    tsconfig_path: Path | None = None
    include_tests: bool = False
    max_depth: int = 20
    max_workers: int = 4
    excluded_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))

    # Extraction
    analyze_templates: bool = True

    # Chunking
    project_name: str = "Angular Project"
    source_root_marker: str = "app"
    core_feature: str = "core"
    group_shared_features: bool = False
    shared_feature_names: list[str] = Field(
        default_factory=lambda: ["shared", "core", "common", "utils", "helpers"]
    )
    detail_level: str = "detailed"
    max_chunk_tokens: int | None = None
    entities_per_part: int = 50


settings = ParserSettings()
