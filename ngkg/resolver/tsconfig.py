"""
tsconfig.json loading.

Only the module-resolution options matter here: ``baseUrl`` and ``paths``,
plus ``target``/``module`` and the decorator flags for reporting. Relative
``extends`` chains are followed; options in the extending file win.
"""

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ngkg.core.exceptions import ConfigLoadError
from ngkg.resolver.jsonc import find_upwards, load_jsonc

logger = logging.getLogger(__name__)

MAX_EXTENDS_DEPTH = 10


class CompilerConfig(BaseModel):
    """Compiler options relevant to module resolution.

    ``base_url`` is absolute once loaded; ``paths`` targets stay relative to
    ``paths_base`` (the base URL, or the tsconfig directory without one).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: Path | None = Field(default=None, alias="baseUrl")
    paths: dict[str, list[str]] = Field(default_factory=dict)
    target: str | None = None
    module: str | None = None
    strict: bool | None = None
    experimental_decorators: bool | None = Field(default=None, alias="experimentalDecorators")
    emit_decorator_metadata: bool | None = Field(default=None, alias="emitDecoratorMetadata")
    config_dir: Path | None = None
    config_path: Path | None = None

    @property
    def paths_base(self) -> Path | None:
        return self.base_url or self.config_dir


def _read_compiler_options(path: Path, depth: int = 0) -> dict[str, Any]:
    """Merged compilerOptions of ``path`` and its relative ``extends`` chain.

    ``baseUrl`` is made absolute against the file that declares it.
    """
    data = load_jsonc(path)
    options: dict[str, Any] = {}

    extends = data.get("extends")
    if isinstance(extends, str) and extends.startswith(".") and depth < MAX_EXTENDS_DEPTH:
        parent = (path.parent / extends).resolve()
        if not parent.is_file() and parent.suffix != ".json":
            parent = parent.with_name(parent.name + ".json")
        if parent.is_file():
            options.update(_read_compiler_options(parent, depth + 1))
        else:
            logger.warning(f"tsconfig extends target not found: {extends} (from {path})")

    own = data.get("compilerOptions") or {}
    if not isinstance(own, dict):
        raise ConfigLoadError("compilerOptions must be an object", config_path=str(path))
    if "baseUrl" in own and isinstance(own["baseUrl"], str):
        own = dict(own)
        own["baseUrl"] = str((path.parent / own["baseUrl"]).resolve())
    if "paths" in own and "baseUrl" not in own and "baseUrl" not in options:
        options["_paths_dir"] = str(path.parent.resolve())
    options.update(own)
    return options


def load_tsconfig(root_dir: Path, tsconfig_path: Path | None = None) -> CompilerConfig | None:
    """Load compiler options for the project at ``root_dir``.

    Looks for ``tsconfig.json`` in ``root_dir`` and its parents when no
    explicit path is given. Returns None when none is found.

    Raises:
        ConfigLoadError: If the tsconfig cannot be read or parsed.
    """
    path = tsconfig_path or find_upwards(root_dir, "tsconfig.json")
    if path is None:
        logger.debug(f"No tsconfig.json found above {root_dir}")
        return None
    if not path.is_file():
        raise ConfigLoadError("tsconfig not found", config_path=str(path))

    options = _read_compiler_options(path)
    paths_dir = options.pop("_paths_dir", None)
    try:
        config = CompilerConfig.model_validate(options)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid compilerOptions: {e}", config_path=str(path)) from e

    config_dir = Path(paths_dir) if paths_dir else path.parent.resolve()
    return config.model_copy(update={"config_dir": config_dir, "config_path": path})
