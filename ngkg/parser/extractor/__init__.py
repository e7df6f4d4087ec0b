"""
Entity Extractor Module

Decorator-driven visitors that turn Angular declarations into graph
entities and relationships.

Public API:
  - get_builtin_extractors(): Fresh instances of every built-in extractor
  - EntityExtractor / DecoratedClassExtractor: Base classes for new extractors

Adding a new construct:
    1. Create a new file: `{construct}_extractor.py`
    2. Implement a class that extends DecoratedClassExtractor
    3. Register it in _EXTRACTORS below

Extractors for one builder only go through
``ProjectGraphBuilder.register_visitor``.
"""

from .base_extractor import ClassMatch, DecoratedClassExtractor, EntityExtractor
from .component_extractor import ComponentExtractor
from .constant_extractor import ConstantExtractor
from .directive_extractor import DirectiveExtractor
from .module_extractor import ModuleExtractor
from .pipe_extractor import PipeExtractor
from .service_extractor import ServiceExtractor


# Registry of built-in extractors, in registration order
_EXTRACTORS: tuple[type[EntityExtractor], ...] = (
    ComponentExtractor,
    DirectiveExtractor,
    ServiceExtractor,
    ModuleExtractor,
    PipeExtractor,
    ConstantExtractor,
)


def get_builtin_extractors() -> list[EntityExtractor]:
    """Fresh instances of every registered extractor."""
    return [extractor_class() for extractor_class in _EXTRACTORS]


__all__ = [
    "get_builtin_extractors",
    "ClassMatch",
    "EntityExtractor",
    "DecoratedClassExtractor",
    "ComponentExtractor",
    "ConstantExtractor",
    "DirectiveExtractor",
    "ModuleExtractor",
    "PipeExtractor",
    "ServiceExtractor",
]
