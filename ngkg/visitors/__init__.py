from .pattern_visitor import CodePattern, PatternVisitor
from .performance_visitor import PerformanceVisitor
from .rxjs_pattern_visitor import RxJSPatternVisitor
from .security_visitor import SecurityVisitor

__all__ = [
    "CodePattern",
    "PatternVisitor",
    "PerformanceVisitor",
    "RxJSPatternVisitor",
    "SecurityVisitor",
]
