"""Path resolution for glob-based imports."""

from .path_pattern import PathPattern, PathPatternResolver, PatternMatch

__all__ = ["PathPattern", "PathPatternResolver", "PatternMatch"]
