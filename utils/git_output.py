"""Predicates over git output text."""

CONFLICT_MARKER = 'CONFLICT'
DEPENDENCY_MANIFEST = 'composer.lock'


def looks_like_merge_conflict(output: str) -> bool:
    """True when a pull/merge reported conflicts."""
    return CONFLICT_MARKER in (output or '')


def touched_dependency_manifest(output: str) -> bool:
    """True when a pull/merge changed the dependency lock file."""
    return DEPENDENCY_MANIFEST in (output or '')
