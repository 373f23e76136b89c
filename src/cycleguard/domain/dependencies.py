"""
Dependency classification and workspace strategy derivation.

Agent names follow a suffix convention (``<layer>-tests``, ``<layer>-impl``,
``<x>-refactor``...). The convention is interpreted here, once, when the
configuration is loaded; the resolver only ever sees tagged Dependency values.
"""

import re
from collections.abc import Iterable, Mapping

from cycleguard.domain.models import (
    AgentSpec,
    ArtifactPattern,
    Dependency,
    DependencyKind,
    WorkspaceStrategy,
)

TEST_SUFFIX = "-tests"
IMPL_SUFFIX = "-impl"
PROCESS_SUFFIXES = ("-refactor", "-audit", "-integration-final")

# Finalization agents see every layer's work
FINALIZATION_PATTERN = re.compile(r"(?:^|-)final(?:ization)?(?:-|$)")

UNIFIED_WORKSPACE_KEY = "unified"

# Layer base name -> where that layer's files live in the workspace
DEFAULT_ARTIFACT_PATTERNS: dict[str, ArtifactPattern] = {
    "schema": ArtifactPattern(root="src/schemas", test_glob="**/*.test.ts"),
    "service": ArtifactPattern(root="src/services", test_glob="**/*.test.ts"),
    "hooks": ArtifactPattern(root="src/hooks", test_glob="**/*.test.tsx"),
    "screens": ArtifactPattern(root="src/screens", test_glob="**/*.test.tsx"),
    "components": ArtifactPattern(root="src/components", test_glob="**/*.test.tsx"),
    "integration": ArtifactPattern(root="src/integration", test_glob="**/*.test.ts*"),
}


def layer_name(agent_name: str) -> str:
    """Strip a ``-tests``/``-impl`` suffix: ``schema-tests`` -> ``schema``."""
    for suffix in (TEST_SUFFIX, IMPL_SUFFIX):
        if agent_name.endswith(suffix) and len(agent_name) > len(suffix):
            return agent_name[: -len(suffix)]
    return agent_name


def lookup_pattern(
    base: str, patterns: Mapping[str, ArtifactPattern]
) -> ArtifactPattern | None:
    """
    Find the artifact pattern for a layer base name.

    ``marketing-schema`` matches the ``schema`` entry; when several entries
    match, the longest key wins.
    """
    matches = [key for key in patterns if base == key or base.endswith(f"-{key}")]
    if not matches:
        return None
    return patterns[max(matches, key=len)]


def classify_dependency(
    name: str,
    patterns: Mapping[str, ArtifactPattern] = DEFAULT_ARTIFACT_PATTERNS,
) -> Dependency:
    """
    Tag a dependency name with its readiness kind.

    Args:
        name: Upstream agent name
        patterns: Layer base name -> artifact location

    Returns:
        Dependency with kind (and pattern for artifact kinds)
    """
    if name.endswith(PROCESS_SUFFIXES):
        return Dependency(name=name, kind=DependencyKind.PROCESS_OUTCOME)
    if name.endswith(TEST_SUFFIX):
        pattern = lookup_pattern(layer_name(name), patterns)
        return Dependency(name=name, kind=DependencyKind.TEST_ARTIFACT, pattern=pattern)
    if name.endswith(IMPL_SUFFIX):
        pattern = lookup_pattern(layer_name(name), patterns)
        return Dependency(name=name, kind=DependencyKind.IMPL_ARTIFACT, pattern=pattern)
    return Dependency(name=name, kind=DependencyKind.GENERIC)


def parse_dependencies(
    raw: str | Iterable[str],
    patterns: Mapping[str, ArtifactPattern] = DEFAULT_ARTIFACT_PATTERNS,
) -> tuple[Dependency, ...]:
    """Classify a comma-separated (or already split) list of dependency names."""
    names = raw.split(",") if isinstance(raw, str) else list(raw)
    seen: list[str] = []
    for name in names:
        cleaned = name.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return tuple(classify_dependency(name, patterns) for name in seen)


def derive_workspace_strategy(
    agent_name: str, explicit: str | None = None
) -> WorkspaceStrategy:
    """
    Workspace strategy for an agent.

    An explicit value wins. Otherwise finalization agents are ``unified``,
    ``-tests``/``-impl`` agents share a ``layer`` workspace, and everything
    else is ``isolated``.

    Raises:
        ValueError: If the explicit value is not a known strategy
    """
    if explicit:
        return WorkspaceStrategy(explicit.strip().lower())
    if FINALIZATION_PATTERN.search(agent_name):
        return WorkspaceStrategy.UNIFIED
    if layer_name(agent_name) != agent_name:
        return WorkspaceStrategy.LAYER
    return WorkspaceStrategy.ISOLATED


def workspace_key(spec: AgentSpec) -> str:
    """
    Name of the workspace an agent writes to.

    Agents with the same key share mutable storage. They must not run
    concurrently; nothing here enforces that.
    """
    if spec.workspace_strategy is WorkspaceStrategy.UNIFIED:
        base = UNIFIED_WORKSPACE_KEY
    elif spec.workspace_strategy is WorkspaceStrategy.LAYER:
        base = layer_name(spec.name)
    else:
        base = spec.name
    return f"{spec.project}-{base}" if spec.project else base
