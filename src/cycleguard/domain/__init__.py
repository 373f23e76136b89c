"""
Domain layer for the convergence orchestrator.

Contains core models, ports and rules with no external dependencies.
"""

from cycleguard.domain.dependencies import (
    DEFAULT_ARTIFACT_PATTERNS,
    classify_dependency,
    derive_workspace_strategy,
    parse_dependencies,
    workspace_key,
)
from cycleguard.domain.exceptions import (
    ConfigurationError,
    DependenciesUpdated,
    DependencyTimeout,
    RecordValidationError,
    WorkerLaunchError,
)
from cycleguard.domain.interfaces import (
    CommandRunnerInterface,
    MetricsParserInterface,
    RecordStoreInterface,
    WorkerInterface,
)
from cycleguard.domain.metrics import RegexSummaryParser, SummaryPattern
from cycleguard.domain.models import (
    AgentSpec,
    AgentState,
    AgentStatus,
    ArtifactPattern,
    Checkpoint,
    ControllerSettings,
    CycleCounter,
    CycleOutcome,
    Dependency,
    DependencyKind,
    Freshness,
    LifecycleState,
    Outcome,
    RecordKind,
    SuiteMetrics,
    SuiteRun,
    WorkerContext,
    WorkerResult,
    WorkspaceStrategy,
)
from cycleguard.domain.prompts import ContextTemplate

__all__ = [
    # Models
    "AgentSpec",
    "AgentState",
    "AgentStatus",
    "ArtifactPattern",
    "Checkpoint",
    "ControllerSettings",
    "CycleCounter",
    "CycleOutcome",
    "Dependency",
    "DependencyKind",
    "Freshness",
    "LifecycleState",
    "Outcome",
    "RecordKind",
    "SuiteMetrics",
    "SuiteRun",
    "WorkerContext",
    "WorkerResult",
    "WorkspaceStrategy",
    # Rules
    "DEFAULT_ARTIFACT_PATTERNS",
    "classify_dependency",
    "derive_workspace_strategy",
    "parse_dependencies",
    "workspace_key",
    "RegexSummaryParser",
    "SummaryPattern",
    "ContextTemplate",
    # Interfaces
    "RecordStoreInterface",
    "MetricsParserInterface",
    "CommandRunnerInterface",
    "WorkerInterface",
    # Exceptions
    "ConfigurationError",
    "DependencyTimeout",
    "DependenciesUpdated",
    "RecordValidationError",
    "WorkerLaunchError",
]
