"""
cycleguard: multi-agent convergence orchestrator.

Per-agent controller processes coordinate through a shared, crash-tolerant
record store to drive external workers toward a test-pass threshold,
respecting declared dependencies and surviving restarts.

Example:
    from cycleguard import AgentRecords, DependencyResolver, LifecycleController
    from cycleguard import MetricsExtractor
    from cycleguard.infrastructure import FilesystemRecordStore, SubprocessCommandRunner
    from cycleguard.infrastructure import SubprocessWorker, load_agent_config

    config = load_agent_config()
    store = FilesystemRecordStore(config.shared_dir)
    controller = LifecycleController(
        config.spec,
        AgentRecords(store, config.spec),
        DependencyResolver(store, config.spec, config.workspace),
        MetricsExtractor(SubprocessCommandRunner()),
        SubprocessWorker(config.worker_command, config.workspace),
        config.workspace,
    )
    controller.run()
"""

# Application layer (orchestration)
from cycleguard.application.controller import LifecycleController
from cycleguard.application.extractor import MetricsExtractor
from cycleguard.application.monitor import StatusMonitor
from cycleguard.application.records import AgentRecords
from cycleguard.application.resolver import DependencyResolver

# Domain rules
from cycleguard.domain.dependencies import (
    classify_dependency,
    derive_workspace_strategy,
    parse_dependencies,
)

# Domain exceptions
from cycleguard.domain.exceptions import (
    ConfigurationError,
    DependenciesUpdated,
    DependencyTimeout,
    RecordValidationError,
)

# Domain interfaces (for type hints and custom implementations)
from cycleguard.domain.interfaces import (
    CommandRunnerInterface,
    MetricsParserInterface,
    RecordStoreInterface,
    WorkerInterface,
)
from cycleguard.domain.metrics import RegexSummaryParser
from cycleguard.domain.models import (
    AgentSpec,
    AgentState,
    AgentStatus,
    Checkpoint,
    ControllerSettings,
    CycleCounter,
    CycleOutcome,
    Dependency,
    DependencyKind,
    LifecycleState,
    RecordKind,
    SuiteMetrics,
    WorkspaceStrategy,
)

# Infrastructure (explicit import encouraged for dependency injection)
from cycleguard.infrastructure.persistence import (
    FilesystemRecordStore,
    InMemoryRecordStore,
)

__version__ = "0.3.0"

__all__ = [
    # Version
    "__version__",
    # Application
    "AgentRecords",
    "DependencyResolver",
    "LifecycleController",
    "MetricsExtractor",
    "StatusMonitor",
    # Domain models
    "AgentSpec",
    "AgentState",
    "AgentStatus",
    "Checkpoint",
    "ControllerSettings",
    "CycleCounter",
    "CycleOutcome",
    "Dependency",
    "DependencyKind",
    "LifecycleState",
    "RecordKind",
    "SuiteMetrics",
    "WorkspaceStrategy",
    # Domain rules
    "classify_dependency",
    "derive_workspace_strategy",
    "parse_dependencies",
    "RegexSummaryParser",
    # Interfaces
    "CommandRunnerInterface",
    "MetricsParserInterface",
    "RecordStoreInterface",
    "WorkerInterface",
    # Exceptions
    "ConfigurationError",
    "DependenciesUpdated",
    "DependencyTimeout",
    "RecordValidationError",
    # Infrastructure
    "FilesystemRecordStore",
    "InMemoryRecordStore",
]
