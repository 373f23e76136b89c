"""Environment configuration for one agent process."""

from __future__ import annotations

import json
import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import jsonschema

from cycleguard.domain.dependencies import (
    DEFAULT_ARTIFACT_PATTERNS,
    derive_workspace_strategy,
    parse_dependencies,
    workspace_key,
)
from cycleguard.domain.exceptions import ConfigurationError
from cycleguard.domain.metrics import PARSER_PRESETS
from cycleguard.domain.models import AgentSpec, ArtifactPattern, ControllerSettings
from cycleguard.schemas import validate_dependency_patterns

DEFAULT_SHARED_DIR = "/shared"
DEFAULT_WORKSPACE = "/workspace"
DEFAULT_PROMPT_DIR = "/prompts"
DEFAULT_TEST_COMMAND = "npm test"
DEFAULT_WORKER_COMMAND = "claude --dangerously-skip-permissions"
DEFAULT_TARGET_PASS_RATE = 85
DEFAULT_MAX_RESTARTS = 5

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AgentConfig:
    """Everything an agent process needs, loaded once at start."""

    spec: AgentSpec
    settings: ControllerSettings
    shared_dir: Path
    workspace: Path
    worker_command: tuple[str, ...]
    parser_name: str = "default"
    instructions: str = ""
    prompt_file: Path | None = None
    fresh_start: bool = False

    @property
    def log_file(self) -> Path:
        return self.shared_dir / "logs" / f"{self.spec.key}.log"


def env_flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() in _TRUE_VALUES


def _env_int(
    environ: Mapping[str, str],
    name: str,
    default: int,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    """
    Read an integer variable.

    Raises:
        ConfigurationError: If not an integer or out of range
    """
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if minimum is not None and value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ConfigurationError(f"{name} must be <= {maximum}, got {value}")
    return value


def _env_seconds(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def load_dependency_patterns(path: Path) -> dict[str, ArtifactPattern]:
    """
    Load a layer -> artifact location map, merged over the built-in one.

    Args:
        path: JSON file of {layer: {root, test_glob[, test_marker]}}

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    if not path.exists():
        raise ConfigurationError(f"Dependency patterns file not found: {path}")
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected dict in {path}, got {type(data).__name__}")
    try:
        validate_dependency_patterns(data)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Invalid dependency patterns in {path}: {e.message}") from e

    patterns = dict(DEFAULT_ARTIFACT_PATTERNS)
    for layer, entry in data.items():
        patterns[layer] = ArtifactPattern(**entry)
    return patterns


def _load_instructions(environ: Mapping[str, str], agent: str) -> tuple[Path | None, str]:
    """Task instructions: explicit AGENT_PROMPT_FILE, else /prompts/{agent}.md if present."""
    explicit = environ.get("AGENT_PROMPT_FILE", "").strip()
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise ConfigurationError(f"Agent prompt file not found: {path}")
        return path, path.read_text()
    default = Path(DEFAULT_PROMPT_DIR) / f"{agent}.md"
    if default.is_file():
        return default, default.read_text()
    return None, ""


def load_agent_config(environ: Mapping[str, str] | None = None) -> AgentConfig:
    """
    Build the agent configuration from environment variables.

    Dependency kinds and the workspace strategy are fixed here, once.

    Args:
        environ: Variables to read (os.environ if None)

    Returns:
        AgentConfig

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    env = os.environ if environ is None else environ

    name = env.get("AGENT_NAME", "").strip()
    if not name:
        raise ConfigurationError("AGENT_NAME is required")

    patterns_file = env.get("DEPENDENCY_PATTERNS", "").strip()
    patterns = (
        load_dependency_patterns(Path(patterns_file))
        if patterns_file
        else DEFAULT_ARTIFACT_PATTERNS
    )

    try:
        strategy = derive_workspace_strategy(name, env.get("WORKSPACE_STRATEGY"))
    except ValueError as e:
        raise ConfigurationError(
            f"WORKSPACE_STRATEGY must be isolated, layer or unified, "
            f"got {env.get('WORKSPACE_STRATEGY')!r}"
        ) from e

    test_command = env.get("TEST_COMMAND", "").strip() or DEFAULT_TEST_COMMAND
    spec = AgentSpec(
        name=name,
        depends_on=parse_dependencies(env.get("DEPENDS_ON", ""), patterns),
        test_command=test_command,
        max_cycles=_env_int(env, "MAX_RESTARTS", DEFAULT_MAX_RESTARTS, minimum=1),
        target_pass_rate=_env_int(
            env, "TARGET_PASS_RATE", DEFAULT_TARGET_PASS_RATE, minimum=0, maximum=100
        ),
        workspace_strategy=strategy,
        min_total_tests=_env_int(env, "MIN_TOTAL_TESTS", 0, minimum=0),
        project=env.get("PROJECT_NAME", "").strip(),
        description=env.get("PROJECT_DESCRIPTION", "").strip() or "No description",
        debug=env_flag(env, "DEBUG"),
    )

    settings = ControllerSettings(
        poll_interval=_env_seconds(env, "POLL_INTERVAL", 30.0),
        dependency_timeout=_env_seconds(env, "DEPENDENCY_TIMEOUT", 3600.0),
        heartbeat_interval=_env_seconds(env, "HEARTBEAT_INTERVAL", 60.0),
        maintenance_interval=_env_seconds(env, "MAINTENANCE_INTERVAL", 60.0),
    )

    parser_name = env.get("TEST_PARSER", "").strip() or "default"
    if parser_name not in PARSER_PRESETS:
        raise ConfigurationError(
            f"TEST_PARSER must be one of {', '.join(sorted(PARSER_PRESETS))}, "
            f"got {parser_name!r}"
        )

    workspace_root = env.get("WORKSPACE_ROOT", "").strip()
    if workspace_root:
        workspace = Path(workspace_root) / workspace_key(spec)
    else:
        workspace = Path(env.get("WORKSPACE", "").strip() or DEFAULT_WORKSPACE)

    worker_command = tuple(
        shlex.split(env.get("WORKER_COMMAND", "").strip() or DEFAULT_WORKER_COMMAND)
    )
    prompt_file, instructions = _load_instructions(env, name)

    return AgentConfig(
        spec=spec,
        settings=settings,
        shared_dir=Path(env.get("SHARED_DIR", "").strip() or DEFAULT_SHARED_DIR),
        workspace=workspace,
        worker_command=worker_command,
        parser_name=parser_name,
        instructions=instructions,
        prompt_file=prompt_file,
        fresh_start=env_flag(env, "FRESH_START"),
    )
