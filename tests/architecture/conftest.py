"""Shared fixtures for architecture tests."""

import os

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)

SRC_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", "src"))


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    """Import graph of the installed cycleguard package sources."""
    return get_evaluable_architecture(SRC_DIR, os.path.join(SRC_DIR, "cycleguard"))


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """
    The controller's layers, inner to outer.

    ``schemas`` holds the bundled JSON Schemas and is only reached through
    infrastructure adapters; ``cli`` is the composition root. Module names
    are relative to the source root ('src.cycleguard.domain', ...).
    """
    return (
        LayeredArchitecture()
        .layer("domain")
        .containing_modules(["src.cycleguard.domain"])
        .layer("application")
        .containing_modules(["src.cycleguard.application"])
        .layer("infrastructure")
        .containing_modules(["src.cycleguard.infrastructure"])
        .layer("schemas")
        .containing_modules(["src.cycleguard.schemas"])
        .layer("cli")
        .containing_modules(["src.cycleguard.cli"])
    )
