"""Fixtures describing modloop's layers for the architecture rules."""

from pathlib import Path

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)

SRC_ROOT = Path(__file__).resolve().parents[2] / "src"
PACKAGE_ROOT = SRC_ROOT / "modloop"

# Innermost first. Module names are relative to SRC_ROOT, hence the src. prefix.
LAYERS = (
    ("domain", "src.modloop.domain"),
    ("guards", "src.modloop.guards"),
    ("application", "src.modloop.application"),
    ("infrastructure", "src.modloop.infrastructure"),
)


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    """Import graph of the installed package sources.

    The CLI, config and logging modules at the package root are part of the
    graph but belong to no layer: they are the composition root that wires
    infrastructure adapters into the orchestrator.
    """
    return get_evaluable_architecture(str(SRC_ROOT), str(PACKAGE_ROOT))


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """The four layers of the development loop.

    - domain: value models, the transition table, ports and exceptions
    - guards: back-pressure checks, built only on domain ports
    - application: the engine, policies and the driving loop
    - infrastructure: adapters for models, storage, documents, git and output
    """
    architecture = LayeredArchitecture()
    for name, module in LAYERS:
        architecture = architecture.layer(name).containing_modules([module])
    return architecture
