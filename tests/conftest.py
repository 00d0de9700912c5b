"""Global pytest configuration for terraspec tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_ROOT = _REPO_ROOT / "src"

# Make both the repository root (for `tests.helpers`) and src/ importable
# without an installed package.
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))
if str(_SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(_SRC_ROOT))

from terraspec.schema import SchemaRegistry  # noqa: E402
from tests.helpers.plan_helpers import plan_document, schema_document  # noqa: E402

_ENV_VARS = (
    "NO_COLOR",
    "TERRASPEC_NO_COLOR",
    "TERRASPEC_FORCE_COLOR",
    "TERRASPEC_ENGINE",
    "TERRASPEC_TERRAFORM_BIN",
    "TERRASPEC_LOG",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Keep terraspec settings from the outer shell out of every test."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_terraspec_logger():
    """Undo handlers installed by CLI runs so caplog keeps seeing records."""

    yield
    logger = logging.getLogger("terraspec")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def plan_doc():
    return plan_document()


@pytest.fixture
def schema_doc():
    return schema_document()


@pytest.fixture
def registry(plan_doc, schema_doc):
    return SchemaRegistry.from_provider_schemas(schema_doc, outputs=set(plan_doc["planned_values"]["outputs"]))
