"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from pinner.core.context import reset_run_context
from pinner.core.models.workflow import WorkflowData
from pinner.core.observability.logging_config import PIN_WARNING_LOGGER
from pinner.core.persistence.action_cache import ActionCache
from pinner.core.services.action_resolver import ActionResolver

from tests.fakes import FakeResolve


@pytest.fixture(autouse=True)
def _fresh_run_context():
    """Each test starts without a shared cache/resolver."""
    reset_run_context()
    yield
    reset_run_context()


@pytest.fixture(autouse=True)
def _restore_logging():
    """setup_logging rewires the root and pin-warning loggers; undo it."""
    loggers = [logging.getLogger(), logging.getLogger(PIN_WARNING_LOGGER)]
    levels = [lg.level for lg in loggers]
    yield
    for lg, level in zip(loggers, levels):
        # pytest's capture handlers are subclasses; leave those alone
        for handler in lg.handlers[:]:
            if type(handler) in (logging.StreamHandler, logging.FileHandler):
                lg.removeHandler(handler)
                handler.close()
        lg.setLevel(level)


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Return a temporary repository root for the action cache."""
    repo = tmp_path / "repo"
    repo.mkdir()
    return repo


@pytest.fixture
def action_cache(tmp_cache_dir: Path) -> ActionCache:
    return ActionCache(tmp_cache_dir)


@pytest.fixture
def fake_resolve() -> FakeResolve:
    return FakeResolve()


@pytest.fixture
def resolver(action_cache: ActionCache, fake_resolve: FakeResolve) -> ActionResolver:
    return ActionResolver(action_cache, resolve_fn=fake_resolve)


@pytest.fixture
def workflow_data() -> WorkflowData:
    """WorkflowData with no resolver: catalog pins only."""
    return WorkflowData()
