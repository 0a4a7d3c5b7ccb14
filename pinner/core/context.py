"""
Run context — the cache and resolver shared by every workflow of one run.

The pair is built ONCE per process, on the first ``new_workflow_data``
call, so the resolver's failed-key memo spans the whole run while each
workflow still gets its own WorkflowData (and its own warning set):

    - CLI:    main.py → new_workflow_data(settings) per workflow file
    - Tests:  conftest → reset_run_context() between tests

With ``force_refresh`` the cache is emptied once, when the pair is built.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pinner.core.config.loader import Settings
from pinner.core.models.workflow import WorkflowData
from pinner.core.persistence.action_cache import ActionCache
from pinner.core.services.action_resolver import ActionResolver, ResolveFn

logger = logging.getLogger(__name__)

_cache: Optional[ActionCache] = None
_resolver: Optional[ActionResolver] = None


def get_run_resolver(
    settings: Settings,
    resolve_fn: ResolveFn | None = None,
) -> ActionResolver:
    """Return the process-level resolver, creating it on first use."""
    global _cache, _resolver
    if _resolver is None:
        _cache = ActionCache(settings.cache_dir)
        if settings.force_refresh:
            logger.info("Force refresh: clearing action cache at %s", _cache.path)
            _cache.clear()
        _resolver = ActionResolver(
            _cache,
            resolve_fn=resolve_fn,
            timeout=settings.resolve_timeout,
        )
    return _resolver


def reset_run_context() -> None:
    """Forget the shared cache and resolver."""
    global _cache, _resolver
    _cache = None
    _resolver = None


def new_workflow_data(
    settings: Settings,
    *,
    custom_steps: str = "",
    tools: dict[str, Any] | None = None,
    runtimes: dict[str, Any] | None = None,
    resolve_fn: ResolveFn | None = None,
) -> WorkflowData:
    """Fresh WorkflowData for one workflow, wired to the run's resolver."""
    resolver = get_run_resolver(settings, resolve_fn)
    return WorkflowData(
        strict_mode=settings.strict,
        action_resolver=resolver,
        action_cache=resolver.cache,
        custom_steps=custom_steps,
        tools=dict(tools or {}),
        runtimes={**settings.runtimes, **(runtimes or {})},
    )
