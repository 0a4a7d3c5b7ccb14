"""
Tests for the run context — one cache and resolver per process run.
"""

from pathlib import Path

from pinner.core.config.loader import Settings
from pinner.core.context import get_run_resolver, new_workflow_data, reset_run_context
from pinner.core.persistence.action_cache import ActionCache
from pinner.core.services.action_pins import get_action_pin_with_data

from tests.fakes import FAKE_SHA, FakeResolve


class TestRunContext:
    """Tests for get_run_resolver / new_workflow_data."""

    def test_resolver_shared_across_workflows(self, tmp_path: Path):
        settings = Settings(cache_dir=tmp_path)
        first = new_workflow_data(settings, resolve_fn=FakeResolve())
        second = new_workflow_data(settings)
        assert first.action_resolver is second.action_resolver
        assert first.action_cache is second.action_cache

    def test_warning_sets_are_per_workflow(self, tmp_path: Path):
        settings = Settings(cache_dir=tmp_path)
        first = new_workflow_data(settings, resolve_fn=FakeResolve())
        first.action_pin_warnings.add("a/b@v1")
        assert new_workflow_data(settings).action_pin_warnings == set()

    def test_failures_memoized_for_whole_run(self, tmp_path: Path):
        fake = FakeResolve()
        settings = Settings(cache_dir=tmp_path)
        for _ in range(3):
            data = new_workflow_data(settings, resolve_fn=fake)
            assert get_action_pin_with_data("some-org/x", "v1", data) == "some-org/x@v1"
        assert len(fake.calls) == 1

    def test_settings_flow_into_data(self, tmp_path: Path):
        settings = Settings(cache_dir=tmp_path, strict=True, runtimes={"node": {"version": "20"}})
        data = new_workflow_data(
            settings,
            custom_steps="steps: []\n",
            tools={"t": {"command": "node"}},
            runtimes={"go": {}},
            resolve_fn=FakeResolve(),
        )
        assert data.strict_mode is True
        assert data.custom_steps == "steps: []\n"
        assert data.tools == {"t": {"command": "node"}}
        assert data.runtimes == {"node": {"version": "20"}, "go": {}}
        assert data.action_cache.path.parent.parent.parent == tmp_path

    def test_timeout_from_settings(self, tmp_path: Path):
        resolver = get_run_resolver(Settings(cache_dir=tmp_path, resolve_timeout=3), FakeResolve())
        assert resolver.timeout == 3

    def test_force_refresh_clears_cache_once(self, tmp_path: Path):
        ActionCache(tmp_path).set("a/b", "v1", FAKE_SHA)
        settings = Settings(cache_dir=tmp_path, force_refresh=True)

        resolver = get_run_resolver(settings, FakeResolve())
        assert len(resolver.cache) == 0
        resolver.cache.set("a/b", "v1", FAKE_SHA)
        # later workflows of the same run keep fresh entries
        assert len(get_run_resolver(settings).cache) == 1

    def test_reset(self, tmp_path: Path):
        settings = Settings(cache_dir=tmp_path)
        first = get_run_resolver(settings, FakeResolve())
        reset_run_context()
        assert get_run_resolver(settings, FakeResolve()) is not first
