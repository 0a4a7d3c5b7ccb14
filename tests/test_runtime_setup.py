"""
Tests for runtime setup step generation and deduplication.
"""

import logging
import textwrap

import pytest
import yaml

from pinner.core.models.runtime import RuntimeRequirement
from pinner.core.models.workflow import WorkflowData
from pinner.core.services.runtime_catalog import find_runtime_by_id
from pinner.core.services.runtime_detection import apply_runtime_overrides
from pinner.core.services.runtime_setup import (
    RuntimeSetupError,
    deduplicate_runtime_setup_steps_from_custom_steps,
    generate_runtime_setup_steps,
    should_skip_runtime_setup,
)


def _req(runtime_id: str, version: str = "", **kwargs) -> RuntimeRequirement:
    return RuntimeRequirement(runtime=find_runtime_by_id(runtime_id), version=version, **kwargs)


def _text(steps) -> str:
    return "\n".join(line for step in steps for line in step)


# ═══════════════════════════════════════════════════════════════════
#  Generation
# ═══════════════════════════════════════════════════════════════════


class TestGenerateRuntimeSetupSteps:
    """Tests for generate_runtime_setup_steps."""

    def test_node_with_version(self):
        steps = generate_runtime_setup_steps([_req("node", "20")])
        assert steps == [[
            "      - name: Setup Node.js",
            "        uses: actions/setup-node@6044e13b5dc448c55e2357c09f80417699197238 # v6",
            "        with:",
            "          node-version: '20'",
        ]]

    def test_default_version(self):
        text = _text(generate_runtime_setup_steps([_req("python")]))
        assert "actions/setup-python@a26af69be951a213d495a4c3e4e4022e16d87065 # v5" in text
        assert "python-version: '3.12'" in text

    def test_no_default_version_no_with(self):
        steps = generate_runtime_setup_steps([_req("uv")])
        assert steps == [[
            "      - name: Setup uv",
            "        uses: astral-sh/setup-uv@d4b2f3b6ecc6e67c4457f6d3e41ec42d3d0fcb86 # v5",
        ]]

    def test_go_adds_root_capture(self):
        steps = generate_runtime_setup_steps([_req("go", "1.22")])
        assert len(steps) == 2
        setup, capture = steps
        assert "        uses: actions/setup-go@7a3fe6cf4cb3a834922a1244abfce67bcef6a0c5 # v6" in setup
        assert "          go-version: '1.22'" in setup
        assert capture[0] == "      - name: Capture GOROOT for AWF chroot mode"
        parsed = yaml.safe_load("\n".join(capture))
        assert parsed[0]["run"] == 'echo "GOROOT=$(go env GOROOT)" >> "$GITHUB_ENV"'

    def test_go_mod_file(self):
        steps = generate_runtime_setup_steps([_req("go", go_mod_file="custom/go.mod")])
        setup = steps[0]
        assert "          go-version-file: custom/go.mod" in setup
        assert "          cache: true" in setup
        assert not any("go-version:" in line for line in setup)

    def test_if_condition_on_both_go_steps(self):
        steps = generate_runtime_setup_steps([_req("go", if_condition="hashFiles('go.mod') != ''")])
        for step in steps:
            assert "        if: hashFiles('go.mod') != ''" in step

    def test_extra_inputs(self):
        java = _text(generate_runtime_setup_steps([_req("java", "17")]))
        assert "actions/setup-java@c1e323688fd81a25caa38c78aa6df2d33d3e20d9 # v4" in java
        assert "          java-version: '17'" in java
        assert "          distribution: temurin" in java

        elixir = yaml.safe_load(textwrap.dedent(_text(generate_runtime_setup_steps([_req("elixir")]))))
        assert elixir[0]["with"] == {"elixir-version": "1.17", "otp-version": "27"}

    @pytest.mark.parametrize("runtime_id, sha", [
        ("bun", "3d267786b128fe76c2f16a390aa2448b815359f3"),
        ("dotnet", "67a3573c9a986a3f9c594539f4ab511d57bb3ce9"),
        ("elixir", "dff508cca8ce57162e7aa6c4769a4f97c2fed638"),
        ("haskell", "9cd1b7bf3f36d5a3c3b17abc3545bfb5481912ea"),
    ])
    def test_catalog_pins(self, runtime_id, sha):
        assert sha in _text(generate_runtime_setup_steps([_req(runtime_id)]))

    def test_custom_action_repo_unpinned(self, caplog):
        requirements = {}
        apply_runtime_overrides({"node": {"action-repo": "custom/setup-node", "action-version": "v5"}},
                                requirements)
        with caplog.at_level(logging.WARNING):
            text = _text(generate_runtime_setup_steps(list(requirements.values())))
        assert "        uses: custom/setup-node@v5" in text
        assert "Unable to pin action custom/setup-node@v5" in caplog.text

    def test_strict_mode_still_generates(self):
        data = WorkflowData(strict_mode=True)
        text = _text(generate_runtime_setup_steps([_req("ruby")], data))
        assert "        uses: ruby/setup-ruby@v1" in text

    def test_warns_once_per_action(self, caplog):
        data = WorkflowData()
        with caplog.at_level(logging.WARNING):
            generate_runtime_setup_steps([_req("ruby")], data)
            generate_runtime_setup_steps([_req("ruby")], data)
        assert caplog.text.count("Unable to pin action ruby/setup-ruby@v1") == 1
        assert data.action_pin_warnings == {"ruby/setup-ruby@v1"}

    def test_order_follows_requirements(self):
        steps = generate_runtime_setup_steps([_req("go"), _req("node"), _req("python")])
        names = [step[0].split("name: ", 1)[1] for step in steps]
        assert names == ["Setup Go", "Capture GOROOT for AWF chroot mode", "Setup Node.js", "Setup Python"]

    def test_empty(self):
        assert generate_runtime_setup_steps([]) == []

    def test_output_is_valid_yaml(self):
        steps = generate_runtime_setup_steps([_req("go", "1.25"), _req("java"), _req("uv")])
        parsed = yaml.safe_load(textwrap.dedent(_text(steps)))
        assert [s["name"] for s in parsed] == [
            "Setup Go", "Capture GOROOT for AWF chroot mode", "Setup Java", "Setup uv",
        ]


# ═══════════════════════════════════════════════════════════════════
#  Deduplication
# ═══════════════════════════════════════════════════════════════════


class TestDeduplicate:
    """Tests for deduplicate_runtime_setup_steps_from_custom_steps."""

    def test_uncustomized_step_removed(self):
        custom = textwrap.dedent("""\
            steps:
              - name: Setup Node
                uses: actions/setup-node@v6
              - name: Test
                run: npm test
        """)
        text, remaining = deduplicate_runtime_setup_steps_from_custom_steps(custom, [_req("node")])
        assert "setup-node" not in text
        assert yaml.safe_load(text) == {"steps": [{"name": "Test", "run": "npm test"}]}
        assert [r.runtime_id for r in remaining] == ["node"]

    def test_customized_step_kept(self):
        custom = textwrap.dedent("""\
            steps:
              - uses: actions/setup-node@v6
                with:
                  node-version: '18'
              - run: npm test
        """)
        text, remaining = deduplicate_runtime_setup_steps_from_custom_steps(custom, [_req("node")])
        assert text == custom
        assert remaining == []

    def test_customized_python_kept_verbatim(self):
        custom = textwrap.dedent("""\
            steps:
              - uses: actions/setup-python@a26af69be951a213d495a4c3e4e4022e16d87065 # v5
                with:
                  python-version: '3.9'
              - run: python -m pytest
        """)
        text, remaining = deduplicate_runtime_setup_steps_from_custom_steps(custom, [_req("python")])
        assert text == custom
        assert "actions/setup-python@a26af69be951a213d495a4c3e4e4022e16d87065 # v5" in text
        assert remaining == []

    def test_other_requirements_untouched(self):
        custom = textwrap.dedent("""\
            steps:
              - uses: actions/setup-go@v6
                with:
                  go-version-file: go.mod
              - run: go build && npm ci
        """)
        _, remaining = deduplicate_runtime_setup_steps_from_custom_steps(custom, [_req("go"), _req("node")])
        assert [r.runtime_id for r in remaining] == ["node"]

    def test_pinned_ref_matches(self):
        custom = "steps:\n  - uses: actions/setup-python@a26af69be951a213d495a4c3e4e4022e16d87065 # v5\n"
        text, _ = deduplicate_runtime_setup_steps_from_custom_steps(custom, [_req("python")])
        assert yaml.safe_load(text) == {"steps": []}

    def test_nothing_to_do_returns_input(self):
        custom = "steps:\n  - run: echo   spaced\n"
        text, remaining = deduplicate_runtime_setup_steps_from_custom_steps(custom, [_req("node")])
        assert text is custom
        assert len(remaining) == 1

    def test_no_requirements(self):
        custom = "steps:\n\t- broken"
        assert deduplicate_runtime_setup_steps_from_custom_steps(custom, []) == (custom, [])

    def test_no_text(self):
        reqs = [_req("node")]
        text, remaining = deduplicate_runtime_setup_steps_from_custom_steps("", reqs)
        assert text == ""
        assert remaining == reqs

    def test_parse_error_message(self):
        with pytest.raises(RuntimeSetupError) as exc_info:
            deduplicate_runtime_setup_steps_from_custom_steps(
                "steps:\n\t- name: test\n\t  run: echo 'hello'", [_req("node")],
            )
        message = str(exc_info.value)
        for fragment in ("failed to parse custom workflow steps",
                         "Custom steps must be valid GitHub Actions step syntax",
                         "Example:", "steps:", "- name:", "run:", "Error:"):
            assert fragment in message

    def test_input_list_not_mutated(self):
        reqs = [_req("node")]
        custom = "steps:\n  - uses: actions/setup-node@v6\n    with:\n      node-version: '18'\n"
        deduplicate_runtime_setup_steps_from_custom_steps(custom, reqs)
        assert len(reqs) == 1


class TestShouldSkip:
    def test_never_skips(self):
        assert should_skip_runtime_setup(WorkflowData()) is False
