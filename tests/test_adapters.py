"""
Tests for the executor protocol, registry, mock and shell adapters.
"""

from pathlib import Path

from pipstate.adapters.base import ExecutionContext
from pipstate.adapters.mock import MockAdapter
from pipstate.adapters.registry import AdapterRegistry
from pipstate.adapters.shell.command import ShellCommandAdapter
from pipstate.core.models.action import Action, Receipt
from pipstate.core.models.directive import Directive, GuardKind, GuardPredicate


def _directive(
    command: str = "echo hi",
    guard: str = "false",
    kind: GuardKind = GuardKind.UNLESS,
    **kwargs,
) -> Directive:
    return Directive(
        name="pip_install_demo",
        primary_command=command,
        guard=GuardPredicate(kind=kind, expression=guard),
        **kwargs,
    )


def _action(directive: Directive | None = None, adapter: str = "shell") -> Action:
    return Action(id="op-1:demo", adapter=adapter, directive=directive or _directive())


# ── Guard semantics ─────────────────────────────────────────────────


class TestGuardPermits:
    def test_unless(self):
        g = GuardPredicate(kind=GuardKind.UNLESS, expression="x")
        assert not g.permits(True)
        assert g.permits(False)

    def test_onlyif(self):
        g = GuardPredicate(kind=GuardKind.ONLYIF, expression="x")
        assert g.permits(True)
        assert not g.permits(False)

    def test_unevaluable_guard_runs_command(self):
        assert GuardPredicate(kind=GuardKind.UNLESS, expression="x").permits(None)
        assert GuardPredicate(kind=GuardKind.ONLYIF, expression="x").permits(None)


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_runs_command(self):
        mock = MockAdapter()
        receipt = mock.execute(ExecutionContext(action=_action()))
        assert receipt.ok
        assert receipt.action_id == "op-1:demo"
        assert mock.commands == ["echo hi"]
        assert mock.guard_log == ["false"]

    def test_satisfied_unless_skips(self):
        mock = MockAdapter()
        mock.set_guard("already-there", True)
        receipt = mock.execute(ExecutionContext(action=_action(_directive(guard="already-there"))))
        assert receipt.skipped
        assert mock.call_count == 0

    def test_onlyif_not_met_skips(self):
        mock = MockAdapter()
        mock.set_guard("installed", False)
        action = _action(_directive(guard="installed", kind=GuardKind.ONLYIF))
        receipt = mock.execute(ExecutionContext(action=action))
        assert receipt.skipped

    def test_onlyif_runs_by_default(self):
        mock = MockAdapter()
        action = _action(_directive(command="rm -rf -- /opt/env", guard="test -d /opt/env",
                                    kind=GuardKind.ONLYIF))
        receipt = mock.execute(ExecutionContext(action=action))
        assert receipt.ok
        assert mock.commands == ["rm -rf -- /opt/env"]

    def test_forced_default_guard(self):
        mock = MockAdapter(default_guard=False)
        action = _action(_directive(guard="installed", kind=GuardKind.ONLYIF))
        assert mock.execute(ExecutionContext(action=action)).skipped

    def test_unevaluable_guard_proceeds(self):
        mock = MockAdapter()
        mock.set_guard("broken", None)
        receipt = mock.execute(ExecutionContext(action=_action(_directive(guard="broken"))))
        assert receipt.ok
        assert mock.commands == ["echo hi"]

    def test_dry_run_does_not_run(self):
        mock = MockAdapter()
        receipt = mock.execute(ExecutionContext(action=_action(), dry_run=True))
        assert receipt.skipped
        assert "[dry-run]" in receipt.output
        assert mock.call_count == 0

    def test_failure_response(self):
        mock = MockAdapter()
        mock.set_failure("echo hi", error="Intentional failure")
        receipt = mock.execute(ExecutionContext(action=_action()))
        assert receipt.failed
        assert "Intentional failure" in receipt.error
        assert receipt.action_id == "op-1:demo"

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("echo hi")
        mock.execute(ExecutionContext(action=_action()))
        mock.reset()
        assert mock.call_count == 0
        assert mock.guard_log == []
        assert mock.run("echo hi").ok

    def test_is_available(self):
        assert MockAdapter(available=True).is_available()
        assert not MockAdapter(available=False).is_available()


# ── Registry Tests ──────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_register_and_get(self):
        registry = AdapterRegistry()
        mock = MockAdapter(adapter_name="test")
        registry.register(mock)
        assert registry.get("test") is mock
        assert "test" in registry.list_adapters()

    def test_unregister(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="temp"))
        registry.unregister("temp")
        assert registry.get("temp") is None

    def test_adapter_status(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="up", available=True))
        registry.register(MockAdapter(adapter_name="down", available=False))
        status = registry.adapter_status()
        assert status["up"]["available"] is True
        assert status["down"]["available"] is False

    def test_missing_adapter_fails(self):
        receipt = AdapterRegistry().execute_action(_action(adapter="nonexistent"))
        assert receipt.failed
        assert "No adapter registered" in receipt.error

    def test_mock_mode_routes_everything(self):
        mock = MockAdapter()
        registry = AdapterRegistry(mock_adapter=mock)
        registry.register(ShellCommandAdapter())
        receipt = registry.execute_action(_action(adapter="shell"))
        assert receipt.ok
        assert receipt.adapter == "mock"
        assert mock.call_count == 1

    def test_validation_rejects_empty_command(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="shell"))
        receipt = registry.execute_action(_action(_directive(command="  ")))
        assert receipt.failed
        assert "Validation failed" in receipt.error

    def test_adapter_raising_is_captured(self):
        class Exploding(MockAdapter):
            def run(self, command, **kwargs):
                raise RuntimeError("boom")

        registry = AdapterRegistry()
        registry.register(Exploding(adapter_name="shell"))
        receipt = registry.execute_action(_action())
        assert receipt.failed
        assert "boom" in receipt.error


# ── Shell Command Adapter Tests ─────────────────────────────────────


class TestShellCommandAdapter:
    def test_is_available(self):
        adapter = ShellCommandAdapter()
        assert adapter.is_available()
        assert adapter.name == "shell"

    def test_run_echo(self, tmp_path: Path):
        receipt = ShellCommandAdapter().run("echo hello world", cwd=str(tmp_path))
        assert receipt.ok
        assert receipt.output == "hello world"
        assert receipt.return_code == 0

    def test_run_failure_captures_stderr(self, tmp_path: Path):
        receipt = ShellCommandAdapter().run("echo error >&2 && exit 3", cwd=str(tmp_path))
        assert receipt.failed
        assert receipt.return_code == 3
        assert "error" in receipt.error

    def test_run_uses_search_path(self, tmp_path: Path):
        receipt = ShellCommandAdapter().run(
            'echo "$PATH"', cwd=str(tmp_path), search_path=["/opt/x/bin", "/usr/bin", "/bin"],
        )
        assert receipt.output == "/opt/x/bin:/usr/bin:/bin"

    def test_run_environment(self, tmp_path: Path):
        receipt = ShellCommandAdapter().run(
            'echo "$PIP_INDEX_URL"', cwd=str(tmp_path), environment={"PIP_INDEX_URL": "http://i"},
        )
        assert receipt.output == "http://i"

    def test_run_bad_cwd(self):
        receipt = ShellCommandAdapter().run("true", cwd="/nonexistent/path")
        assert receipt.failed
        assert receipt.return_code is None

    def test_guard_outcomes(self, tmp_path: Path):
        adapter = ShellCommandAdapter()
        ok = GuardPredicate(kind=GuardKind.UNLESS, expression="true")
        bad = GuardPredicate(kind=GuardKind.UNLESS, expression="false")
        assert adapter.evaluate_guard(ok, cwd=str(tmp_path)) is True
        assert adapter.evaluate_guard(bad, cwd=str(tmp_path)) is False
        assert adapter.evaluate_guard(ok, cwd="/nonexistent/path") is None

    def test_fallback_runs_when_primary_fails(self, tmp_path: Path):
        directive = _directive(
            command="false",
            fallback_command="echo fallback",
            working_dir=str(tmp_path),
        )
        receipt = ShellCommandAdapter().execute(ExecutionContext(action=_action(directive)))
        assert receipt.ok
        assert receipt.output == "fallback"

    def test_execute_skips_when_guard_satisfied(self, tmp_path: Path):
        marker = tmp_path / "done"
        marker.write_text("")
        directive = _directive(
            command=f"echo ran > {tmp_path}/out",
            guard=f"test -f {marker}",
            working_dir=str(tmp_path),
        )
        receipt = ShellCommandAdapter().execute(ExecutionContext(action=_action(directive)))
        assert receipt.skipped
        assert not (tmp_path / "out").exists()


def test_receipt_factories():
    assert Receipt.success(adapter="a", action_id="x").ok
    assert Receipt.failure(adapter="a", action_id="x", error="e").failed
    assert Receipt.skip(adapter="a", action_id="x", reason="r").skipped
