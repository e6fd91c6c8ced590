"""
Tests for request, directive and manifest models.
"""

import pytest
from pydantic import ValidationError

from pipstate.core.models import (
    Directive,
    EnsureKind,
    EnsureState,
    GuardKind,
    GuardPredicate,
    InterpreterProvider,
    Manifest,
    RequestSpec,
)


class TestEnsureState:
    @pytest.mark.parametrize(
        "value, kind",
        [
            ("present", EnsureKind.PRESENT),
            ("installed", EnsureKind.PRESENT),
            ("absent", EnsureKind.ABSENT),
            ("purged", EnsureKind.ABSENT),
            ("latest", EnsureKind.LATEST),
            ("LATEST", EnsureKind.LATEST),
        ],
    )
    def test_keywords(self, value, kind):
        assert EnsureState.parse(value).kind == kind

    @pytest.mark.parametrize("value", ["1.0", "4.1.0", "2.0.1rc1", "1.2+local", "2019-04-01"])
    def test_versions(self, value):
        state = EnsureState.parse(value)
        assert state.kind == EnsureKind.EXACT
        assert state.version == value
        assert str(state) == value

    @pytest.mark.parametrize("value", ["", "maybe", "1", "v1.0"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            EnsureState.parse(value)

    def test_yaml_number_becomes_version(self):
        req = RequestSpec(name="rpyc", ensure=4.1)
        assert req.ensure.kind == EnsureKind.EXACT
        assert req.ensure.version == "4.1"

    def test_str_of_keyword(self):
        assert str(EnsureState.parse("latest")) == "latest"
        assert EnsureState.parse("purged").is_absent


class TestRequestSpec:
    def test_defaults(self):
        req = RequestSpec(name="rpyc")
        assert req.ensure.kind == EnsureKind.PRESENT
        assert req.provider == "pip"
        assert req.extras == ()
        assert req.virtualenv is None
        assert req.effective_log_path == "/tmp/pip.log"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            RequestSpec(name="  ")

    def test_bad_ensure_rejected(self):
        with pytest.raises(ValidationError):
            RequestSpec(name="rpyc", ensure="sometimes")

    @pytest.mark.parametrize("provider", ["pip", "pip3", "/opt/bin/pip"])
    def test_valid_providers(self, provider):
        assert RequestSpec(name="x", provider=provider).provider == provider

    def test_bad_provider_rejected(self):
        with pytest.raises(ValidationError):
            RequestSpec(name="x", provider="easy_install")

    @pytest.mark.parametrize("value", ["system", "", False])
    def test_system_virtualenv(self, value):
        assert RequestSpec(name="x", virtualenv=value).virtualenv is None

    def test_relative_virtualenv_accepted_by_model(self):
        assert RequestSpec(name="x", virtualenv="venv").virtualenv == "venv"

    def test_blank_proxy_is_none(self):
        assert RequestSpec(name="x", proxy="").proxy is None
        assert RequestSpec(name="x", index=False).index is None

    def test_single_string_becomes_tuple(self):
        req = RequestSpec(name="x", extras="security", install_args="--pre")
        assert req.extras == ("security",)
        assert req.install_args == ("--pre",)

    def test_log_path_in_virtualenv(self):
        assert RequestSpec(name="x", virtualenv="/opt/v/").effective_log_path == "/opt/v/pip.log"

    def test_frozen(self):
        req = RequestSpec(name="x")
        with pytest.raises(ValidationError):
            req.name = "y"


class TestInterpreterProvider:
    def test_anaconda_bin(self):
        assert InterpreterProvider(name="anaconda", install_path="/opt/py/").bin_dir == "/opt/py/bin"

    def test_system_has_no_bin(self):
        assert InterpreterProvider().bin_dir is None
        assert InterpreterProvider(name="anaconda").bin_dir is None


class TestDirective:
    def _directive(self, **kwargs) -> Directive:
        return Directive(
            name="pip_install_x",
            primary_command="a",
            guard=GuardPredicate(kind=GuardKind.UNLESS, expression="g"),
            **kwargs,
        )

    def test_command_primary_only(self):
        assert self._directive().command == "a"

    def test_command_with_fallback(self):
        assert self._directive(fallback_command="b").command == "{ a || b ;}"

    def test_command_with_preamble(self):
        d = self._directive(fallback_command="b", preamble="p")
        assert d.command == "p ; { a || b ;}"

    def test_env_overrides(self):
        d = self._directive(environment=("A=1", "B=x=y", "broken", "=v"))
        assert d.env_overrides() == {"A": "1", "B": "x=y"}

    def test_path_env(self):
        assert self._directive(search_path=("/a", "/b")).path_env == "/a:/b"

    def test_to_dict(self):
        data = self._directive(fallback_command="b").to_dict()
        assert data["command"] == "{ a || b ;}"
        assert data["guard"] == {"kind": "unless", "expression": "g"}
        assert data["search_path"] == []


class TestManifest:
    def test_empty(self):
        manifest = Manifest()
        assert manifest.requests() == []
        assert manifest.virtualenvs == []

    def test_defaults_applied(self):
        manifest = Manifest.model_validate({
            "defaults": {"proxy": "http://p:3128", "provider": "pip3"},
            "packages": [{"name": "rpyc"}, {"name": "requests", "provider": "pip"}],
        })
        first, second = manifest.requests()
        assert first.proxy == "http://p:3128"
        assert first.provider == "pip3"
        assert second.provider == "pip"
        assert second.proxy == "http://p:3128"

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            Manifest.model_validate({"pakages": []})

    def test_unsupported_version(self):
        with pytest.raises(ValidationError):
            Manifest.model_validate({"version": 2})

    def test_bad_package_entry(self):
        manifest = Manifest.model_validate({"packages": [{"name": "x", "ensure": "nope"}]})
        with pytest.raises(ValidationError):
            manifest.requests()
