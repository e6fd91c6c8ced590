"""
Tests for weighted fact resolution.
"""

import pytest

from pipstate.core.models.fact import FactProbe, ResolvedFact
from pipstate.core.services.facts import WeightedFactResolver

LINUX = {"kernel": "linux"}


def _probe(weight, value, calls=None, confine=None, name=""):
    def produce():
        if calls is not None:
            calls.append(name or weight)
        if isinstance(value, Exception):
            raise value
        return value

    return FactProbe(weight=weight, producer=produce, confine=confine or {}, name=name)


class TestFactProbe:
    def test_weight_bounds(self):
        with pytest.raises(ValueError):
            FactProbe(weight=101, producer=lambda: None)
        with pytest.raises(ValueError):
            FactProbe(weight=-1, producer=lambda: None)

    def test_confine_matching_is_case_insensitive(self):
        probe = FactProbe(weight=1, producer=lambda: None, confine={"kernel": "Linux"})
        assert probe.matches({"kernel": "linux"})
        assert not probe.matches({"kernel": "darwin"})
        assert not probe.matches({})

    def test_no_confine_matches_everything(self):
        assert FactProbe(weight=1, producer=lambda: None).matches({})


class TestResolve:
    def test_higher_weight_unknown_falls_back(self):
        r = WeightedFactResolver(LINUX)
        r.register("pip_version", _probe(100, None))
        r.register("pip_version", _probe(50, "9.0.1"))
        assert r.resolve("pip_version").value == "9.0.1"

    def test_higher_weight_wins(self):
        r = WeightedFactResolver(LINUX)
        r.register("pip_version", _probe(100, "8.1.2"))
        r.register("pip_version", _probe(50, "9.0.1"))
        assert r.resolve("pip_version").value == "8.1.2"

    def test_registration_order_does_not_matter(self):
        r = WeightedFactResolver(LINUX)
        r.register("pip_version", _probe(50, "9.0.1"))
        r.register("pip_version", _probe(100, "8.1.2"))
        assert r.resolve("pip_version").value == "8.1.2"

    def test_short_circuit(self):
        calls = []
        r = WeightedFactResolver(LINUX)
        r.register("f", _probe(50, "low", calls, name="low"))
        r.register("f", _probe(100, "high", calls, name="high"))
        r.resolve("f")
        assert calls == ["high"]

    def test_failing_probe_is_unknown(self):
        r = WeightedFactResolver(LINUX)
        r.register("f", _probe(100, FileNotFoundError("pip")))
        r.register("f", _probe(50, "9.0.1", name="db"))
        fact = r.resolve("f")
        assert fact.value == "9.0.1"
        assert fact.source == "db"

    def test_all_unknown(self):
        r = WeightedFactResolver(LINUX)
        r.register("f", _probe(100, None))
        r.register("f", _probe(50, ""))
        fact = r.resolve("f")
        assert fact == ResolvedFact(name="f")
        assert not fact.known

    def test_unregistered_fact(self):
        assert WeightedFactResolver(LINUX).resolve("nope").value is None

    def test_confined_probes_skipped(self):
        calls = []
        r = WeightedFactResolver({"kernel": "darwin"})
        r.register("f", _probe(100, "1.0", calls, confine=LINUX))
        assert r.resolve("f").value is None
        assert calls == []

    def test_equal_weight_keeps_registration_order(self):
        r = WeightedFactResolver(LINUX)
        r.register("f", _probe(50, "first"))
        r.register("f", _probe(50, "second"))
        assert r.resolve("f").value == "first"

    def test_value_is_stripped(self):
        r = WeightedFactResolver(LINUX)
        r.register("f", _probe(10, " 1.2.3\n"))
        assert r.resolve("f").value == "1.2.3"

    def test_resolve_all(self):
        r = WeightedFactResolver(LINUX)
        r.register("a", _probe(10, "1"))
        r.register("b", _probe(10, None))
        result = r.resolve_all()
        assert result["a"].value == "1"
        assert result["b"].value is None
        assert r.fact_names() == ["a", "b"]

    def test_platform_detected_by_default(self):
        assert "kernel" in WeightedFactResolver().platform_facts
