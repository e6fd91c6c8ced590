"""
Weighted fact resolution.

Several probes may answer the same fact. They are ranked by a static
weight, asked lazily in that order, and the first one that knows wins.
Values are never merged or averaged.
"""

from __future__ import annotations

import logging
import platform
from collections.abc import Mapping

from pipstate.core.models.fact import FactProbe, ResolvedFact

logger = logging.getLogger(__name__)


def detect_platform() -> dict[str, str]:
    """Platform facts used to match probe confines."""
    return {"kernel": platform.system().lower()}


class WeightedFactResolver:
    """Registry of probes per fact name, resolved by weight.

    The resolver holds no state besides the registry; producers own
    their side effects.
    """

    def __init__(self, platform_facts: Mapping[str, str] | None = None):
        self._probes: dict[str, list[FactProbe]] = {}
        self._platform = dict(platform_facts) if platform_facts is not None else detect_platform()

    @property
    def platform_facts(self) -> dict[str, str]:
        return dict(self._platform)

    def register(self, fact_name: str, probe: FactProbe) -> None:
        """Add a probe for ``fact_name``."""
        self._probes.setdefault(fact_name, []).append(probe)
        logger.debug(
            "Registered probe %s for %s (weight %d)",
            probe.name or "<anonymous>", fact_name, probe.weight,
        )

    def fact_names(self) -> list[str]:
        return list(self._probes)

    def candidates(self, fact_name: str) -> list[FactProbe]:
        """Confined probes for a fact, highest weight first.

        Ties keep registration order.
        """
        probes = [p for p in self._probes.get(fact_name, []) if p.matches(self._platform)]
        return sorted(probes, key=lambda p: -p.weight)

    def resolve(self, fact_name: str) -> ResolvedFact:
        """Return the value of the highest-weight probe that knows it.

        A probe that raises counts as unknown; lower-weight probes are
        only evaluated while no answer has been found.
        """
        for probe in self.candidates(fact_name):
            try:
                value = probe.producer()
            except Exception as e:
                logger.debug("Probe %s for %s failed: %s", probe.name, fact_name, e)
                continue
            if value is None or (isinstance(value, str) and not value.strip()):
                logger.debug("Probe %s for %s returned unknown", probe.name, fact_name)
                continue
            value = str(value).strip()
            logger.debug("Resolved %s = %s via %s", fact_name, value, probe.name)
            return ResolvedFact(name=fact_name, value=value, source=probe.name or None)
        return ResolvedFact(name=fact_name)

    def resolve_all(self) -> dict[str, ResolvedFact]:
        """Resolve every registered fact."""
        return {name: self.resolve(name) for name in self._probes}
