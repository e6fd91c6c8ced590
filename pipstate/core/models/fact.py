"""
Fact models — named pieces of discovered host state.

A FactProbe is one strategy for producing a candidate value for a
fact. Probes carry a static trust weight; the resolver asks them in
weight order and keeps the first answer.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel


@dataclass(frozen=True)
class FactProbe:
    """One candidate source for a fact.

    Attributes:
        weight: Trust level, 0-100. Higher is asked first.
        producer: Returns the value, or None for "unknown".
        confine: Platform facts that must match (case-insensitive)
            for this probe to be considered, e.g. ``{"kernel": "linux"}``.
        name: Label used in logs and in ``ResolvedFact.source``.
    """

    weight: int
    producer: Callable[[], str | None]
    confine: Mapping[str, str] = field(default_factory=dict)
    name: str = ""

    def __post_init__(self) -> None:
        if not 0 <= self.weight <= 100:
            raise ValueError(f"Probe weight must be within 0-100, got {self.weight}")

    def matches(self, platform_facts: Mapping[str, str]) -> bool:
        """Whether every confine entry matches the platform facts."""
        for key, expected in self.confine.items():
            actual = platform_facts.get(key)
            if actual is None or str(actual).lower() != str(expected).lower():
                return False
        return True


class ResolvedFact(BaseModel):
    """Result of resolving a fact. ``value`` None means unknown."""

    name: str
    value: str | None = None
    source: str | None = None

    @property
    def known(self) -> bool:
        return self.value is not None
