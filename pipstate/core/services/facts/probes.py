"""
pip version probes.

Read-only. Two sources, in trust order:
    100  ask the pip executable itself (``pip --version``)
     50  ask the host package database for the distro pip package

Process execution goes through a CommandRunner (an executor adapter);
nothing here calls subprocess directly.
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from typing import Protocol

from pipstate.core.models.action import Receipt
from pipstate.core.models.fact import FactProbe
from pipstate.core.services.facts.resolver import WeightedFactResolver
from pipstate.core.services.install import fragments

logger = logging.getLogger(__name__)

PIP_VERSION_PATTERN = re.compile(r"^pip (\d+\.\d+\.?\d*).*$", re.MULTILINE)

CLI_WEIGHT = 100
PACKAGE_DB_WEIGHT = 50
LINUX_ONLY = {"kernel": "linux"}

# Package states that mean "no version to report".
ABSENT_STATES = frozenset({"absent", "purged"})

# fact name → (pip executable, distro package)
PIP_FACTS: dict[str, tuple[str, str]] = {
    "pip_version": ("pip", "python-pip"),
    "pip3_version": ("pip3", "python3-pip"),
}

Which = Callable[[str], "str | None"]


class CommandRunner(Protocol):
    """Runs a shell command and reports the outcome as a Receipt."""

    def run(self, command: str, *, timeout: int = 300) -> Receipt: ...


def parse_pip_version(output: str) -> str | None:
    """Extract ``X.Y[.Z]`` from ``pip --version`` output."""
    match = PIP_VERSION_PATTERN.search(output or "")
    return match.group(1) if match else None


def pip_cli_probe(
    binary: str,
    runner: CommandRunner,
    which: Which = shutil.which,
) -> FactProbe:
    """Weight-100 probe: run ``<binary> --version`` and parse it."""

    def produce() -> str | None:
        if not which(binary):
            return None
        receipt = runner.run(f"{fragments.quote(binary)} --version 2>&1", timeout=10)
        if not receipt.ok:
            return None
        return parse_pip_version(receipt.output)

    return FactProbe(
        weight=CLI_WEIGHT,
        producer=produce,
        confine=LINUX_ONLY,
        name=f"{binary} --version",
    )


def package_state(package: str, runner: CommandRunner, which: Which = shutil.which) -> str:
    """Installed version of a distro package, or ``absent`` / ``purged``.

    Uses whichever of dpkg-query / rpm is on PATH:
      dpkg-query → "install ok installed 9.0.1-2" is installed,
                   "... config-files" is absent, unknown to dpkg is purged
      rpm        → exit 0 prints the version, anything else is absent
    """
    quoted = fragments.quote(package)
    if which("dpkg-query"):
        receipt = runner.run(
            f"dpkg-query -W -f='${{Status}} ${{Version}}' {quoted}", timeout=10,
        )
        if not receipt.ok:
            return "purged"
        words = receipt.output.split()
        if words[:3] == ["install", "ok", "installed"] and len(words) > 3:
            return words[3]
        return "absent"

    if which("rpm"):
        receipt = runner.run(f"rpm -q --qf '%{{VERSION}}' {quoted}", timeout=10)
        if receipt.ok and receipt.output.strip():
            return receipt.output.strip()
        return "absent"

    logger.debug("No package database tool found for %s", package)
    return "absent"


def package_db_probe(
    package: str,
    runner: CommandRunner,
    which: Which = shutil.which,
) -> FactProbe:
    """Weight-50 probe: installed version of the distro pip package."""

    def produce() -> str | None:
        state = package_state(package, runner, which)
        if state in ABSENT_STATES:
            return None
        return state

    return FactProbe(
        weight=PACKAGE_DB_WEIGHT,
        producer=produce,
        confine=LINUX_ONLY,
        name=f"package {package}",
    )


def default_resolver(
    runner: CommandRunner,
    which: Which = shutil.which,
    platform_facts: dict[str, str] | None = None,
) -> WeightedFactResolver:
    """A resolver with both probes registered for pip_version and pip3_version."""
    resolver = WeightedFactResolver(platform_facts)
    for fact_name, (binary, package) in PIP_FACTS.items():
        resolver.register(fact_name, pip_cli_probe(binary, runner, which))
        resolver.register(fact_name, package_db_probe(package, runner, which))
    return resolver
