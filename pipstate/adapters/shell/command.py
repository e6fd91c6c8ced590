"""
Shell command adapter — run directives through /bin/sh.

This is the real executor: guards and commands are shell strings,
run with the directive's working directory and PATH.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Mapping, Sequence

from pipstate.adapters.base import Adapter
from pipstate.core.models.action import Receipt
from pipstate.core.models.directive import GuardPredicate

logger = logging.getLogger(__name__)

# Guards are quick checks; a hung guard must not stall a run forever.
GUARD_TIMEOUT = 120


def _build_env(
    search_path: Sequence[str],
    environment: Mapping[str, str] | None,
) -> dict[str, str]:
    env = os.environ.copy()
    if search_path:
        env["PATH"] = ":".join(search_path)
    if environment:
        env.update(environment)
    return env


class ShellCommandAdapter(Adapter):
    """Execute shell commands and capture output."""

    def __init__(self, shell: str = "/bin/sh"):
        self._shell = shell

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which(self._shell) is not None

    def run(
        self,
        command: str,
        *,
        cwd: str | None = None,
        search_path: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
        timeout: int = 300,
    ) -> Receipt:
        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            result = subprocess.run(
                command,
                shell=True,
                executable=self._shell,
                cwd=cwd,
                env=_build_env(search_path, environment),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=command,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=command,
                error=f"Command execution error: {e}",
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        output = result.stdout.strip()
        stderr = result.stderr.strip()

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=command,
                output=output,
                duration_ms=elapsed_ms,
                return_code=0,
                metadata={"command": command, "stderr": stderr},
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=command,
            error=stderr or f"Command exited with code {result.returncode}",
            output=output,
            duration_ms=elapsed_ms,
            return_code=result.returncode,
            metadata={"command": command},
        )

    def evaluate_guard(
        self,
        guard: GuardPredicate,
        *,
        cwd: str | None = None,
        search_path: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
    ) -> bool | None:
        receipt = self.run(
            guard.expression,
            cwd=cwd,
            search_path=search_path,
            environment=environment,
            timeout=GUARD_TIMEOUT,
        )
        if receipt.return_code is None:
            logger.warning("Guard evaluation failed: %s", receipt.error)
            return None
        return receipt.return_code == 0
