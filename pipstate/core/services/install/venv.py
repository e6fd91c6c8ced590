"""
Virtualenv provisioning directives.

Present: create the environment with the minor-version-qualified
creation tool, then bootstrap pip and setuptools inside it.
Absent: remove the environment directory tree.

Guards are plain directory checks, not package checks.
"""

from __future__ import annotations

import logging

from pipstate.core.config.loader import ConfigError
from pipstate.core.models.directive import Directive, GuardKind
from pipstate.core.models.request import VenvRequest
from pipstate.core.services.install import fragments
from pipstate.core.services.install.guards import directory_guard

logger = logging.getLogger(__name__)

# First interpreter release where ``python -m venv`` replaced ``pyvenv``.
_VENV_MODULE_SINCE = (3, 6)


def minor_version(version: str) -> str:
    """``3.5.1`` → ``3.5``; a bare major (``3``) is kept as is."""
    parts = version.strip().split(".")
    return ".".join(parts[:2])


def creation_tool(version: str) -> str:
    """Environment-creation command for the given interpreter version."""
    minor = minor_version(version)
    try:
        numbers = tuple(int(p) for p in minor.split("."))
    except ValueError:
        raise ConfigError(f"Invalid python version {version!r}") from None
    if len(numbers) == 2 and numbers < _VENV_MODULE_SINCE:
        return f"pyvenv-{minor}"
    return f"python{minor} -m venv"


def _bootstrap(pip: str, log: str, pip_args: tuple[str, ...], package: str, pin: str | None) -> str:
    target = fragments.quote(f"{package}=={pin}") if pin else f"--upgrade {package}"
    return fragments.assemble(pip, "--log", log, "install", fragments.args(pip_args), target)


def build_venv_directive(request: VenvRequest) -> Directive:
    """Compile a VenvRequest into a Directive.

    Raises:
        ConfigError: If ``path`` is not absolute, is the filesystem root,
            or the version is unparsable.
    """
    if not request.path.startswith("/"):
        raise ConfigError(f'"{request.path}" is not an absolute path.')

    venv_dir = request.path.rstrip("/") or "/"
    if venv_dir == "/":
        raise ConfigError("The filesystem root cannot be a virtualenv.")
    quoted = fragments.quote(venv_dir)
    path = tuple(filter(None, [request.interpreter.bin_dir])) + request.search_path

    if request.ensure.is_absent:
        directive = Directive(
            name=f"python_virtualenv_{venv_dir}",
            primary_command=f"rm -rf -- {quoted}",
            guard=directory_guard(venv_dir, GuardKind.ONLYIF),
            working_dir="/tmp",
            search_path=path,
            environment=request.environment,
            timeout=request.timeout,
        )
        logger.debug("Synthesized %s: %s", directive.name, directive.command)
        return directive

    pip = fragments.quote(f"{venv_dir}/bin/pip")
    log = fragments.quote(f"{venv_dir}/pip.log")
    create = fragments.assemble(
        creation_tool(request.version),
        "--clear",
        "--system-site-packages" if request.system_site_packages else None,
        quoted,
    )
    command = fragments.chain([
        create,
        _bootstrap(pip, log, request.pip_args, "pip", request.pip_version),
        _bootstrap(pip, log, request.pip_args, "setuptools", request.setuptools_version),
    ])

    directive = Directive(
        name=f"python_virtualenv_{venv_dir}",
        primary_command=command,
        guard=directory_guard(f"{venv_dir}/bin", GuardKind.UNLESS),
        working_dir="/tmp",
        search_path=path,
        environment=request.environment,
        timeout=request.timeout,
    )
    logger.debug("Synthesized %s: %s", directive.name, directive.command)
    return directive
