"""
Install directive synthesis — RequestSpec in, Directive out.

Pure and deterministic: no I/O, no subprocess, no shared state.
The same RequestSpec always yields a byte-identical Directive.

Command shape (install)::

    <preamble> ; { <pip> --log <log> install [--upgrade] $wheel_support_flag
                   [--proxy=..] [--index-url=..] [args] [-e] <source>
                || <same without $wheel_support_flag> ;}

The fallback exists for pips that reject ``--no-binary``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from pipstate.core.config.loader import ConfigError
from pipstate.core.models.directive import Directive
from pipstate.core.models.request import EnsureKind, RequestSpec
from pipstate.core.services.install import fragments
from pipstate.core.services.install.guards import (
    PackageCheck,
    PipFreezeCheck,
    package_guard,
    search_guard,
)

logger = logging.getLogger(__name__)

_VCS_URL = re.compile(r"^(git\+|hg\+|bzr\+|svn\+)(http|https|ssh|svn|sftp|ftp|lp)(://).+$")
_LOCAL_PATH = re.compile(r"^(/|[a-zA-Z]:)")


@dataclass(frozen=True)
class FeatureFlags:
    """Which optional features a request uses. Derived, never stored."""

    has_proxy: bool
    has_index: bool
    has_extras: bool
    # pip/wheel capabilities are probed on the target host at run time.
    wheel_support_unknown: bool = True

    @classmethod
    def from_request(cls, request: RequestSpec) -> FeatureFlags:
        return cls(
            has_proxy=bool(request.proxy),
            has_index=bool(request.index),
            has_extras=bool(request.extras),
        )


def validate_request(request: RequestSpec) -> None:
    """Reject requests that cannot produce a meaningful directive.

    Raises:
        ConfigError: On a relative virtualenv or misplaced (un)install args.
    """
    if request.virtualenv is not None and not request.virtualenv.startswith("/"):
        raise ConfigError(f'"{request.virtualenv}" is not an absolute path.')
    if request.ensure.is_absent and request.install_args:
        raise ConfigError("install_args cannot be used with ensure=absent")
    if not request.ensure.is_absent and request.uninstall_args:
        raise ConfigError("uninstall_args can only be used with ensure=absent")


def pip_binary(request: RequestSpec) -> str:
    """Resolve the pip executable embedded in generated commands."""
    if request.provider.startswith("/"):
        return request.provider
    if request.virtualenv:
        return f"{request.virtualenv.rstrip('/')}/bin/{request.provider}"
    return request.provider


def search_path(request: RequestSpec) -> tuple[str, ...]:
    """Directories prepended for the venv and interpreter provider, then the base PATH."""
    prefix: list[str] = []
    if request.virtualenv:
        prefix.append(f"{request.virtualenv.rstrip('/')}/bin")
    provider_bin = request.interpreter.bin_dir
    if provider_bin:
        prefix.append(provider_bin)
    return tuple(prefix) + request.search_path


def source_token(request: RequestSpec) -> str:
    """What pip is asked to install: a requirement, a path or a URL.

    Exact versions are pinned here (``name==1.0``, ``vcs-url@1.0``).
    """
    ensure = request.ensure
    pinned = ensure.version if ensure.kind == EnsureKind.EXACT else None
    egg = request.egg or request.name

    if request.url is None:
        token = fragments.package_token(request.name, request.extras)
        return f"{token}=={pinned}" if pinned else token
    if _VCS_URL.match(request.url):
        ref = f"@{pinned}" if pinned else ""
        return f"{request.url}{ref}#egg={egg}"
    if _LOCAL_PATH.match(request.url):
        return request.url
    return f"{request.url}#egg={egg}"


def build_directive(
    request: RequestSpec,
    package_check: PackageCheck | None = None,
) -> Directive:
    """Compile a RequestSpec into a Directive.

    Args:
        request: The package request.
        package_check: Collaborator producing the installed-state check.
            Defaults to PipFreezeCheck.

    Returns:
        The directive; install or uninstall depending on ``ensure``.

    Raises:
        ConfigError: If the request is invalid (see ``validate_request``).
    """
    validate_request(request)
    check = package_check or PipFreezeCheck()
    flags = FeatureFlags.from_request(request)

    pip = fragments.quote(pip_binary(request))
    proxy_flag = fragments.option("--proxy", request.proxy) if flags.has_proxy else None
    index_flag = fragments.option("--index-url", request.index) if flags.has_index else None

    if request.ensure.is_absent:
        primary = fragments.assemble(
            pip,
            "uninstall -y",
            fragments.args(request.uninstall_args),
            proxy_flag,
            fragments.quote(request.name),
        )
        directive = Directive(
            name=f"pip_uninstall_{request.name}",
            primary_command=primary,
            guard=package_guard(check, pip, request.name, request.ensure),
            **_placement(request),
        )
        logger.debug("Synthesized %s: %s", directive.name, directive.command)
        return directive

    upgrade = "--upgrade" if request.ensure.kind == EnsureKind.LATEST else None
    install = fragments.assemble(
        pip, "--log", fragments.quote(request.effective_log_path), "install",
    )
    tail = (
        proxy_flag,
        index_flag,
        fragments.args(request.install_args),
        "-e" if request.editable else None,
        fragments.quote(source_token(request)),
    )
    primary = fragments.assemble(install, upgrade, fragments.WHEEL_FLAG_VAR, *tail)
    fallback = fragments.assemble(install, upgrade, *tail)

    if request.ensure.kind == EnsureKind.LATEST:
        guard = search_guard(pip, request.name, proxy_flag)
    else:
        guard = package_guard(check, pip, request.name, request.ensure)

    directive = Directive(
        name=f"pip_install_{request.name}",
        primary_command=primary,
        fallback_command=fallback,
        preamble=fragments.wheel_preamble(pip),
        guard=guard,
        **_placement(request),
    )
    logger.debug("Synthesized %s: %s", directive.name, directive.command)
    return directive


def _placement(request: RequestSpec) -> dict:
    """Where and how the executor runs the directive."""
    return {
        "working_dir": request.virtualenv or "/",
        "search_path": search_path(request),
        "environment": request.environment,
        "timeout": request.timeout,
    }
