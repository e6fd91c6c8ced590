"""
Request models — the declarative input of directive synthesis.

A RequestSpec says "this package should be in this state, installed
this way." It carries no behaviour: the install synthesizer reads it
and produces a Directive. Models are frozen so a request can be shared
between callers and threads without copying.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Base PATH handed to the executor when the caller gives none.
DEFAULT_SEARCH_PATH: tuple[str, ...] = (
    "/usr/local/bin",
    "/usr/bin",
    "/bin",
    "/usr/sbin",
)

DEFAULT_LOG_DIR = "/tmp"
DEFAULT_TIMEOUT = 1800

# Calendar versions (2019-04-01) or dotted versions (1.2, 2.0.1rc1, 4.1+local).
VERSION_PATTERN = re.compile(
    r"^((19|20)[0-9][0-9]-(0[1-9]|1[1-2])-([0-2][1-9]|3[0-1])"
    r"|[0-9]+\.\w+\+?\w*(\.\w+)*)$"
)

_PIP_NAMES = ("pip", "pip3")


class EnsureKind(str, Enum):
    """Desired target state of a managed package."""

    PRESENT = "present"
    ABSENT = "absent"
    LATEST = "latest"
    EXACT = "exact"


_ENSURE_ALIASES: dict[str, EnsureKind] = {
    "present": EnsureKind.PRESENT,
    "installed": EnsureKind.PRESENT,
    "absent": EnsureKind.ABSENT,
    "purged": EnsureKind.ABSENT,
    "latest": EnsureKind.LATEST,
}


class EnsureState(BaseModel):
    """Parsed ensure value: a kind, plus the version for ``exact``."""

    model_config = ConfigDict(frozen=True)

    kind: EnsureKind = EnsureKind.PRESENT
    version: str | None = None

    @classmethod
    def parse(cls, value: str) -> EnsureState:
        """Parse ``present``, ``absent``, ``latest`` or a version string.

        Raises:
            ValueError: If the value is none of those.
        """
        text = value.strip()
        kind = _ENSURE_ALIASES.get(text.lower())
        if kind is not None:
            return cls(kind=kind)
        if VERSION_PATTERN.match(text):
            return cls(kind=EnsureKind.EXACT, version=text)
        raise ValueError(
            f"Invalid ensure value {value!r}: expected present, absent, "
            "latest or a version number"
        )

    @property
    def is_absent(self) -> bool:
        return self.kind == EnsureKind.ABSENT

    def __str__(self) -> str:
        if self.kind == EnsureKind.EXACT:
            return self.version or ""
        return self.kind.value


class InterpreterProvider(BaseModel):
    """Which Python distribution provides the interpreter on this host.

    Only distributions living outside the system PATH contribute a
    bin directory (currently ``anaconda``).
    """

    model_config = ConfigDict(frozen=True)

    name: str = "system"
    install_path: str | None = None

    @property
    def bin_dir(self) -> str | None:
        if self.name == "anaconda" and self.install_path:
            return f"{self.install_path.rstrip('/')}/bin"
        return None


def _coerce_ensure(value: Any) -> Any:
    # YAML reads ``ensure: 4.1`` as a float; ``4.10`` must be quoted.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str):
        return EnsureState.parse(value)
    return value


def _coerce_tuple(value: Any) -> Any:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return value


class RequestSpec(BaseModel):
    """A declarative pip package request.

    ``virtualenv`` is deliberately not checked here: a relative path is
    rejected by the synthesizer with a ConfigError, before any command
    string exists.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    ensure: EnsureState = Field(default_factory=EnsureState)
    provider: str = "pip"                 # pip, pip3 or an absolute path
    proxy: str | None = None
    index: str | None = None
    extras: tuple[str, ...] = ()
    virtualenv: str | None = None         # None = system interpreter
    search_path: tuple[str, ...] = DEFAULT_SEARCH_PATH
    log_path: str | None = None           # None = <virtualenv or /tmp>/pip.log
    interpreter: InterpreterProvider = Field(default_factory=InterpreterProvider)

    install_args: tuple[str, ...] = ()
    uninstall_args: tuple[str, ...] = ()
    editable: bool = False
    url: str | None = None
    egg: str | None = None
    environment: tuple[str, ...] = ()
    timeout: int = DEFAULT_TIMEOUT

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Package name must not be empty")
        return value

    @field_validator("ensure", mode="before")
    @classmethod
    def _parse_ensure(cls, value: Any) -> Any:
        return _coerce_ensure(value)

    @field_validator("provider")
    @classmethod
    def _check_provider(cls, value: str) -> str:
        if value in _PIP_NAMES or value.startswith("/"):
            return value
        raise ValueError(
            f"Invalid pip provider {value!r}: expected pip, pip3 or an absolute path"
        )

    @field_validator("proxy", "index", "url", "egg", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        # Empty strings and ``false`` both mean "not set".
        if value in ("", False):
            return None
        return value

    @field_validator("virtualenv", mode="before")
    @classmethod
    def _system_is_none(cls, value: Any) -> Any:
        if value in ("", "system", False):
            return None
        return value

    @field_validator(
        "extras", "search_path", "install_args", "uninstall_args", "environment",
        mode="before",
    )
    @classmethod
    def _listish(cls, value: Any) -> Any:
        return _coerce_tuple(value)

    @property
    def effective_log_path(self) -> str:
        if self.log_path:
            return self.log_path
        base = (self.virtualenv or DEFAULT_LOG_DIR).rstrip("/")
        return f"{base}/pip.log"


class VenvRequest(BaseModel):
    """A request to create (or remove) an isolated environment."""

    model_config = ConfigDict(frozen=True)

    path: str
    ensure: EnsureState = Field(default_factory=EnsureState)
    version: str = "3"
    system_site_packages: bool = False
    pip_version: str | None = None
    setuptools_version: str | None = None
    pip_args: tuple[str, ...] = ()
    search_path: tuple[str, ...] = DEFAULT_SEARCH_PATH
    interpreter: InterpreterProvider = Field(default_factory=InterpreterProvider)
    environment: tuple[str, ...] = ()
    timeout: int = 600

    @field_validator("ensure", mode="before")
    @classmethod
    def _parse_ensure(cls, value: Any) -> Any:
        return _coerce_ensure(value)

    @field_validator("ensure")
    @classmethod
    def _present_or_absent(cls, value: EnsureState) -> EnsureState:
        if value.kind not in (EnsureKind.PRESENT, EnsureKind.ABSENT):
            raise ValueError("A virtualenv can only be present or absent")
        return value

    @field_validator("version", mode="before")
    @classmethod
    def _version_text(cls, value: Any) -> Any:
        # YAML reads ``3.8`` as a float; ``3.10`` must be quoted.
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("pip_args", "search_path", "environment", mode="before")
    @classmethod
    def _listish(cls, value: Any) -> Any:
        return _coerce_tuple(value)
