"""
Manifest model — the contents of pipstate.yml.

The manifest declares the packages and virtualenvs a host should have.
Defaults apply to every package entry; a package entry overrides any
default it sets explicitly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pipstate.core.models.request import (
    DEFAULT_SEARCH_PATH,
    DEFAULT_TIMEOUT,
    InterpreterProvider,
    RequestSpec,
    VenvRequest,
)

# Only schema version understood by this release.
MANIFEST_VERSION = 1


class PackageDefaults(BaseModel):
    """Settings shared by every package in the manifest."""

    model_config = ConfigDict(extra="forbid")

    provider: str = "pip"
    proxy: str | None = None
    index: str | None = None
    virtualenv: str | None = None
    log_path: str | None = None
    search_path: list[str] = Field(default_factory=lambda: list(DEFAULT_SEARCH_PATH))
    interpreter: InterpreterProvider = Field(default_factory=InterpreterProvider)
    timeout: int = DEFAULT_TIMEOUT


class Manifest(BaseModel):
    """Root of pipstate.yml.

    ``packages`` entries are kept as raw mappings until ``requests()``
    merges them with the defaults, so that "unset" and "set to the
    default value" stay distinguishable.
    """

    model_config = ConfigDict(extra="forbid")

    version: int = MANIFEST_VERSION
    defaults: PackageDefaults = Field(default_factory=PackageDefaults)
    packages: list[dict[str, Any]] = Field(default_factory=list)
    virtualenvs: list[VenvRequest] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _known_version(cls, value: int) -> int:
        if value != MANIFEST_VERSION:
            raise ValueError(
                f"Unsupported manifest version {value}: expected {MANIFEST_VERSION}"
            )
        return value

    def requests(self) -> list[RequestSpec]:
        """Build one RequestSpec per package entry, defaults applied.

        Raises:
            pydantic.ValidationError: If an entry is invalid.
        """
        base = self.defaults.model_dump(exclude_none=True)
        specs: list[RequestSpec] = []
        for entry in self.packages:
            specs.append(RequestSpec.model_validate({**base, **entry}))
        return specs
