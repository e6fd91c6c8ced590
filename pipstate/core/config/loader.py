"""
Configuration loader — reads pipstate.yml into domain models.

This is the primary entry point for loading a package manifest.
It reads YAML, validates against Pydantic schemas, and returns typed
domain objects. Every problem surfaces as a ConfigError; nothing is
silently coerced.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from pipstate.core.models.manifest import Manifest
from pipstate.core.models.request import RequestSpec

logger = logging.getLogger(__name__)

# Default manifest filename
MANIFEST_FILE = "pipstate.yml"


class ConfigError(Exception):
    """Raised when a manifest or a request is invalid."""


def find_manifest_file(start_dir: Path | None = None) -> Path | None:
    """Search for pipstate.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to pipstate.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / MANIFEST_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_manifest(path: Path | None = None) -> Manifest:
    """Load and validate a manifest.

    Args:
        path: Explicit path to pipstate.yml. If None, searches upward.

    Returns:
        Validated Manifest model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_manifest_file()

    if path is None:
        raise ConfigError(
            f"No {MANIFEST_FILE} found. Create one or specify --config."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading manifest from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        manifest = Manifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid manifest {path}: {e}") from e

    logger.info(
        "Loaded manifest with %d packages and %d virtualenvs",
        len(manifest.packages),
        len(manifest.virtualenvs),
    )
    return manifest


def manifest_requests(manifest: Manifest) -> list[RequestSpec]:
    """Expand manifest package entries into RequestSpecs.

    Raises:
        ConfigError: If a package entry fails validation.
    """
    try:
        return manifest.requests()
    except ValidationError as e:
        raise ConfigError(f"Invalid package entry: {e}") from e
