# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the Paramex project configuration file."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".paramex.yaml"


class WorkspaceConfigError(Exception):
    """Raised when a configuration file is invalid or cannot be loaded."""


@dataclass
class WorkspaceConfig:
    """Options controlling how tests are expanded.

    Attributes:
        pad_indices: Zero-pad case and matrix indices in instantiation names
            to the digit count of their dimension size.
        describe_values: Append a fragment derived from simple literal values
            to matrix name segments.
        strip_fixture_underscore: Drop one leading underscore from a parameter
            name when deriving its implicit fixture name.
    """

    pad_indices: bool = True
    describe_values: bool = False
    strip_fixture_underscore: bool = True


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load and parse a Paramex configuration file.

    Args:
        path: Path to the `.paramex.yaml` file.

    Returns:
        A WorkspaceConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read config file: {exc}") from exc

    return _parse_workspace_config(text, source_label=str(path))


def find_workspace_config(start: Path) -> Path | None:
    """Return the nearest `.paramex.yaml` in *start* or one of its parents."""
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        config_path = candidate / CONFIG_FILE_NAME
        if config_path.is_file():
            return config_path
    return None


# ################
# Implementation
# ################

# YAML key -> WorkspaceConfig attribute.
_KEYS: dict[str, str] = {f.name.replace("_", "-"): f.name for f in fields(WorkspaceConfig)}


def _parse_workspace_config(text: str, source_label: str = "<string>") -> WorkspaceConfig:
    """Parse config YAML text into a WorkspaceConfig.

    An empty document yields the defaults.

    Raises:
        WorkspaceConfigError: If the YAML is invalid, not a mapping, contains
            unknown keys, or has values of the wrong type.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if data is None:
        return WorkspaceConfig()
    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: config must be a YAML mapping")

    unknown = sorted(str(key) for key in data if key not in _KEYS)
    if unknown:
        raise WorkspaceConfigError(f"{source_label}: unknown field(s) {', '.join(repr(k) for k in unknown)}")

    config = WorkspaceConfig()
    for key, attribute in _KEYS.items():
        if key in data:
            setattr(config, attribute, _require_bool(data, key, source_label))
    return config


def _require_bool(mapping: dict[str, object], key: str, source_label: str) -> bool:
    """Extract a boolean field from a mapping, raising WorkspaceConfigError on other types."""
    value = mapping[key]
    if not isinstance(value, bool):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a boolean")
    return value
