# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration for Paramex."""

from paramex.workspace.config import (
    CONFIG_FILE_NAME,
    WorkspaceConfig,
    WorkspaceConfigError,
    find_workspace_config,
    load_workspace_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "find_workspace_config",
    "load_workspace_config",
]
