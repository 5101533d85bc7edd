# Copyright 2026 Paramex Contributors
# SPDX-License-Identifier: Apache-2.0

"""Logging setup for Paramex.

Library modules log through ``loguru.logger``. Their records are disabled on
import and stay silent until an application calls :func:`setup_logging`.
"""

import sys
from pathlib import Path

from loguru import logger

# ###############
# Public Interface
# ###############

PACKAGE = "paramex"

CONSOLE_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str = "WARNING", *, json_output: bool = False, log_file: Path | None = None) -> None:
    """Replace all sinks and enable Paramex's records.

    Args:
        level: Minimum level written to stderr.
        json_output: Write one JSON object per record instead of text, to
            stderr and to *log_file*.
        log_file: Also append every record, down to DEBUG, to this file.
    """
    logger.remove()
    logger.enable(PACKAGE)

    if json_output:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if log_file is not None:
        logger.add(log_file, level="DEBUG", format=FILE_FORMAT, serialize=json_output, encoding="utf-8")
