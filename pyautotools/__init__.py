# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pathlib
import sys

from pyautotools.common import (
    AutotoolsException,
    ConfigurationError,
    IoError,
    PathLike,
    StepFailed,
    ToolNotFound,
    __version__,
)
from pyautotools.config import Config

MIN_SUPPORTED_PYTHON = (3, 10)

if sys.version_info < MIN_SUPPORTED_PYTHON:
    raise RuntimeError("pyautotools requires Python 3.10 or newer.")


def build(path: PathLike) -> pathlib.Path:
    """
    Build the project at ``path`` with the default options.

    :return: The directory the project was installed into
    :rtype: ``pathlib.Path``
    """
    return Config(path).build()


__all__ = [
    "__version__",
    "AutotoolsException",
    "Config",
    "ConfigurationError",
    "IoError",
    "StepFailed",
    "ToolNotFound",
    "build",
]
