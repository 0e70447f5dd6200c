# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Run the processes of an autotools build in order.
"""
from __future__ import annotations

import functools
import logging
import os
import pathlib
import subprocess
import sys
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

from .commands import CONFIGURE, ProcessSpec, synthesize
from .common import (
    ConfigurationError,
    IoError,
    ToolNotFound,
    ensure_dir,
    runcmd,
)
from .target import resolve_target
from .toolchain import resolve_compilers

if TYPE_CHECKING:
    from .config import Config
    from .target import TargetInfo
    from .toolchain import CompilerResolver

log = logging.getLogger(__name__)

Runner = Callable[..., Any]

CONFIGURE_PREV = "configure.prev"

# Programs are started through sh so shell scripts like configure work where
# the platform can not execute them directly.
SH_EXEC = ["sh", "-c", 'exec "$0" "$@"']


def validate_source(config: "Config") -> None:
    """
    Make sure the source tree has a configure entry point.

    :raises ConfigurationError: If the tree is missing or has neither
        ``configure`` nor ``configure.ac``
    """
    path = config.path
    if not path.is_dir():
        raise ConfigurationError(f"Source directory {path} does not exist")
    has_configure = (path / "configure").exists()
    if not has_configure and not (path / "configure.ac").exists():
        raise ConfigurationError(f"No configure or configure.ac found in {path}")
    if not has_configure and config.reconf_flags is None:
        log.warning(
            "%s has no configure script and reconf was not requested", path
        )


def check_shell() -> None:
    """
    Make sure ``sh`` can run, every step is started through it on Windows.

    :raises ToolNotFound: If ``sh`` is missing or does not work
    """
    try:
        proc = subprocess.run(
            ["sh", "-c", "echo test; true"], capture_output=True, text=True
        )
    except OSError as exc:
        raise ToolNotFound(CONFIGURE, "sh", str(exc)) from exc
    if proc.returncode != 0:
        log.debug("sh output: %s", proc.stdout)
        raise ToolNotFound(
            CONFIGURE, "sh", f"exited with status {proc.returncode}"
        )


def _configure_prev(spec: ProcessSpec) -> pathlib.Path:
    return spec.cwd / CONFIGURE_PREV


def configure_unchanged(spec: ProcessSpec) -> bool:
    """
    True when configure already ran in the build directory with the same
    arguments and environment, and left its outputs behind.
    """
    prev = _configure_prev(spec)
    for name in ("config.status", "Makefile", CONFIGURE_PREV):
        if not (spec.cwd / name).exists():
            return False
    try:
        return prev.read_text() == spec.describe()
    except OSError as exc:
        raise IoError(f"Unable to read {prev}: {exc}") from exc


def record_configure(spec: ProcessSpec) -> None:
    prev = _configure_prev(spec)
    try:
        prev.write_text(spec.describe())
    except OSError as exc:
        raise IoError(f"Unable to write {prev}: {exc}") from exc


def run_pipeline(
    specs: Sequence[ProcessSpec],
    out_dir: pathlib.Path,
    runner: Runner = runcmd,
    capture: bool = False,
    fast: bool = False,
) -> None:
    """
    Run each process in order, stopping at the first failure.

    Nothing left on disk by a failed build is removed.

    :param specs: The processes to run
    :type specs: list
    :param out_dir: The output directory, created before each step if missing
    :type out_dir: ``pathlib.Path``
    :param runner: Runs a single command, defaults to ``runcmd``
    :type runner: types.FunctionType
    :param capture: Send process output to the log instead of the terminal
    :type capture: bool
    :param fast: Skip configure when its previous run is still current
    :type fast: bool

    :raises ToolNotFound: If a program could not be executed
    :raises StepFailed: If a process exits with a non zero status
    """
    for spec in specs:
        ensure_dir(out_dir)
        if spec.name == CONFIGURE and fast and configure_unchanged(spec):
            log.info("Configuration unchanged, skipping %s", spec.name)
            continue
        env = dict(os.environ)
        env.update(spec.env)
        argv = spec.argv
        if sys.platform == "win32":
            argv = SH_EXEC + argv
        log.info("Running step %s in %s", spec.name, spec.cwd)
        runner(argv, step=spec.name, cwd=spec.cwd, env=env, capture=capture)
        if spec.name == CONFIGURE:
            record_configure(spec)


def _prepare(
    config: "Config",
    compilers: Optional["CompilerResolver"],
    target_info: Optional["TargetInfo"],
    configure_only: bool,
) -> list[ProcessSpec]:
    validate_source(config)
    if sys.platform == "win32":
        check_shell()
    target = resolve_target(config.target_triple, config.host_triple, target_info)
    if compilers is None:
        # The resolved host decides which compiler names count as native
        compilers = functools.partial(resolve_compilers, native=target.host)
    return synthesize(config, target, compilers(target.target), configure_only)


def run_configure(
    config: "Config",
    compilers: Optional["CompilerResolver"] = None,
    target_info: Optional["TargetInfo"] = None,
    runner: Runner = runcmd,
    capture: bool = False,
) -> pathlib.Path:
    """
    Run autoreconf, when requested, and configure.

    :return: The install prefix
    :rtype: ``pathlib.Path``
    """
    specs = _prepare(config, compilers, target_info, configure_only=True)
    out_dir = config.out_dir_path
    run_pipeline(
        specs, out_dir, runner, capture, fast=config.skip_unchanged_configure
    )
    return out_dir


def run_build(
    config: "Config",
    compilers: Optional["CompilerResolver"] = None,
    target_info: Optional["TargetInfo"] = None,
    runner: Runner = runcmd,
    capture: bool = False,
) -> pathlib.Path:
    """
    Configure, build and install.

    The source tree is checked before anything runs, so a bad path never
    spawns a process. Every run repeats the whole sequence unless the
    configuration asked for fast builds.

    :param config: The build configuration
    :type config: ``pyautotools.config.Config``
    :param compilers: Finds compilers for the target, defaults to ``resolve_compilers``
    :type compilers: types.FunctionType
    :param target_info: Supplies the ambient triplets, defaults to the environment
    :type target_info: ``pyautotools.target.TargetInfo``
    :param runner: Runs a single command, defaults to ``runcmd``
    :type runner: types.FunctionType

    :raises ConfigurationError: If the source tree can not be built
    :raises ToolNotFound: If a program could not be executed
    :raises StepFailed: If a step exits with a non zero status
    :raises IoError: If the output directory could not be created

    :return: The install prefix, holding ``include``, ``lib`` and ``bin``
    :rtype: ``pathlib.Path``
    """
    specs = _prepare(config, compilers, target_info, configure_only=False)
    out_dir = config.out_dir_path
    run_pipeline(
        specs, out_dir, runner, capture, fast=config.skip_unchanged_configure
    )
    log.info("root=%s", out_dir)
    return out_dir
