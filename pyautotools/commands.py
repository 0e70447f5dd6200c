# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Turn a build configuration into the processes that build it.
"""
from __future__ import annotations

import logging
import os
import pathlib
import shlex
import subprocess
import sys
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

from .toolchain import Compilers

if TYPE_CHECKING:
    from .config import Config
    from .target import ResolvedTarget

log = logging.getLogger(__name__)

AUTORECONF = "autoreconf"
CONFIGURE = "configure"
MAKE = "make"
INSTALL = "install"

# Passed to configure both in the environment and as trailing arguments
COMPILER_VARS = ("CC", "CXX", "CFLAGS", "CXXFLAGS", "LDFLAGS")


class ProcessSpec:
    """
    A single process to run as part of the build.

    :param name: The build step this process performs
    :type name: str
    :param program: The program to execute
    :type program: str
    :param args: The arguments to the program
    :type args: list
    :param cwd: The working directory
    :type cwd: ``pathlib.Path``
    :param env: Variables laid over the inherited environment
    :type env: dict
    """

    def __init__(
        self,
        name: str,
        program: str,
        args: Sequence[str],
        cwd: pathlib.Path,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.name = name
        self.program = program
        self.args = list(args)
        self.cwd = cwd
        self.env = dict(env or {})

    @property
    def argv(self) -> list[str]:
        return [self.program] + self.args

    def describe(self) -> str:
        """
        A stable description of this process, used to detect changed configurations.
        """
        words = [f"{k}={shlex.quote(v)}" for k, v in sorted(self.env.items())]
        words.append(shlex.join(self.argv))
        return "cd {} && {}\n".format(shlex.quote(str(self.cwd)), " ".join(words))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProcessSpec):
            return NotImplemented
        return (
            self.name == other.name
            and self.argv == other.argv
            and self.cwd == other.cwd
            and self.env == other.env
        )

    def __repr__(self) -> str:
        return (
            f"ProcessSpec(name={self.name!r}, program={self.program!r}, "
            f"args={self.args!r}, cwd={str(self.cwd)!r}, env={self.env!r})"
        )


def build_dir(config: "Config") -> pathlib.Path:
    """
    The directory configure and make run in.

    Out of source (VPATH) builds run in the output directory. Builds go in
    the source tree when asked to, when the output directory is the source
    tree, or when the source tree was already configured in place, which
    makes configure refuse a VPATH build.
    """
    out_dir = config.out_dir_path
    if config.build_insource or out_dir == config.path:
        return config.path
    if (config.path / "config.status").exists():
        log.warning(
            "%s is already configured in place, building in the source tree",
            config.path,
        )
        return config.path
    return out_dir


def _join(*parts: Optional[str]) -> str:
    return " ".join(_ for _ in parts if _)


def _ambient(config: "Config", name: str) -> Optional[str]:
    if name in config.env_vars:
        return config.env_vars[name]
    return os.environ.get(name)


def compiler_vars(
    config: "Config", compilers: Optional[Compilers]
) -> dict[str, str]:
    """
    The ``CC``, ``CXX`` and flag variables for configure.

    Baseline compiler flags come first, then the inherited value of the
    variable, then flags added to the configuration. Later flags win when
    they conflict. Variables with no value are left out.
    """
    cc = config.env_vars.get("CC")
    cxx = config.env_vars.get("CXX")
    cflags: list[str] = []
    cxxflags: list[str] = []
    if compilers is not None:
        cc = cc or compilers.cc
        cxx = cxx or compilers.cxx
        cflags = compilers.cflags
        cxxflags = compilers.cxxflags
    values = {
        "CC": cc,
        "CXX": cxx,
        "CFLAGS": _join(
            " ".join(cflags), _ambient(config, "CFLAGS"), " ".join(config.cflags)
        ),
        "CXXFLAGS": _join(
            " ".join(cxxflags),
            _ambient(config, "CXXFLAGS"),
            " ".join(config.cxxflags),
        ),
        "LDFLAGS": _join(_ambient(config, "LDFLAGS"), " ".join(config.ldflags)),
    }
    return {k: v for k, v in values.items() if v}


def unix_paths(*paths: pathlib.Path) -> Optional[list[str]]:
    """
    Convert Windows paths to the form a Cygwin or MSYS configure accepts.

    :return: The converted paths, or None when ``cygpath`` is unavailable
    """
    cmd = ["cygpath", "--unix", "--codepage=UTF8"] + [str(_) for _ in paths]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as exc:
        log.warning("Unable to run cygpath, passing Windows paths: %s", exc)
        return None
    lines = proc.stdout.splitlines()
    if proc.returncode != 0 or len(lines) < len(paths):
        log.warning("cygpath failed, passing Windows paths: %s", proc.stderr)
        return None
    return lines[: len(paths)]


def _forbidden(config: "Config", arg: str) -> bool:
    return arg.split("=", 1)[0] in config.forbidden_args


def configure_args(
    config: "Config",
    target: "ResolvedTarget",
    compilers: Optional[Compilers],
) -> list[str]:
    """
    The arguments to configure, without the program itself.
    """
    assignments = compiler_vars(config, compilers)
    args = [f"--prefix={config.out_dir_path}"]
    if sys.platform == "win32":
        # configure refuses backslashes in the prefix and in the srcdir it finds
        converted = unix_paths(config.out_dir_path, config.path)
        if converted:
            args = [f"--prefix={converted[0]}", f"--srcdir={converted[1]}"]
    args.extend(
        target.configure_args(
            assignments.get("CC"), explicit_host=config.has_option("host")
        )
    )
    if config.shared is not None:
        args.append("--enable-shared" if config.shared else "--disable-shared")
    if config.static is not None:
        args.append("--enable-static" if config.static else "--disable-static")
    args.extend(config.option_args())
    args.extend(config.config_args)
    args.extend(f"{k}={v}" for k, v in assignments.items())
    return [_ for _ in args if not _forbidden(config, _)]


def make_program(config: "Config") -> str:
    return _ambient(config, "MAKE") or "make"


def make_jobs(config: "Config") -> list[str]:
    if config.num_jobs is not None:
        return [f"-j{config.num_jobs}"]
    num_jobs = _ambient(config, "NUM_JOBS")
    if num_jobs:
        return [f"-j{num_jobs}"]
    return []


def synthesize(
    config: "Config",
    target: "ResolvedTarget",
    compilers: Optional[Compilers],
    configure_only: bool = False,
) -> list[ProcessSpec]:
    """
    Produce the ordered processes for a build.

    ``autoreconf`` when requested, then ``configure``, ``make`` and
    ``make install``. Emscripten targets run configure and make through
    ``emconfigure`` and ``emmake`` with otherwise identical arguments.

    :param config: The build configuration
    :type config: ``pyautotools.config.Config``
    :param target: The resolved triplets
    :type target: ``pyautotools.target.ResolvedTarget``
    :param compilers: The compilers to use, None when none were found
    :type compilers: ``pyautotools.toolchain.Compilers``
    :param configure_only: Stop after the configure step
    :type configure_only: bool

    :return: The processes to run, in order
    :rtype: list
    """
    specs = []
    cwd = build_dir(config)
    if config.reconf_flags is not None:
        specs.append(
            ProcessSpec(
                AUTORECONF,
                AUTORECONF,
                shlex.split(config.reconf_flags),
                config.path,
                config.env_vars,
            )
        )

    env = dict(config.env_vars)
    env.update(compiler_vars(config, compilers))
    args = configure_args(config, target, compilers)
    configure = str(config.path / CONFIGURE)
    if target.emscripten:
        specs.append(ProcessSpec(CONFIGURE, "emconfigure", [configure] + args, cwd, env))
    else:
        specs.append(ProcessSpec(CONFIGURE, configure, args, cwd, env))
    if configure_only:
        return specs

    make = make_program(config)
    steps = [
        (MAKE, make_jobs(config) + config.extra_make_args),
        (INSTALL, list(config.make_targets or [INSTALL])),
    ]
    for name, make_args in steps:
        if target.emscripten:
            spec = ProcessSpec(name, "emmake", [make] + make_args, cwd, config.env_vars)
        else:
            spec = ProcessSpec(name, make, make_args, cwd, config.env_vars)
        specs.append(spec)
    return specs
