# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Common classes and values used around pyautotools.
"""
from __future__ import annotations

import logging
import os
import pathlib
import platform
import selectors
import subprocess
import sys
from typing import IO, Any, Mapping, Optional, Sequence, Union, cast

# pyautotools package version
__version__ = "0.3.0"

log = logging.getLogger(__name__)

MODULE_DIR = pathlib.Path(__file__).resolve().parent

LINUX = "linux"
WIN32 = "win32"
DARWIN = "darwin"

if sys.platform == "win32":
    DEFAULT_DATA_DIR = pathlib.Path.home() / "AppData" / "Local" / "pyautotools"
else:
    DEFAULT_DATA_DIR = pathlib.Path.home() / ".local" / "pyautotools"

DATA_DIR = pathlib.Path(
    os.environ.get("PYAUTOTOOLS_DATA", DEFAULT_DATA_DIR)
).resolve()

PathLike = Union[str, os.PathLike[str]]


class AutotoolsException(Exception):
    """
    Base class for exeptions generated from pyautotools.
    """


class ConfigurationError(AutotoolsException):
    """
    The source tree can not be built: it is missing or has no configure entry point.
    """


class ToolNotFound(AutotoolsException):
    """
    A program needed by a build step could not be executed.

    :param step: The name of the step being run
    :type step: str
    :param program: The program that could not be spawned
    :type program: str
    """

    def __init__(self, step: str, program: str, reason: str = "") -> None:
        self.step = step
        self.program = program
        msg = f"Failed to execute '{program}' for step {step}, is it installed?"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class StepFailed(AutotoolsException):
    """
    A build step exited with a non zero status.

    :param step: The name of the step that failed
    :type step: str
    :param returncode: The exit status of the process
    :type returncode: int
    """

    def __init__(self, step: str, returncode: int) -> None:
        self.step = step
        self.returncode = returncode
        super().__init__(f"Build step {step} failed with exit status {returncode}")


class IoError(AutotoolsException):
    """
    Unable to create the output directory or read and write build state files.
    """


def build_arch() -> str:
    """
    Return the current machine.
    """
    machine = platform.machine()
    return machine.lower()


def get_triplet(machine: Optional[str] = None, plat: Optional[str] = None) -> str:
    """
    Get the autotools triplet for the specified machine and platform.

    If any of the args are None, it will try to deduce what they should be.

    :param machine: The machine for the triplet
    :type machine: str
    :param plat: The platform for the triplet
    :type plat: str

    :return: The triplet
    :rtype: str
    """
    if not plat:
        plat = sys.platform
    if not machine:
        machine = build_arch()
    if plat == DARWIN:
        return f"{machine}-apple-darwin"
    elif plat == WIN32:
        return f"{machine}-w64-mingw32"
    elif plat == LINUX:
        return f"{machine}-linux-gnu"
    return f"{machine}-unknown-{plat}"


def plat_from_triplet(triplet: str) -> str:
    """
    Convert the system part of a triplet to the matching value of sys.platform.

    :raises AutotoolsException: If the platform is unknown
    """
    if "linux" in triplet:
        return LINUX
    elif "darwin" in triplet or "apple" in triplet:
        return DARWIN
    elif "mingw" in triplet or "windows" in triplet:
        return WIN32
    raise AutotoolsException(f"Unkown platform {triplet}")


def work_dir(name: str, root: Optional[PathLike] = None) -> pathlib.Path:
    """
    Get the absolute path to the pyautotools working directory of the given name.

    :param name: The name of the directory
    :type name: str
    :param root: The root directory that this working directory will be relative to
    :type root: str

    :return: An absolute path to the requested working directory
    :rtype: ``pathlib.Path``
    """
    if root is None:
        base = DATA_DIR
    else:
        base = pathlib.Path(root).resolve()
    return base / name


def default_out_dir(source: PathLike) -> pathlib.Path:
    """
    The directory used for the build when none was configured.

    Build orchestrators export ``OUT_DIR`` for this purpose, otherwise a
    directory named after the source tree is used under the data directory.
    """
    if os.environ.get("OUT_DIR"):
        return pathlib.Path(os.environ["OUT_DIR"]).resolve()
    return work_dir("build") / pathlib.Path(source).name


def ensure_dir(path: PathLike) -> pathlib.Path:
    """
    Create a directory and any missing parents.

    :raises IoError: If the directory could not be created
    """
    path = pathlib.Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError(f"Unable to create directory {path}: {exc}") from exc
    return path


def runcmd(
    cmd: Sequence[str],
    *,
    step: str = "",
    cwd: Optional[PathLike] = None,
    env: Optional[Mapping[str, str]] = None,
    capture: bool = False,
    **kwargs: Any,
) -> subprocess.Popen[str]:
    """
    Run a command.

    Run the provided command, raising an Exception when the command finishes
    with a non zero exit code. Extra keyword arguments are passed through to
    ``subprocess.Popen``.

    By default the child inherits stdout and stderr. When ``capture`` is True
    the output is read line by line and sent to the logger, stdout at INFO
    and stderr at ERROR.

    :return: The finished process
    :rtype: ``subprocess.Popen``

    :raises ToolNotFound: If the program could not be executed
    :raises StepFailed: If the command finishes with a non zero exit code
    """
    if not cmd:
        raise AutotoolsException("No command provided to runcmd")
    if not step:
        step = pathlib.Path(cmd[0]).name
    log.debug("Running command: %s", " ".join(map(str, cmd)))
    if capture:
        kwargs["stdout"] = subprocess.PIPE
        if sys.platform == "win32":
            # Selectors do not work with pipes on windows
            kwargs["stderr"] = subprocess.STDOUT
        else:
            kwargs["stderr"] = subprocess.PIPE
        kwargs.setdefault("universal_newlines", True)
    try:
        p = subprocess.Popen(
            [str(_) for _ in cmd],
            cwd=None if cwd is None else str(cwd),
            env=None if env is None else dict(env),
            **kwargs,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ToolNotFound(step, str(cmd[0]), str(exc)) from exc
    if capture:
        _log_output(p)
    p.wait()
    if p.returncode != 0:
        raise StepFailed(step, p.returncode)
    return p


def _log_output(p: subprocess.Popen[str]) -> None:
    stdout_stream = p.stdout
    stderr_stream = p.stderr
    if stdout_stream is None:
        return
    if stderr_stream is None:
        for line in stdout_stream:
            log.info(line.rstrip("\n"))
        return
    # Read both stdout and stderr simultaneously
    sel = selectors.DefaultSelector()
    sel.register(stdout_stream, selectors.EVENT_READ)
    sel.register(stderr_stream, selectors.EVENT_READ)
    open_streams = 2
    while open_streams:
        for key, _ in sel.select():
            stream = cast(IO[str], key.fileobj)
            line = stream.readline()
            if not line:
                sel.unregister(stream)
                open_streams -= 1
                continue
            if line.endswith("\n"):
                line = line[:-1]
            if stream is stdout_stream:
                log.info(line)
            else:
                log.error(line)
    sel.close()
