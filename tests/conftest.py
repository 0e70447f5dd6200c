# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
#
import logging
import os
import pathlib
import shutil
from typing import Iterator, Optional

import pytest
from _pytest.config import Config

from pyautotools.common import StepFailed, get_triplet
from pyautotools.toolchain import Compilers
from tests._pytest_typing import fixture
from tests.helpers import AutotoolsProject

# mypy: ignore-errors


log = logging.getLogger(__name__)

NATIVE = get_triplet("x86_64", "linux")


def pytest_report_header(config: Config) -> str:
    return f"pyautotools native triplet: {get_triplet()}"


class FakeTarget:
    """Target information with fixed ambient triplets."""

    def __init__(self, target: Optional[str] = None, host: Optional[str] = None):
        self.target = target
        self.host = host

    def ambient_target_triple(self) -> Optional[str]:
        return self.target

    def ambient_host_triple(self) -> Optional[str]:
        return self.host

    def is_emscripten(self, triple: str) -> bool:
        return "emscripten" in triple


class FakeCompilers:
    """A compiler resolver that remembers the triplets it was asked about."""

    def __init__(self, found: bool = True):
        self.found = found
        self.requested = []

    def __call__(self, triple: str) -> Optional[Compilers]:
        self.requested.append(triple)
        if not self.found:
            return None
        prefix = "" if triple == NATIVE else f"{triple}-"
        return Compilers(
            f"/usr/bin/{prefix}gcc", ["-fPIC"], f"/usr/bin/{prefix}g++", ["-fPIC"]
        )


class RecordingRunner:
    """Stands in for runcmd, recording every call and optionally failing a step."""

    def __init__(self, fail_step: Optional[str] = None, returncode: int = 2):
        self.fail_step = fail_step
        self.returncode = returncode
        self.calls = []

    def __call__(self, cmd, step="", cwd=None, env=None, capture=False):
        self.calls.append(
            {"cmd": list(cmd), "step": step, "cwd": cwd, "env": env, "capture": capture}
        )
        if step == self.fail_step:
            raise StepFailed(step, self.returncode)

    @property
    def steps(self):
        return [_["step"] for _ in self.calls]


@fixture
def project(tmp_path: pathlib.Path) -> Iterator[AutotoolsProject]:
    with AutotoolsProject(tmp_path / "mylib") as proj:
        yield proj


@fixture
def out_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    return tmp_path / "out"


@fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@fixture
def compilers() -> FakeCompilers:
    return FakeCompilers()


@fixture
def native() -> FakeTarget:
    return FakeTarget(NATIVE, NATIVE)


@fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CC",
        "CXX",
        "CFLAGS",
        "CXXFLAGS",
        "LDFLAGS",
        "MAKE",
        "NUM_JOBS",
        "OUT_DIR",
        "TARGET",
        "HOST",
    ):
        monkeypatch.delenv(name, raising=False)


@fixture
def has_make() -> None:
    if shutil.which("make") is None or shutil.which("sh") is None:
        pytest.skip("make and sh are required")
    if os.name != "posix":
        pytest.skip("needs a posix shell to run configure")
