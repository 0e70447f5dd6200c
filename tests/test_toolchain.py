# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
#
from unittest.mock import patch

import pytest

from pyautotools.toolchain import (
    DEFAULT_CFLAGS,
    Compilers,
    baseline_flags,
    resolve_compilers,
)

# mypy: ignore-errors

NATIVE = "x86_64-linux-gnu"


def _which_from(available):
    def which(name):
        if name in available:
            return f"/usr/bin/{name}"
        return None

    return which


@pytest.fixture(autouse=True)
def no_compiler_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("CC", "CXX", "CC_aarch64_linux_gnu", "CXX_aarch64_linux_gnu"):
        monkeypatch.delenv(name, raising=False)


def test_baseline_flags() -> None:
    assert baseline_flags("x86_64-linux-gnu") == DEFAULT_CFLAGS + ["-m64"]
    assert baseline_flags("i686-linux-gnu") == DEFAULT_CFLAGS + ["-m32"]
    assert baseline_flags("aarch64-linux-gnu") == DEFAULT_CFLAGS


def test_resolve_native() -> None:
    with patch("pyautotools.toolchain.shutil.which", _which_from({"gcc", "g++"})):
        compilers = resolve_compilers(NATIVE, native=NATIVE)
    assert compilers == Compilers(
        "/usr/bin/gcc",
        baseline_flags(NATIVE),
        "/usr/bin/g++",
        baseline_flags(NATIVE),
    )


def test_resolve_cross_uses_prefixed_names() -> None:
    available = {"gcc", "aarch64-linux-gnu-gcc", "aarch64-linux-gnu-g++"}
    with patch("pyautotools.toolchain.shutil.which", _which_from(available)):
        compilers = resolve_compilers("aarch64-linux-gnu", native=NATIVE)
    assert compilers.cc == "/usr/bin/aarch64-linux-gnu-gcc"
    assert compilers.cxx == "/usr/bin/aarch64-linux-gnu-g++"


def test_resolve_emscripten() -> None:
    with patch("pyautotools.toolchain.shutil.which", _which_from({"emcc", "em++"})):
        compilers = resolve_compilers("wasm32-unknown-emscripten", native=NATIVE)
    assert compilers.cc == "/usr/bin/emcc"
    assert compilers.cxx == "/usr/bin/em++"


def test_resolve_not_found_is_none() -> None:
    with patch("pyautotools.toolchain.shutil.which", _which_from(set())):
        assert resolve_compilers("aarch64-linux-gnu", native=NATIVE) is None


def test_resolve_cxx_optional() -> None:
    with patch("pyautotools.toolchain.shutil.which", _which_from({"cc"})):
        compilers = resolve_compilers(NATIVE, native=NATIVE)
    assert compilers.cc == "/usr/bin/cc"
    assert compilers.cxx is None


def test_resolve_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CC", "ccache clang")
    monkeypatch.setenv("CXX", "clang++")
    with patch("pyautotools.toolchain.shutil.which", _which_from(set())):
        compilers = resolve_compilers(NATIVE, native=NATIVE)
    assert compilers.cc == "ccache clang"
    assert compilers.cflags == baseline_flags(NATIVE)
    assert compilers.cxx == "clang++"


def test_resolve_triplet_env_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CC", "gcc")
    monkeypatch.setenv("CC_aarch64_linux_gnu", "/opt/cross/bin/cc")
    with patch("pyautotools.toolchain.shutil.which", _which_from(set())):
        compilers = resolve_compilers("aarch64-linux-gnu", native=NATIVE)
    assert compilers.cc == "/opt/cross/bin/cc"


def test_resolve_orchestrator_native_triplet() -> None:
    triple = "x86_64-unknown-linux-gnu"
    with patch("pyautotools.toolchain.shutil.which", _which_from({"gcc", "g++"})):
        compilers = resolve_compilers(triple, native=triple)
    assert compilers.cc == "/usr/bin/gcc"
    assert compilers.cxx == "/usr/bin/g++"
