# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Locate the C and C++ compilers for a triplet.
"""
from __future__ import annotations

import logging
import os
import shutil
from typing import Optional, Protocol

from .common import get_triplet

log = logging.getLogger(__name__)

DEFAULT_CFLAGS = ["-ffunction-sections", "-fdata-sections", "-fPIC"]


class Compilers:
    """
    The compilers and baseline flags for one target.

    :param cc: Path to the C compiler
    :type cc: str
    :param cflags: Baseline flags for the C compiler
    :type cflags: list
    :param cxx: Path to the C++ compiler, if there is one
    :type cxx: str
    :param cxxflags: Baseline flags for the C++ compiler
    :type cxxflags: list
    """

    def __init__(
        self,
        cc: str,
        cflags: Optional[list[str]] = None,
        cxx: Optional[str] = None,
        cxxflags: Optional[list[str]] = None,
    ) -> None:
        self.cc = cc
        self.cflags = list(cflags or [])
        self.cxx = cxx
        self.cxxflags = list(cxxflags or [])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Compilers):
            return NotImplemented
        return (self.cc, self.cflags, self.cxx, self.cxxflags) == (
            other.cc,
            other.cflags,
            other.cxx,
            other.cxxflags,
        )

    def __repr__(self) -> str:
        return (
            f"Compilers(cc={self.cc!r}, cflags={self.cflags!r}, "
            f"cxx={self.cxx!r}, cxxflags={self.cxxflags!r})"
        )


class CompilerResolver(Protocol):
    """Anything that can find compilers for a triplet."""

    def __call__(self, triple: str) -> Optional[Compilers]:
        ...


def _from_env(name: str, triple: str) -> Optional[str]:
    # CC_aarch64_linux_gnu, then CC_aarch64-linux-gnu, then CC
    for key in (
        f"{name}_{triple.replace('-', '_')}",
        f"{name}_{triple}",
        name,
    ):
        value = os.environ.get(key)
        if value:
            return value
    return None


def _which(candidates: list[str]) -> Optional[str]:
    for candidate in candidates:
        found = shutil.which(candidate)
        if found:
            return found
    return None


def baseline_flags(triple: str) -> list[str]:
    """
    Flags every compile for the triplet starts from.
    """
    flags = list(DEFAULT_CFLAGS)
    arch = triple.split("-", 1)[0]
    if arch in ("x86_64", "amd64"):
        flags.append("-m64")
    elif arch in ("i386", "i586", "i686", "x86"):
        flags.append("-m32")
    return flags


def resolve_compilers(
    triple: str, native: Optional[str] = None
) -> Optional[Compilers]:
    """
    Find the compilers for a triplet.

    ``CC``/``CXX`` from the environment, optionally suffixed with the
    triplet, take precedence. Otherwise cross compilers are looked up by
    their prefixed names on ``PATH`` and native builds use the usual
    compiler names.

    :param triple: The triplet being built for
    :type triple: str
    :param native: The triplet of the running machine
    :type native: str

    :return: The compilers, or None when no C compiler could be found
    """
    if native is None:
        native = get_triplet()
    if "emscripten" in triple:
        cc_names = ["emcc"]
        cxx_names = ["em++"]
    elif triple != native:
        cc_names = [f"{triple}-gcc", f"{triple}-cc", f"{triple}-clang"]
        cxx_names = [f"{triple}-g++", f"{triple}-c++", f"{triple}-clang++"]
    else:
        cc_names = ["cc", "gcc", "clang"]
        cxx_names = ["c++", "g++", "clang++"]

    # Values like CC="ccache gcc" are kept whole, configure accepts them
    cc = _from_env("CC", triple) or _which(cc_names)
    if not cc:
        log.warning("No C compiler found for %s", triple)
        return None

    cxx = _from_env("CXX", triple) or _which(cxx_names)
    log.debug("Compilers for %s cc=%s cxx=%s", triple, cc, cxx)
    return Compilers(cc, baseline_flags(triple), cxx, baseline_flags(triple))
