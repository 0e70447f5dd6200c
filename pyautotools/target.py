# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Work out which triplets to hand to ``configure``.

The ``host`` and ``target`` names used here follow the meaning build
orchestrators give them: the host is the machine running the compiler and the
target is the machine the built artifact runs on. Autotools calls these the
"build" and "host" machines respectively, so a cross compile for ``target``
becomes ``configure --host=<target> --build=<host>``.
"""
from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from .common import get_triplet

log = logging.getLogger(__name__)


class TargetInfo(Protocol):
    """The platform information a build orchestrator provides."""

    def ambient_target_triple(self) -> Optional[str]:
        ...

    def ambient_host_triple(self) -> Optional[str]:
        ...

    def is_emscripten(self, triple: str) -> bool:
        ...


class EnvironmentTarget:
    """
    Read the target and host triplets from the ``TARGET`` and ``HOST``
    environment variables, as exported to build scripts by their orchestrator.
    """

    def ambient_target_triple(self) -> Optional[str]:
        return os.environ.get("TARGET") or None

    def ambient_host_triple(self) -> Optional[str]:
        return os.environ.get("HOST") or None

    def is_emscripten(self, triple: str) -> bool:
        return "emscripten" in triple


class ResolvedTarget:
    """
    The triplets a single build will use.

    :param target: Triplet the built artifacts will run on
    :type target: str
    :param host: Triplet of the machine running the compiler
    :type host: str
    :param emscripten: Wrap configure and make with ``emconfigure`` and ``emmake``
    :type emscripten: bool
    """

    def __init__(self, target: str, host: str, emscripten: bool = False) -> None:
        self.target = target
        self.host = host
        self.emscripten = emscripten

    @property
    def cross(self) -> bool:
        """True when the artifacts are built for another machine."""
        return self.target != self.host

    def configure_args(
        self, cc_path: Optional[str] = None, explicit_host: bool = False
    ) -> list[str]:
        """
        The ``--host`` and ``--build`` arguments for configure.

        Native builds get neither and are left to configure's own detection.
        When cross compiling the autotools host is taken from the compiler's
        prefix, eg. ``aarch64-linux-gnu`` from ``aarch64-linux-gnu-gcc``,
        falling back to the target triplet.

        :param cc_path: The C compiler that will be used
        :type cc_path: str
        :param explicit_host: The caller already passes ``--host`` themselves
        :type explicit_host: bool
        """
        if not self.cross:
            return []
        args = []
        if not explicit_host:
            args.append(f"--host={compiler_prefix(cc_path) or self.target}")
        args.append(f"--build={self.host}")
        return args

    def __repr__(self) -> str:
        return (
            f"ResolvedTarget(target={self.target!r}, host={self.host!r}, "
            f"emscripten={self.emscripten!r})"
        )


def compiler_prefix(cc_path: Optional[str]) -> Optional[str]:
    """
    Return the triplet prefix of a cross compiler's name, if it has one.

    ``cc_path`` can be a whole command, eg. ``ccache aarch64-linux-gnu-gcc``.
    """
    # The compiler is the last word of wrapped commands like "ccache gcc"
    words = (cc_path or "").split()
    if not words:
        return None
    name = os.path.basename(words[-1])
    if name == "musl-gcc":
        return None
    for suffix in ("-gcc", "-cc"):
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return None


def resolve_target(
    target: Optional[str] = None,
    host: Optional[str] = None,
    info: Optional[TargetInfo] = None,
) -> ResolvedTarget:
    """
    Resolve the triplets for a build.

    Explicit values win, then the orchestrator's ambient values, then the
    triplet of the running machine. This never fails.
    """
    if info is None:
        info = EnvironmentTarget()
    native = get_triplet()
    if host is None:
        host = info.ambient_host_triple() or native
    if target is None:
        target = info.ambient_target_triple() or host
    resolved = ResolvedTarget(target, host, info.is_emscripten(target))
    log.debug("Resolved %r", resolved)
    return resolved
