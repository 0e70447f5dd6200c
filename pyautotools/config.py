# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Builder style configuration for a pending autotools build.
"""
from __future__ import annotations

import os
import pathlib
from typing import TYPE_CHECKING, Optional, Union

from .common import PathLike, default_out_dir, runcmd
from .pipeline import Runner, run_build, run_configure

if TYPE_CHECKING:
    from .target import TargetInfo
    from .toolchain import CompilerResolver

ENABLE = "enable"
DISABLE = "disable"
WITH = "with"
WITHOUT = "without"
ARBITRARY = "arbitrary"

# configure emits the grouped options in this order
OPTION_ORDER = (ENABLE, DISABLE, WITH, WITHOUT, ARBITRARY)


class Config:
    """
    Builder style configuration for a pending autotools build.

    Every setter mutates the configuration in place and returns it so calls
    can be chained. Nothing is validated until :meth:`build` runs; a bad
    option is handed to ``configure`` which is left to reject it.

    .. code-block:: python

        dst = (
            Config("libfoo")
            .reconf("-ivf")
            .enable("feature")
            .with_("dep")
            .disable("otherfeature")
            .cflag("-Wall")
            .build()
        )

    :param path: The source tree containing ``configure`` or ``configure.ac``
    :type path: str
    """

    def __init__(self, path: PathLike) -> None:
        self.path = pathlib.Path(os.getcwd()) / path
        self._out_dir: Optional[pathlib.Path] = None
        self.reconf_flags: Optional[str] = None
        self.options: list[tuple[str, str, Optional[str]]] = []
        self.config_args: list[str] = []
        self.cflags: list[str] = []
        self.cxxflags: list[str] = []
        self.ldflags: list[str] = []
        self.env_vars: dict[str, str] = {}
        self.target_triple: Optional[str] = None
        self.host_triple: Optional[str] = None
        self.num_jobs: Optional[Union[int, str]] = None
        self.extra_make_args: list[str] = []
        self.make_targets: Optional[list[str]] = None
        self.build_insource = False
        self.forbidden_args: set[str] = set()
        self.skip_unchanged_configure = False
        self.shared: Optional[bool] = None
        self.static: Optional[bool] = None

    @property
    def out_dir_path(self) -> pathlib.Path:
        """The install prefix and out of source build directory."""
        if self._out_dir is not None:
            return self._out_dir
        return default_out_dir(self.path)

    def out_dir(self, out: PathLike) -> "Config":
        """
        Sets the output directory for this build.

        Defaults to ``$OUT_DIR`` when it is exported by the build orchestrator.
        """
        self._out_dir = pathlib.Path(os.getcwd()) / out
        return self

    def reconf(self, flags: str) -> "Config":
        """Run ``autoreconf`` with these flags before configuring."""
        self.reconf_flags = flags
        return self

    def _set_opt(self, kind: str, name: str, value: Optional[str]) -> "Config":
        self.options.append((kind, name, value))
        return self

    def enable(self, name: str, value: Optional[str] = None) -> "Config":
        """Passes ``--enable-<name>[=<value>]`` to configure."""
        return self._set_opt(ENABLE, name, value)

    def disable(self, name: str, value: Optional[str] = None) -> "Config":
        """Passes ``--disable-<name>[=<value>]`` to configure."""
        return self._set_opt(DISABLE, name, value)

    def with_(self, name: str, value: Optional[str] = None) -> "Config":
        """Passes ``--with-<name>[=<value>]`` to configure."""
        return self._set_opt(WITH, name, value)

    def without(self, name: str, value: Optional[str] = None) -> "Config":
        """Passes ``--without-<name>[=<value>]`` to configure."""
        return self._set_opt(WITHOUT, name, value)

    def config_option(self, name: str, value: Optional[str] = None) -> "Config":
        """
        Passes ``--<name>[=<value>]`` to configure.

        Setting ``host`` this way replaces the ``--host`` worked out from the
        compiler when cross compiling.
        """
        return self._set_opt(ARBITRARY, name, value)

    def config_arg(self, arg: str) -> "Config":
        """Passes a raw argument to configure, after all other options."""
        self.config_args.append(arg)
        return self

    def cflag(self, flag: str) -> "Config":
        """
        Adds a flag for the C compiler.

        Compiler defaults come first, then ``$CFLAGS``, then these.
        """
        self.cflags.append(flag)
        return self

    def cxxflag(self, flag: str) -> "Config":
        """
        Adds a flag for the C++ compiler.

        Compiler defaults come first, then ``$CXXFLAGS``, then these.
        """
        self.cxxflags.append(flag)
        return self

    def ldflag(self, flag: str) -> "Config":
        """Adds a linker flag, after any from ``$LDFLAGS``."""
        self.ldflags.append(flag)
        return self

    def env(self, key: str, value: str) -> "Config":
        """
        Set an environment variable for every process the build spawns.

        Setting ``CC`` or ``CXX`` here overrides the detected compilers.
        Prefer :meth:`cflag`, :meth:`cxxflag` and :meth:`ldflag` over setting
        the flag variables, which would be replaced by the computed values.
        """
        self.env_vars[key] = value
        return self

    def target(self, triple: str) -> "Config":
        """
        Sets the triplet the built artifacts run on.

        Defaults to ``$TARGET``. Autotools calls this machine the host.
        """
        self.target_triple = triple
        return self

    def host(self, triple: str) -> "Config":
        """
        Sets the triplet of the machine running the compiler.

        Defaults to ``$HOST``. Autotools calls this machine the build machine.
        """
        self.host_triple = triple
        return self

    def jobs(self, num: Union[int, str]) -> "Config":
        """Pass ``-j<num>`` to make. Defaults to ``$NUM_JOBS``."""
        self.num_jobs = num
        return self

    def make_args(self, args: list[str]) -> "Config":
        """Additional arguments to pass through to ``make``."""
        self.extra_make_args = list(args)
        return self

    def make_target(self, name: str) -> "Config":
        """
        Build the given make target in the final step.

        When never called the final step runs ``make install``.
        """
        if self.make_targets is None:
            self.make_targets = []
        self.make_targets.append(name)
        return self

    def insource(self, build_insource: bool = True) -> "Config":
        """
        Build the library in the source tree.

        Some projects use nested Makefiles that can not be built out of source.
        """
        self.build_insource = build_insource
        return self

    def forbid(self, arg: str) -> "Config":
        """
        Never pass this argument to configure.

        Matches on the part before any ``=``, eg. ``--host`` drops
        ``--host=x86_64-linux-gnu``.
        """
        self.forbidden_args.add(arg)
        return self

    def fast_build(self, fast: bool = True) -> "Config":
        """Skip configure when it already ran with identical arguments."""
        self.skip_unchanged_configure = fast
        return self

    def enable_shared(self) -> "Config":
        self.shared = True
        return self

    def disable_shared(self) -> "Config":
        self.shared = False
        return self

    def enable_static(self) -> "Config":
        self.static = True
        return self

    def disable_static(self) -> "Config":
        self.static = False
        return self

    def option_args(self) -> list[str]:
        """
        The grouped configure options, enable options first then disable,
        with, without and arbitrary options. Insertion order is kept in each
        group and nothing is deduplicated.
        """
        args = []
        for group in OPTION_ORDER:
            for kind, name, value in self.options:
                if kind != group:
                    continue
                if kind == ARBITRARY:
                    arg = f"--{name}"
                else:
                    arg = f"--{kind}-{name}"
                if value is not None:
                    arg = f"{arg}={value}"
                args.append(arg)
        return args

    def has_option(self, name: str) -> bool:
        """True when ``config_option(name, ...)`` was used."""
        return any(k == ARBITRARY and n == name for k, n, _ in self.options)

    def configure(
        self,
        compilers: Optional["CompilerResolver"] = None,
        target_info: Optional["TargetInfo"] = None,
        runner: Runner = runcmd,
        capture: bool = False,
    ) -> pathlib.Path:
        """
        Run only autoreconf, when requested, and configure.

        :return: The install prefix
        """
        return run_configure(self, compilers, target_info, runner, capture)

    def build(
        self,
        compilers: Optional["CompilerResolver"] = None,
        target_info: Optional["TargetInfo"] = None,
        runner: Runner = runcmd,
        capture: bool = False,
    ) -> pathlib.Path:
        """
        Configure, build and install the project.

        :param compilers: Finds compilers for the target, defaults to ``resolve_compilers``
        :param target_info: Supplies the ambient triplets, defaults to the environment
        :param runner: Runs a single command, defaults to ``runcmd``
        :param capture: Send process output to the log instead of the terminal

        :return: The install prefix holding ``include``, ``lib`` and ``bin``
        """
        return run_build(self, compilers, target_info, runner, capture)
