# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Show the compiler environment a build would hand to configure.
"""
from __future__ import annotations

import argparse
import functools
import json
import logging
import sys
from typing import TYPE_CHECKING, Optional

from .commands import compiler_vars
from .config import Config
from .target import resolve_target
from .toolchain import resolve_compilers

if TYPE_CHECKING:
    from .target import TargetInfo
    from .toolchain import CompilerResolver

log = logging.getLogger(__name__)


def setup_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    """
    Setup the subparser for the ``pyautotools buildenv`` command.

    :param subparsers: The subparsers object returned from ``add_subparsers``
    :type subparsers: argparse._SubParsersAction
    """
    subparser = subparsers.add_parser(
        "buildenv", description="Compiler environment for a target"
    )
    subparser.set_defaults(func=main)
    subparser.add_argument("--host", default=None, help="Triplet running the compiler")
    subparser.add_argument("--target", default=None, help="Triplet to build for")
    subparser.add_argument(
        "--json",
        default=False,
        action="store_true",
        help=("Output json to stdout instead of export statments"),
    )


def buildenv(
    target: Optional[str] = None,
    host: Optional[str] = None,
    target_info: Optional["TargetInfo"] = None,
    compilers: Optional["CompilerResolver"] = None,
) -> dict[str, str]:
    """
    Build environment variable mapping for a target.
    """
    resolved = resolve_target(target, host, target_info)
    if compilers is None:
        compilers = functools.partial(resolve_compilers, native=resolved.host)
    env = {
        "TARGET": resolved.target,
        "HOST": resolved.host,
    }
    # An empty configuration still picks up $CFLAGS and friends
    env.update(compiler_vars(Config("."), compilers(resolved.target)))
    return env


def main(args: argparse.Namespace) -> None:
    """
    The entrypoint into the ``pyautotools buildenv`` command.

    :param args: The args passed to the command
    :type args: argparse.Namespace
    """
    logging.basicConfig(level=logging.INFO)
    env = buildenv(args.target, args.host)
    if "CC" not in env:
        log.error("No C compiler found for %s", env["TARGET"])

    if args.json:
        print(json.dumps(env))
        sys.exit(0)

    script = ""
    for k, v in env.items():
        script += f'export {k}="{v}"\n'

    print(script)
    sys.exit(0)
