# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
The ``pyautotools build`` and ``pyautotools configure`` commands.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .common import AutotoolsException
from .config import Config

log = logging.getLogger(__name__)


def split_option(value: str) -> tuple[str, Optional[str]]:
    """
    Split ``name=value`` into its parts, the value is None when there is no ``=``.
    """
    if "=" in value:
        name, optarg = value.split("=", 1)
        return name, optarg
    return value, None


def split_env(value: str) -> tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got '{value}'")
    key, val = value.split("=", 1)
    return key, val


def _add_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument("source", help="The directory holding configure or configure.ac")
    subparser.add_argument(
        "--out-dir",
        default=None,
        help="Build and install into this directory [default: $OUT_DIR]",
    )
    subparser.add_argument(
        "--reconf",
        default=None,
        metavar="FLAGS",
        help="Run autoreconf with these flags first, eg. --reconf=-ivf",
    )
    for kind in ("enable", "disable", "with", "without"):
        subparser.add_argument(
            f"--{kind}",
            dest=kind,
            metavar="NAME[=VALUE]",
            action="append",
            default=[],
            help=f"Pass --{kind}-NAME[=VALUE] to configure",
        )
    subparser.add_argument(
        "--config-option",
        metavar="NAME[=VALUE]",
        action="append",
        default=[],
        help="Pass --NAME[=VALUE] to configure",
    )
    subparser.add_argument(
        "--config-arg",
        metavar="ARG",
        action="append",
        default=[],
        help="Pass a raw argument to configure",
    )
    for flag in ("cflag", "cxxflag", "ldflag"):
        subparser.add_argument(
            f"--{flag}",
            metavar="FLAG",
            action="append",
            default=[],
            help=f"Add a {flag} after the inherited ones",
        )
    subparser.add_argument(
        "--env",
        metavar="KEY=VALUE",
        type=split_env,
        action="append",
        default=[],
        help="Set an environment variable for every step",
    )
    subparser.add_argument("--host", default=None, help="Triplet running the compiler")
    subparser.add_argument("--target", default=None, help="Triplet to build for")
    subparser.add_argument(
        "-j", "--jobs", default=None, help="Parallel make jobs [default: $NUM_JOBS]"
    )
    subparser.add_argument(
        "--make-arg",
        metavar="ARG",
        action="append",
        default=[],
        help="Pass an argument to make",
    )
    subparser.add_argument(
        "--make-target",
        metavar="TARGET",
        action="append",
        default=[],
        help="Make this target instead of install, can be repeated",
    )
    subparser.add_argument(
        "--insource",
        default=False,
        action="store_true",
        help="Build in the source directory",
    )
    subparser.add_argument(
        "--forbid",
        metavar="ARG",
        action="append",
        default=[],
        help="Never pass this argument to configure",
    )
    subparser.add_argument(
        "--fast-build",
        default=False,
        action="store_true",
        help="Skip configure when its arguments did not change",
    )
    subparser.add_argument(
        "--enable-shared", default=False, action="store_true", help="Pass --enable-shared"
    )
    subparser.add_argument(
        "--disable-static",
        default=False,
        action="store_true",
        help="Pass --disable-static",
    )
    subparser.add_argument(
        "--capture-output",
        default=False,
        action="store_true",
        help="Log build output instead of passing it through to the terminal",
    )
    subparser.add_argument(
        "--log-level",
        default="info",
        choices=(
            "error",
            "warning",
            "info",
            "debug",
        ),
        help="Log level determines how verbose the logs will be.",
    )


def setup_parser(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
) -> None:
    """
    Setup the subparsers for the ``build`` and ``configure`` commands.

    :param subparsers: The subparsers object returned from ``add_subparsers``
    :type subparsers: argparse._SubParsersAction
    """
    build_subparser = subparsers.add_parser(
        "build", description="Configure, build and install an autotools project"
    )
    build_subparser.set_defaults(func=main, configure_only=False)
    _add_arguments(build_subparser)

    configure_subparser = subparsers.add_parser(
        "configure", description="Only configure an autotools project"
    )
    configure_subparser.set_defaults(func=main, configure_only=True)
    _add_arguments(configure_subparser)


def config_from_args(args: argparse.Namespace) -> Config:
    """
    Create the build configuration the command line describes.
    """
    config = Config(args.source)
    if args.out_dir:
        config.out_dir(args.out_dir)
    if args.reconf is not None:
        config.reconf(args.reconf)
    for value in args.enable:
        config.enable(*split_option(value))
    for value in args.disable:
        config.disable(*split_option(value))
    for value in getattr(args, "with"):
        config.with_(*split_option(value))
    for value in args.without:
        config.without(*split_option(value))
    for value in args.config_option:
        config.config_option(*split_option(value))
    for value in args.config_arg:
        config.config_arg(value)
    for value in args.cflag:
        config.cflag(value)
    for value in args.cxxflag:
        config.cxxflag(value)
    for value in args.ldflag:
        config.ldflag(value)
    for key, value in args.env:
        config.env(key, value)
    if args.host:
        config.host(args.host)
    if args.target:
        config.target(args.target)
    if args.jobs:
        config.jobs(args.jobs)
    if args.make_arg:
        config.make_args(args.make_arg)
    for value in args.make_target:
        config.make_target(value)
    for value in args.forbid:
        config.forbid(value)
    if args.insource:
        config.insource(True)
    if args.fast_build:
        config.fast_build(True)
    if args.enable_shared:
        config.enable_shared()
    if args.disable_static:
        config.disable_static()
    return config


def main(args: argparse.Namespace) -> None:
    """
    The entrypoint to the ``build`` and ``configure`` commands.

    :param args: The arguments to the command
    :type args: ``argparse.Namespace``
    """
    logging.basicConfig(
        level=logging.getLevelName(args.log_level.upper()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    config = config_from_args(args)
    try:
        if args.configure_only:
            out_dir = config.configure(capture=args.capture_output)
        else:
            out_dir = config.build(capture=args.capture_output)
    except AutotoolsException as exc:
        log.error("%s", exc)
        sys.exit(1)
    print(out_dir)
