# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
"""
Nox session definitions
"""


import datetime
import os
import pathlib

import nox  # isort:skip

# Global Path Definitions
REPO_ROOT = pathlib.Path(os.path.dirname(__file__)).resolve()
os.chdir(str(REPO_ROOT))

PYTEST_LOGFILE = REPO_ROOT.joinpath(
    "artifacts",
    "logs",
    "pytest-{}.log".format(datetime.datetime.now().strftime("%Y%m%d%H%M%S.%f")),
)

# Nox options
#  Reuse existing virtualenvs
nox.options.reuse_existing_virtualenvs = True
#  Don't fail on missing interpreters
nox.options.error_on_missing_interpreters = False


# <---------------------- SESSIONS ---------------------->
@nox.session
def tests(session):
    """
    Run the test suite, extra pytest arguments go after --
    """
    session.install("-e", ".[tests]")
    PYTEST_LOGFILE.parent.mkdir(parents=True, exist_ok=True)
    pytest_args = ["-vv", "-ra", "--log-file-level=debug"]
    if not any(_.startswith("--log-file") for _ in session.posargs):
        pytest_args.append(f"--log-file={PYTEST_LOGFILE}")
    session.run("python", "-m", "pytest", *pytest_args, *session.posargs)


@nox.session
def build(session):
    """
    Build an autotools source tree: nox -s build -- path/to/source [options]
    """
    if not session.posargs:
        session.error("Pass the source directory after --")
    session.install("-e", ".")
    session.run("python", "-m", "pyautotools", "build", *session.posargs)
