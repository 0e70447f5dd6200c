# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
import pathlib
import shutil
import textwrap

CONFIGURE_SCRIPT = textwrap.dedent(
    """\
    #!/bin/sh
    prefix=/usr/local
    for arg in "$@"; do
        case "$arg" in
            --prefix=*) prefix="${arg#--prefix=}" ;;
        esac
        echo "$arg" >> configure.args
    done
    srcdir=$(dirname "$0")
    sed -e "s|@prefix@|$prefix|" -e "s|@srcdir@|$srcdir|" "$srcdir/Makefile.in" > Makefile
    echo "configured" > config.status
    exit @status@
    """
)

MAKEFILE_IN = (
    "prefix = @prefix@\n"
    "srcdir = @srcdir@\n"
    "\n"
    "all:\n"
    "\tcp $(srcdir)/mylib.c libmylib.a\n"
    "\n"
    "install: all\n"
    "\tmkdir -p $(prefix)/lib $(prefix)/include $(prefix)/bin\n"
    "\tcp libmylib.a $(prefix)/lib/libmylib.a\n"
    "\tcp $(srcdir)/mylib.h $(prefix)/include/mylib.h\n"
)


class BaseProject:
    def __init__(self, root_dir):
        self.root_dir = root_dir

    def make_project(self):
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def destroy_project(self):
        # Make sure the project is torn down properly
        if pathlib.Path(self.root_dir).exists():
            shutil.rmtree(self.root_dir, ignore_errors=True)

    def add_file(self, name, contents, *relpath, mode=None):
        file_path = (self.root_dir / pathlib.Path(*relpath) / name).resolve()
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(contents)
        if mode is not None:
            file_path.chmod(mode)
        return file_path

    def __enter__(self):
        self.make_project()
        return self

    def __exit__(self, *exc):
        self.destroy_project()


class AutotoolsProject(BaseProject):
    """
    A tiny source tree whose configure script writes a working Makefile.
    """

    def add_configure_ac(self):
        return self.add_file("configure.ac", "AC_INIT([mylib], [1.0])\nAC_OUTPUT\n")

    def add_configure(self, status=0):
        return self.add_file(
            "configure", CONFIGURE_SCRIPT.replace("@status@", str(status)), mode=0o755
        )

    def add_sources(self):
        self.add_file("Makefile.in", MAKEFILE_IN)
        self.add_file("mylib.c", "int mylib(void) { return 0; }\n")
        self.add_file("mylib.h", "int mylib(void);\n")

    def make_project(self):
        super().make_project()
        self.add_configure_ac()
        self.add_configure()
        self.add_sources()
