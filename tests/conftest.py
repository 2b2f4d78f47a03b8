import io

import pytest

from file_system import FileSystem
from fsshell import FsShell


@pytest.fixture
def fs():
    fs = FileSystem()
    yield fs
    fs.close()


@pytest.fixture
def shell(fs):
    return FsShell(fs, stdin=io.StringIO(), stdout=io.StringIO())


@pytest.fixture
def run(shell):
    """Run command lines through the shell and return the lines they printed."""

    def _run(*lines):
        start = shell.stdout.tell()
        for line in lines:
            shell.onecmd(shell.precmd(line))
        shell.stdout.seek(start)
        output = shell.stdout.read().splitlines()
        shell.stdout.seek(0, io.SEEK_END)
        return output

    return _run
