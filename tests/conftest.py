"""Pytest fixtures for syncstream tests.

The sync command under test is always the running interpreter executing a
short script, so the tests need nothing but Python on the PATH.
"""

import os
import sys
import textwrap

import pytest

from syncstream.config import reset_config


def python_command(script: str, *args: str) -> list[str]:
    """Command list running ``script`` with the current interpreter."""
    return [sys.executable, "-c", textwrap.dedent(script), *args]


@pytest.fixture
def python_cmd():
    """Factory for commands that run a Python snippet."""
    return python_command


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep user config files and SYNCSTREAM_* variables out of tests."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    for var in ("HOST", "PORT", "LISTEN_PID", "LISTEN_FDS", "LISTEN_FDNAMES"):
        monkeypatch.delenv(var, raising=False)
    for var in [v for v in list(os.environ) if v.startswith("SYNCSTREAM_")]:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def ls_like_command() -> list[str]:
    """Two stdout lines, exit 0."""
    return python_command(
        """
        print("total 64K")
        print("drwxrwxr-x 1 me me  122 Dez  4 11:55 .")
        """
    )


@pytest.fixture
def failing_command() -> list[str]:
    """One line on each channel, exit 1."""
    return python_command(
        """
        import sys
        print("hi there", flush=True)
        print("error", file=sys.stderr, flush=True)
        sys.exit(1)
        """
    )


@pytest.fixture
def silent_command() -> list[str]:
    """No output, exit 0."""
    return python_command("pass")
