"""Fixtures shared across the LuaSharp test suite."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from tests.helpers import write_settings, write_sources

GREETER = """\
using System;

namespace Demo
{
    public class Greeter
    {
        public string Greet(string name)
        {
            return $"Hello, {name}!";
        }

        public void Wave() { }
    }
}
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def tmp_project(tmp_path):
    """Create a minimal luasharp project in a temp dir."""
    write_settings(tmp_path)
    write_sources(tmp_path, {"src/Greeter.cs": GREETER})
    return tmp_path


@pytest.fixture
def on_path(monkeypatch):
    """Pretend the executable runs from a directory on PATH."""
    monkeypatch.setattr("luasharp.cli.running_from_path", lambda: True)
