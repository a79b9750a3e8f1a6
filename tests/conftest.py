"""
Pytest configuration and fixtures for Toolwire tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
# This allows `from toolwire import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from toolwire import ToolServer, number, optional, param, string, tool  # noqa: E402


class CalculatorService:
    """Service used across server and transport tests."""

    def __init__(self):
        self.calls: list[tuple] = []

    @tool("Add two numbers")
    @param(0, number(), "First operand")
    @param(1, number(), "Second operand")
    def add(self, a, b):
        self.calls.append(("add", a, b))
        return a + b

    @tool("Greet someone")
    @param(0, string(min_length=1), "Name to greet")
    @param(1, optional(string()), "Greeting word")
    async def greet(self, name, greeting="Hello"):
        self.calls.append(("greet", name, greeting))
        return f"{greeting}, {name}!"

    @tool("Always fails")
    def explode(self):
        raise RuntimeError("boom")


@pytest.fixture
def calculator_class():
    """The calculator service class."""
    return CalculatorService


@pytest.fixture
def server():
    """ToolServer with the calculator service registered."""
    server = ToolServer(name="test-server", version="1.2.3")
    server.register(CalculatorService)
    return server


@pytest.fixture
def service(server):
    """The calculator instance bound to the server's tools."""
    return server.registry.get("add").handler.__self__
