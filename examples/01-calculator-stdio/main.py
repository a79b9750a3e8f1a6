"""
Calculator over Standard Streams

This example demonstrates the basic tool pattern:
1. Declare tools on a plain class with @tool and @param
2. Register the class with a ToolServer
3. Serve over stdin/stdout

Run: python -m examples.01-calculator-stdio.main

Then type one JSON-RPC message per line, e.g.:
    {"jsonrpc": "2.0", "id": 1, "method": "tools/list"}
    {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "add", "arguments": {"a": 2, "b": 3}}}
"""

import asyncio
import logging
import sys

from toolwire import ToolServer, enum, number, optional, param, tool

# stdout carries protocol messages; logs go to stderr
logging.basicConfig(
    level=logging.INFO,
    stream=sys.stderr,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


# =============================================================================
# Service
# =============================================================================


class Calculator:
    """Basic arithmetic tools."""

    @tool("Add two numbers")
    @param(0, number(), "First operand")
    @param(1, number(), "Second operand")
    def add(self, a, b):
        return a + b

    @tool("Divide a by b")
    @param(0, number(), "Dividend")
    @param(1, number(), "Divisor")
    def divide(self, a, b):
        if b == 0:
            raise ValueError("Division by zero")
        return a / b

    @tool("Round a number")
    @param("value", number(), "Number to round")
    @param("digits", optional(number(minimum=0, maximum=10), default=0), "Decimal places")
    @param("mode", optional(enum(["half_even", "down"])), "Rounding mode")
    async def round(self, value, digits=0, mode="half_even"):
        if mode == "down":
            factor = 10 ** int(digits)
            return int(value * factor) / factor
        return round(value, int(digits))


# =============================================================================
# Main
# =============================================================================


async def main():
    server = ToolServer(name="calculator", version="1.0.0")
    server.register(Calculator)
    await server.serve(transport="stdio")


if __name__ == "__main__":
    asyncio.run(main())
