"""
HTTP Server Example

This example demonstrates serving tools over HTTP:
1. A service needing constructor arguments (register_instance)
2. Object parameters validated field by field
3. The HTTP transport on a configurable host/port/path

Run: python -m examples.02-http-server.main

Then:
    curl -X POST http://127.0.0.1:8000/mcp \\
        -H "Content-Type: application/json" \\
        -d '{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}'
"""

import asyncio
import logging

from toolwire import (
    RunOptions,
    ServerConfig,
    ToolServer,
    array,
    boolean,
    obj,
    optional,
    param,
    string,
    tool,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# =============================================================================
# Service
# =============================================================================


class NotesService:
    """In-memory notes keyed by title."""

    def __init__(self, owner: str):
        self._owner = owner
        self._notes: dict[str, dict] = {}

    @tool("Create or replace a note")
    @param(
        0,
        obj(
            {
                "title": string(min_length=1, max_length=80, description="Note title"),
                "body": string(description="Note text"),
                "tags": optional(array(string())),
                "pinned": optional(boolean()),
            }
        ),
        "The note to save",
    )
    def save_note(self, note):
        self._notes[note["title"]] = note
        return {"saved": note["title"], "owner": self._owner}

    @tool("List note titles")
    @param(0, optional(string()), "Only notes with this tag")
    def list_notes(self, tag=None):
        return [
            title
            for title, note in self._notes.items()
            if tag is None or tag in note.get("tags", [])
        ]


# =============================================================================
# Main
# =============================================================================


async def main():
    server = ToolServer(
        ServerConfig(
            name="notes",
            version="1.0.0",
            instructions="Save short notes and list them by tag.",
        )
    )
    server.register_instance(NotesService(owner="example"))
    await server.serve(RunOptions(transport="http", host="127.0.0.1", port=8000))


if __name__ == "__main__":
    asyncio.run(main())
