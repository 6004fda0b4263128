"""Logging wrapper for the stdio transport streams."""

import logging
from typing import AsyncIterator

import anyio


class IOLogger:
    """Wraps the async stdin/stdout files and logs every line passing through.

    Can be handed to ``mcp.server.stdio.stdio_server`` as both ``stdin`` and
    ``stdout``: it iterates lines like the reader and writes/flushes like the
    writer.
    """

    def __init__(self, reader: anyio.AsyncFile[str], writer: anyio.AsyncFile[str], logger: logging.Logger):
        self.reader = reader
        self.writer = writer
        self.logger = logger

    def __aiter__(self) -> AsyncIterator[str]:
        return self._read_lines()

    async def _read_lines(self) -> AsyncIterator[str]:
        async for line in self.reader:
            self.logger.info(f"[stdin]: received {len(line)} bytes: {line.rstrip()}")
            yield line

    async def write(self, data: str) -> int:
        self.logger.info(f"[stdout]: sending {len(data)} bytes: {data.rstrip()}")
        return await self.writer.write(data)

    async def flush(self) -> None:
        await self.writer.flush()
