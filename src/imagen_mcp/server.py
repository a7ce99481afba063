import logging
import os
import signal
from typing import Any, List, Optional

import anyio
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from imagen_mcp import __version__
from imagen_mcp.core import ImageGenerationPipeline
from imagen_mcp.errors import error_kind, method_not_found
from imagen_mcp.models import GENERATE_IMAGE_TOOL

SERVER_NAME = "gemini-imagen-server"
SHUTDOWN_GRACE_SECONDS = 2.0


class ImagenServer:
    """Exposes the image generation pipeline as a single MCP tool over stdio."""

    def __init__(
        self,
        pipeline: ImageGenerationPipeline,
        logger: Optional[logging.Logger] = None,
    ):
        self.pipeline = pipeline
        self.logger = logger or logging.getLogger(__name__)
        self.server = Server(SERVER_NAME, version=__version__)
        self.server.list_tools()(self.list_tools)
        # Registered on the raw handler table so McpError reaches the client
        # as a JSON-RPC error instead of an isError tool result.
        self.server.request_handlers[types.CallToolRequest] = self._handle_call_tool

    async def list_tools(self) -> List[types.Tool]:
        return [GENERATE_IMAGE_TOOL]

    async def call_tool(self, name: str, arguments: Any) -> List[types.TextContent]:
        if name != GENERATE_IMAGE_TOOL.name:
            raise method_not_found(f"Unknown tool: {name}")
        result = await self.pipeline.generate_image(arguments)
        return [types.TextContent(type="text", text=result.summary)]

    async def _handle_call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        try:
            content = await self.call_tool(request.params.name, request.params.arguments)
        except McpError as e:
            self.logger.error(f"[MCP Error] {error_kind(e)}: {e.error.message}")
            raise
        return types.ServerResult(types.CallToolResult(content=content))

    async def _shutdown_on_signal(self, scope: anyio.CancelScope, stopped: anyio.Event) -> None:
        with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
            async for signum in signals:
                self.logger.info(
                    f"Received {signal.Signals(signum).name}, shutting down"
                )
                break
        scope.cancel()
        with anyio.CancelScope(shield=True):
            with anyio.move_on_after(SHUTDOWN_GRACE_SECONDS):
                await stopped.wait()
            if stopped.is_set():
                return
            # The stdio reader thread stays blocked until stdin closes, so the
            # transport cannot finish on its own while the client keeps it open.
            self.logger.info("Transport still open, exiting")
            with anyio.move_on_after(SHUTDOWN_GRACE_SECONDS):
                await self.pipeline.close()
            logging.shutdown()
            os._exit(0)

    async def _serve(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            self.logger.info("Gemini Imagen MCP server running on stdio")
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )

    async def run(self) -> None:
        """Serves requests until stdin closes or a termination signal arrives.

        A failure raised by the transport is not masked by the signal watcher:
        it propagates out of the task group to the caller. After a signal the
        process exits with status 0 once the upstream client is closed, even
        if the caller never closes stdin.
        """
        stopped = anyio.Event()
        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(self._shutdown_on_signal, tg.cancel_scope, stopped)
                try:
                    await self._serve()
                finally:
                    stopped.set()
                tg.cancel_scope.cancel()
        finally:
            with anyio.CancelScope(shield=True):
                await self.pipeline.close()
