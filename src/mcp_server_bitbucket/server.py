"""MCP server wiring for Bitbucket tools over stdio"""

import asyncio
import logging
import os
import signal
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from .bitbucket.api import BitbucketAPI
from .config import ServerConfig
from .core.handlers import ToolContext
from .core.tools import BitbucketToolRouter, ToolRegistry

logger = logging.getLogger(__name__)

SERVER_NAME = "bitbucket-mcp-server"
SERVER_VERSION = "1.0.0"
SHUTDOWN_GRACE_SECONDS = 1.0


def create_api(config: ServerConfig) -> BitbucketAPI:
    return BitbucketAPI(config.client_config(), tasks_collection=config.tasks_collection)


def create_server(config: ServerConfig, api: BitbucketAPI) -> Server:
    """Build the MCP server with the full Bitbucket tool catalog registered."""
    registry = ToolRegistry()
    registry.initialize_default_tools()
    registry.validate()

    router = BitbucketToolRouter(registry, ToolContext(api=api, config=config))
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return registry.list_tools()

    # Arguments are validated by the handlers so that workspace and
    # repo_slug can fall back to the configured defaults.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Dict[str, Any]) -> CallToolResult:
        request_id = server.request_context.request_id
        logger.info(f"Tool call: {name}", extra={"tool": name, "request_id": request_id})
        return await router.route_tool_call(name, arguments, request_id=request_id)

    return server


def _install_signal_handlers(stop: asyncio.Event) -> List[signal.Signals]:
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown, sig, stop)
        except NotImplementedError:
            logger.debug(f"Signal handler for {sig.name} not supported on this platform")
            continue
        installed.append(sig)
    return installed


def _request_shutdown(sig: signal.Signals, stop: asyncio.Event) -> None:
    logger.info(f"Received {sig.name}, shutting down...")
    stop.set()


def _exit_process(code: int) -> None:
    # Skips interpreter teardown, which would join the blocked stdin reader thread
    logging.shutdown()
    os._exit(code)


async def _run_stdio(server: Server) -> None:
    options = server.create_initialization_options()
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Bitbucket MCP Server running on stdio")
        await server.run(read_stream, write_stream, options)


async def serve(config: ServerConfig, api: Optional[BitbucketAPI] = None) -> None:
    """Run the Bitbucket MCP server on stdio until the client disconnects or a signal arrives.

    On SIGINT or SIGTERM the session is cancelled and the API closed. When the
    session cannot unwind within ``SHUTDOWN_GRACE_SECONDS`` (the stdin reader
    thread stays blocked until stdin closes) the process exits with status 0
    without waiting for it.
    """
    api = api or create_api(config)
    server = create_server(config, api)
    stop = asyncio.Event()
    installed = _install_signal_handlers(stop)

    session = asyncio.create_task(_run_stdio(server))
    stop_wait = asyncio.create_task(stop.wait())
    unwound = True
    try:
        done, _ = await asyncio.wait({session, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
        if session in done:
            session.result()
            return
        session.cancel()
        finished, _ = await asyncio.wait({session}, timeout=SHUTDOWN_GRACE_SECONDS)
        unwound = bool(finished)
    finally:
        stop_wait.cancel()
        loop = asyncio.get_running_loop()
        for sig in installed:
            loop.remove_signal_handler(sig)
        await api.close()
        logger.info("Bitbucket MCP Server shut down")

    if not unwound:
        _exit_process(0)
