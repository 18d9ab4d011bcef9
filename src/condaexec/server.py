"""MCP server implementation."""
import asyncio
import json
from typing import Any, Dict, List

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions
from mcp.server import stdio

from condaexec import __version__
from condaexec.config import DEFAULT_ENV_NAME
from condaexec.environments import create_env, list_envs, list_packages, remove_env
from condaexec.errors import CondaExecError, log_error
from condaexec.logging import configure_logging, get_logger
from condaexec.micromamba import install_micromamba
from condaexec.run import run
from condaexec.types import ErrorPolicy, Verbose

logger = get_logger("server")

ENV_NAME_PROPERTY = {
    "type": "string",
    "description": f"Environment name (default: {DEFAULT_ENV_NAME})",
}

tools = [
    types.Tool(
        name="condaexec_create_env",
        description="Create a conda environment with the given packages",
        inputSchema={
            "type": "object",
            "properties": {
                "packages": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Package specs, e.g. samtools=1.20",
                },
                "env_name": ENV_NAME_PROPERTY,
                "channels": {"type": "array", "items": {"type": "string"}},
                "overwrite": {"type": "boolean"},
            },
            "required": ["packages"],
        },
    ),
    types.Tool(
        name="condaexec_remove_env",
        description="Remove a conda environment",
        inputSchema={
            "type": "object",
            "properties": {"env_name": ENV_NAME_PROPERTY},
            "required": ["env_name"],
        },
    ),
    types.Tool(
        name="condaexec_list_envs",
        description="List the managed conda environments",
        inputSchema={"type": "object", "properties": {}},
    ),
    types.Tool(
        name="condaexec_list_packages",
        description="List the packages installed in a conda environment",
        inputSchema={
            "type": "object",
            "properties": {"env_name": ENV_NAME_PROPERTY},
        },
    ),
    types.Tool(
        name="condaexec_run",
        description="Run a command-line tool inside a conda environment",
        inputSchema={
            "type": "object",
            "properties": {
                "cmd": {"type": "string", "description": "Executable to run"},
                "args": {"type": "array", "items": {"type": "string"}},
                "env_name": ENV_NAME_PROPERTY,
                "timeout": {"type": "number", "description": "Seconds"},
            },
            "required": ["cmd"],
        },
    ),
    types.Tool(
        name="condaexec_install_micromamba",
        description="Install the micromamba binary used to manage environments",
        inputSchema={
            "type": "object",
            "properties": {
                "version": {"type": "string"},
                "force": {"type": "boolean"},
            },
        },
    ),
]


def _text(payload: Dict[str, Any]) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload))]


async def handle_tool_call(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
    """Dispatch one tool call and wrap the outcome as JSON text."""
    try:
        env_name = arguments.get("env_name") or DEFAULT_ENV_NAME

        if name == "condaexec_create_env":
            result = await create_env(
                packages=arguments["packages"],
                env_name=env_name,
                channels=arguments.get("channels"),
                overwrite=bool(arguments.get("overwrite", False)),
            )
            return _text({"success": True, "data": result.to_dict()})

        elif name == "condaexec_remove_env":
            result = await remove_env(env_name)
            return _text({"success": True, "data": result.to_dict()})

        elif name == "condaexec_list_envs":
            return _text({"success": True, "data": {"envs": await list_envs()}})

        elif name == "condaexec_list_packages":
            packages = await list_packages(env_name)
            return _text(
                {"success": True, "data": {"packages": [vars(p) for p in packages]}}
            )

        elif name == "condaexec_run":
            # a failing tool is reported as data, not as a failed tool call
            result = await run(
                arguments["cmd"],
                *arguments.get("args", []),
                env_name=env_name,
                verbose=Verbose.SILENT,
                error=ErrorPolicy.CONTINUE,
                timeout=arguments.get("timeout"),
            )
            return _text({"success": True, "data": result.to_dict()})

        elif name == "condaexec_install_micromamba":
            path = await install_micromamba(
                version=arguments.get("version"),
                force=bool(arguments.get("force", False)),
            )
            return _text({"success": True, "data": {"path": str(path)}})

        return _text({"success": False, "error": f"Unknown tool: {name}"})

    except KeyError as e:
        return _text({"success": False, "error": f"Missing argument: {e.args[0]}"})
    except CondaExecError as e:
        log_error(e, context={"tool": name}, logger=logger)
        return _text({"success": False, "error": str(e), "details": e.details})


async def init_server() -> Server:
    logger.info(f"Registered tools: {', '.join(t.name for t in tools)}")

    server = Server("condaexec")

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug("Tools requested")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        logger.debug(f"Tool call received: {name} with arguments {arguments}")
        return await handle_tool_call(name, arguments or {})

    return server


async def serve() -> None:
    configure_logging()
    logger.info("Starting condaexec MCP server")
    server = await init_server()
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name="condaexec",
            server_version=__version__,
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    """Run the MCP server."""
    asyncio.run(serve())
