"""
Stdio tool server framework.

A ToolHandler declares a name, description and JSON-schema parameters and
implements handle(). StdioToolServer reads JSON-RPC requests line by line
from stdin and answers on stdout:

    initialize  -> server info
    tools/list  -> [{"name", "description", "parameters"}, ...]
    tools/call  -> the handler's result dict

Every failure is answered with a JSON-RPC error object; the loop never dies
on a bad request. Logs go to stderr, since stdout carries protocol frames.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

from ..errors import InvalidArgumentError, KernelError
from .transport import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    JsonRpcRequest,
    JsonRpcResponse,
)

logger = logging.getLogger(__name__)


class ToolHandler:
    """Base class for one callable tool."""
    name: str = ""
    description: str = ""
    parameters: dict[str, dict] = {}
    required: list[str] = []

    def handle(self, params: dict[str, Any]) -> dict:
        raise NotImplementedError

    def schema(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": self.parameters,
                "required": list(self.required),
            },
        }

    def validate(self, params: dict[str, Any]) -> None:
        missing = [p for p in self.required if params.get(p) is None]
        if missing:
            raise InvalidArgumentError(
                f"Missing required argument(s) for {self.name}: {', '.join(missing)}"
            )


class StdioToolServer:
    def __init__(self, name: str = "agent-kernel", version: str = "0.1.0"):
        self.name = name
        self.version = version
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, handler: ToolHandler) -> None:
        self._handlers[handler.name] = handler
        logger.debug(f"Registered tool handler: {handler.name}")

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())

    def run(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Serve until stdin closes."""
        stdin = stdin or sys.stdin
        stdout = stdout or sys.stdout
        logger.info(f"{self.name} {self.version} serving tools: {self.tool_names}")

        for line in stdin:
            if not line.strip():
                continue
            reply = self.handle_line(line)
            if reply is not None:
                stdout.write(reply + "\n")
                stdout.flush()

        logger.info(f"{self.name} stdin closed, shutting down")

    def handle_line(self, line: str) -> str | None:
        """Process one request line; returns the reply line (None for notifications)."""
        try:
            request = JsonRpcRequest.from_json(line)
        except json.JSONDecodeError as e:
            return JsonRpcResponse.failure(None, PARSE_ERROR, f"Parse error: {e}").to_json()
        except ValueError as e:
            return JsonRpcResponse.failure(None, INVALID_REQUEST, f"Invalid request: {e}").to_json()

        try:
            response = self.dispatch(request)
        except Exception as e:
            logger.error(f"Unhandled error for method '{request.method}': {e}", exc_info=True)
            response = JsonRpcResponse.failure(request.id, INTERNAL_ERROR, f"Internal error: {e}")
        if request.is_notification:
            return None
        return response.to_json()

    def dispatch(self, request: JsonRpcRequest) -> JsonRpcResponse:
        if request.method == "initialize":
            return JsonRpcResponse(id=request.id, result={
                "serverInfo": {"name": self.name, "version": self.version},
                "capabilities": {"tools": {}},
            })
        if request.method == "tools/list":
            return JsonRpcResponse(
                id=request.id,
                result=[h.schema() for h in self._handlers.values()],
            )
        if request.method == "tools/call":
            return self._call_tool(request)

        return JsonRpcResponse.failure(
            request.id, METHOD_NOT_FOUND, f"Unknown method: {request.method}",
        )

    def _call_tool(self, request: JsonRpcRequest) -> JsonRpcResponse:
        tool_name = request.params.get("name", "")
        arguments = request.params.get("arguments") or {}

        if not isinstance(tool_name, str):
            return JsonRpcResponse.failure(
                request.id, INVALID_PARAMS, "Tool name must be a string",
                data={"error_code": InvalidArgumentError.error_code, "tool": None},
            )
        handler = self._handlers.get(tool_name)
        if handler is None:
            return JsonRpcResponse.failure(
                request.id, METHOD_NOT_FOUND, f"Unknown tool: {tool_name}",
                data={"error_code": "NOT_FOUND", "tool": tool_name},
            )
        if not isinstance(arguments, dict):
            return JsonRpcResponse.failure(
                request.id, INVALID_PARAMS, "Tool arguments must be an object",
                data={"error_code": InvalidArgumentError.error_code, "tool": tool_name},
            )

        try:
            handler.validate(arguments)
            result = handler.handle(arguments)
        except KernelError as e:
            logger.info(f"Tool '{tool_name}' failed: {e}")
            return JsonRpcResponse.failure(
                request.id, e.jsonrpc_code, str(e),
                data={"error_code": e.error_code, "tool": tool_name},
            )
        except Exception as e:
            logger.error(f"Tool '{tool_name}' error: {e}", exc_info=True)
            return JsonRpcResponse.failure(
                request.id, INTERNAL_ERROR, f"Error executing tool '{tool_name}': {e}",
                data={"error_code": "INTERNAL_ERROR", "tool": tool_name},
            )

        return JsonRpcResponse(id=request.id, result=result)
