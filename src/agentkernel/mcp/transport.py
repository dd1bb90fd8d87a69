"""
Transport layer for kernel tool communication.

JSON-RPC 2.0 messages plus StdioTransport: a client that launches a tool
server subprocess and talks to it over stdin/stdout pipes, one line per
message.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request. `id` is None for notifications."""
    method: str
    params: dict[str, Any]
    id: int | str | None = None

    def to_json(self) -> str:
        message: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": self.method,
            "params": self.params,
        }
        if self.id is not None:
            message["id"] = self.id
        return json.dumps(message)

    @classmethod
    def from_json(cls, data: str) -> JsonRpcRequest:
        parsed = json.loads(data)
        if not isinstance(parsed, dict) or not isinstance(parsed.get("method"), str):
            raise ValueError("Request must be an object with a string 'method'")
        params = parsed.get("params") or {}
        if not isinstance(params, dict):
            raise ValueError("Request 'params' must be an object")
        return cls(method=parsed["method"], params=params, id=parsed.get("id"))

    @property
    def is_notification(self) -> bool:
        return self.id is None


@dataclass
class JsonRpcResponse:
    """JSON-RPC 2.0 response."""
    id: int | str | None
    result: Any = None
    error: dict | None = None

    @classmethod
    def failure(
        cls,
        id: int | str | None,
        code: int,
        message: str,
        data: dict | None = None,
    ) -> JsonRpcResponse:
        error: dict[str, Any] = {"code": code, "message": message}
        if data:
            error["data"] = data
        return cls(id=id, error=error)

    def to_json(self) -> str:
        message: dict[str, Any] = {"jsonrpc": "2.0", "id": self.id}
        if self.error is not None:
            message["error"] = self.error
        else:
            message["result"] = self.result
        return json.dumps(message)

    @classmethod
    def from_json(cls, data: str) -> JsonRpcResponse:
        parsed = json.loads(data)
        return cls(
            id=parsed.get("id"),
            result=parsed.get("result"),
            error=parsed.get("error"),
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None


class StdioTransport:
    """
    JSON-RPC over stdin/stdout pipes to a subprocess.

    The tool server runs as a child process. We write JSON-RPC
    requests to its stdin and read responses from its stdout.
    """

    def __init__(self, command: list[str], env: dict[str, str] | None = None):
        self.command = command
        self.env = env
        self._process: subprocess.Popen | None = None
        self._request_id = 0

    def start(self) -> None:
        """Launch the tool server subprocess."""
        if self._process and self._process.poll() is None:
            logger.warning("Transport already running, stopping first")
            self.stop()

        logger.info(f"Starting stdio transport: {' '.join(self.command)}")
        self._process = subprocess.Popen(
            self.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            bufsize=1,
            env=self.env,
        )

    def stop(self) -> None:
        """Terminate the tool server subprocess."""
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait()
            for stream in (self._process.stdin, self._process.stdout, self._process.stderr):
                if stream:
                    stream.close()
            self._process = None
            logger.info("Stdio transport stopped")

    def is_alive(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def send(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Send JSON-RPC request via stdin, read response from stdout."""
        if not self.is_alive():
            raise RuntimeError("Transport not running. Call start() first.")

        self._process.stdin.write(request.to_json() + "\n")
        self._process.stdin.flush()

        response_line = self._process.stdout.readline()
        if not response_line:
            stderr = self._process.stderr.read() if self._process.stderr else ""
            raise RuntimeError(f"Tool server process died. stderr: {stderr[:500]}")

        return JsonRpcResponse.from_json(response_line.strip())

    def call_tool(self, name: str, arguments: dict[str, Any]) -> JsonRpcResponse:
        return self.send(JsonRpcRequest(
            method="tools/call",
            params={"name": name, "arguments": arguments},
            id=self.next_id(),
        ))

    def next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    def __enter__(self) -> StdioTransport:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
