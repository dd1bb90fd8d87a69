"""
Tool server infrastructure.

Provides:
- StdioToolServer / ToolHandler — framework for building stdio tool servers
- StdioTransport — client-side transport (subprocess + stdio pipes)
- JsonRpcRequest / JsonRpcResponse — JSON-RPC 2.0 messages
"""

from .server import StdioToolServer, ToolHandler
from .transport import JsonRpcRequest, JsonRpcResponse, StdioTransport

__all__ = [
    "StdioToolServer",
    "ToolHandler",
    "StdioTransport",
    "JsonRpcRequest",
    "JsonRpcResponse",
]
