"""
Error taxonomy for the kernel.

Every tool-level failure is one of these. The stdio server maps them to
JSON-RPC error objects; the LangChain tool surface renders them as text.
"""

from __future__ import annotations


class KernelError(Exception):
    """Base class for failures a caller can act on."""
    error_code = "KERNEL_ERROR"
    jsonrpc_code = -32000


class NotFoundError(KernelError, LookupError):
    """Unknown tuple id, asset, role, or primitive."""
    error_code = "NOT_FOUND"
    jsonrpc_code = -32004


class InvalidArgumentError(KernelError, ValueError):
    """Unrecognized slot name, action, or malformed argument."""
    error_code = "INVALID_ARGUMENT"
    jsonrpc_code = -32602


class UpstreamUnavailableError(KernelError):
    """An external asset directory or metadata source is missing."""
    error_code = "UPSTREAM_UNAVAILABLE"
    jsonrpc_code = -32003
