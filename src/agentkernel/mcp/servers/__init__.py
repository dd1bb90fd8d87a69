"""Runnable tool servers (python -m agentkernel.mcp.servers.<name>)."""
