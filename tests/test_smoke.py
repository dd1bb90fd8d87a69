"""
Smoke test — verifies the stdio tool server end to end.

Tests:
1. The server answers tools/list and tools/call (in-process and as a subprocess)
2. Tool failures come back as structured JSON-RPC errors
3. A tuple survives a server restart via its snapshot
4. The LangChain tool surface
"""

import io
import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from agentkernel import AgentKernel, KernelConfig
from agentkernel.mcp.servers.kernel import build_server
from agentkernel.mcp.transport import JsonRpcRequest, StdioTransport

SRC_DIR = Path(__file__).parent.parent / "src"

PROTOCOL_TOOLS = [
    "tuple_init",
    "tuple_get",
    "tuple_update",
    "route_command",
    "evaluate_gradient",
    "format_prompt",
]


def _server_env(project_dir: Path) -> dict:
    return {
        **os.environ,
        "PYTHONPATH": str(SRC_DIR),
        "AGENT_KERNEL_PROJECT_DIR": str(project_dir),
        "AGENT_KERNEL_LOG_LEVEL": "WARNING",
    }


# ── In-process server ───────────────────────────────────────

class TestServerDispatch:
    @pytest.fixture
    def server(self, tmp_path):
        return build_server(AgentKernel(KernelConfig(project_dir=tmp_path)))

    def _call(self, server, method: str, params: dict, request_id=1) -> dict:
        line = JsonRpcRequest(method=method, params=params, id=request_id).to_json()
        return json.loads(server.handle_line(line))

    def _tool(self, server, name: str, arguments: dict) -> dict:
        return self._call(server, "tools/call", {"name": name, "arguments": arguments})

    def test_tools_list(self, server):
        response = self._call(server, "tools/list", {})
        names = [t["name"] for t in response["result"]]
        assert names[:6] == PROTOCOL_TOOLS
        assert "get_principle" in names
        update = next(t for t in response["result"] if t["name"] == "tuple_update")
        assert update["parameters"]["required"] == ["id", "slot", "action"]

    def test_initialize(self, server):
        response = self._call(server, "initialize", {})
        assert response["result"]["serverInfo"]["name"] == "agent-kernel"

    def test_protocol_loop(self, server):
        run = self._tool(server, "tuple_init", {"task": "add auth"})["result"]
        tid = run["id"]

        update = self._tool(server, "tuple_update", {
            "id": tid, "slot": "constraints", "action": "append", "content": "OAuth only",
        })["result"]
        assert update["current_value"] == ["OAuth only"]

        route = self._tool(server, "route_command", {
            "intent": "explore login options", "tuple_id": tid,
        })["result"]
        assert route["primitive"] == "explore"
        assert "No invariant defined yet" in route["rationale"]

        first = self._tool(server, "evaluate_gradient", {
            "tuple_id": tid, "knowledge": True, "invariant": False,
            "evidence": False, "confidence": False,
        })["result"]
        assert first["recommendation"].startswith("CONTINUE")

        for _ in range(2):
            last = self._tool(server, "evaluate_gradient", {
                "tuple_id": tid, "knowledge": "false", "invariant": "false",
                "evidence": "false", "confidence": "false",
            })["result"]
        assert last["status"] == "stuck"

        briefing = self._tool(server, "format_prompt", {
            "agent_type": "reviewer", "task": "Review the login flow", "tuple_id": tid,
        })["result"]
        assert "- OAuth only" in briefing["prompt"]
        assert "**Status**: stuck" in briefing["prompt"]

    def test_unknown_tuple_is_not_found(self, server):
        response = self._tool(server, "tuple_get", {"id": "run-0-missing"})
        assert response["error"]["code"] == -32004
        assert response["error"]["data"]["error_code"] == "NOT_FOUND"

    def test_invalid_slot_is_invalid_argument(self, server):
        tid = self._tool(server, "tuple_init", {"task": "t"})["result"]["id"]
        response = self._tool(server, "tuple_update", {
            "id": tid, "slot": "status", "action": "append", "content": "x",
        })
        assert response["error"]["code"] == -32602
        assert response["error"]["data"]["error_code"] == "INVALID_ARGUMENT"

    def test_missing_required_argument(self, server):
        response = self._tool(server, "route_command", {})
        assert response["error"]["code"] == -32602
        assert "intent" in response["error"]["message"]

    def test_unknown_tool(self, server):
        response = self._tool(server, "launch_rocket", {})
        assert response["error"]["code"] == -32601

    def test_unknown_method(self, server):
        response = self._call(server, "resources/list", {})
        assert response["error"]["code"] == -32601

    def test_parse_error(self, server):
        response = json.loads(server.handle_line("{not json"))
        assert response["error"]["code"] == -32700

    def test_notification_gets_no_reply(self, server):
        line = JsonRpcRequest(method="tools/list", params={}).to_json()
        assert server.handle_line(line) is None

    def test_lookup_tool_surfaces_upstream_error(self, server):
        response = self._tool(server, "list_principles", {})
        assert response["error"]["data"]["error_code"] == "UPSTREAM_UNAVAILABLE"

    def test_non_string_tool_name_is_invalid(self, server):
        response = self._call(server, "tools/call", {"name": ["tuple_get"], "arguments": {}})
        assert response["error"]["code"] == -32602
        assert response["error"]["data"]["error_code"] == "INVALID_ARGUMENT"

    def test_bad_request_does_not_stop_serving(self, server):
        requests = [
            {"jsonrpc": "2.0", "method": "tools/call", "params": {"name": {"x": 1}}, "id": 1},
            {"jsonrpc": "2.0", "method": "tools/list", "params": {}, "id": 2},
        ]
        stdin = io.StringIO("".join(json.dumps(r) + "\n" for r in requests))
        stdout = io.StringIO()
        server.run(stdin, stdout)

        replies = [json.loads(line) for line in stdout.getvalue().splitlines()]
        assert [r["id"] for r in replies] == [1, 2]
        assert replies[0]["error"]["code"] == -32602
        assert len(replies[1]["result"]) == 16

    def test_unexpected_dispatch_failure_is_internal_error(self, server, monkeypatch):
        def explode(request):
            raise RuntimeError("boom")

        monkeypatch.setattr(server, "dispatch", explode)
        response = self._call(server, "tools/list", {})
        assert response["error"]["code"] == -32603
        assert "boom" in response["error"]["message"]

    def test_non_string_tuple_id_is_ignored_by_route(self, server):
        response = self._tool(server, "route_command", {"intent": "explore", "tuple_id": 5})
        assert response["result"]["primitive"] == "explore"
        assert "Note:" not in response["result"]["rationale"]

    def test_non_string_tuple_id_is_not_found(self, server):
        response = self._tool(server, "tuple_get", {"id": 5})
        assert response["error"]["code"] == -32004

    def test_non_string_tuple_id_is_ignored_by_format_prompt(self, server):
        response = self._tool(server, "format_prompt", {
            "agent_type": "tester", "task": "Cover it", "tuple_id": 5,
        })
        assert "Thinking Tuple Context" not in response["result"]["prompt"]

    def test_lookup_tools_listed(self, server):
        response = self._call(server, "tools/list", {})
        names = {t["name"] for t in response["result"]}
        assert {
            "get_command", "list_commands", "load_skill",
            "get_dslp_pattern", "list_dslp_domains", "get_claude_md",
        } <= names

    def test_missing_protocol_document_is_not_found(self, server):
        response = self._tool(server, "get_claude_md", {})
        assert response["error"]["code"] == -32004

    def test_no_domain_packs_lists_empty(self, server):
        response = self._tool(server, "list_dslp_domains", {})
        assert response["result"] == {"domains": [], "count": 0}


# ── Subprocess server ───────────────────────────────────────

class TestKernelServerProcess:
    def test_tools_list_over_stdio(self, tmp_path):
        request = json.dumps({
            "jsonrpc": "2.0",
            "method": "tools/list",
            "params": {},
            "id": 1,
        }) + "\n"

        result = subprocess.run(
            [sys.executable, "-m", "agentkernel.mcp.servers.kernel"],
            input=request,
            capture_output=True,
            text=True,
            timeout=30,
            env=_server_env(tmp_path),
        )

        lines = [l for l in result.stdout.strip().split("\n") if l.strip()]
        assert len(lines) >= 1, f"No response from server. stderr: {result.stderr[:200]}"
        response = json.loads(lines[0])
        assert response["id"] == 1
        assert [t["name"] for t in response["result"]][:6] == PROTOCOL_TOOLS

    def test_tuple_survives_restart(self, tmp_path):
        command = [sys.executable, "-m", "agentkernel.mcp.servers.kernel"]

        with StdioTransport(command, env=_server_env(tmp_path)) as transport:
            run = transport.call_tool("tuple_init", {"task": "add auth", "invariant": ["login works"]})
            assert not run.is_error, run.error
            tid = run.result["id"]
            step = transport.call_tool("evaluate_gradient", {
                "tuple_id": tid, "knowledge": True, "invariant": False,
                "evidence": True, "confidence": False,
            })
            assert step.result["iteration"] == 1

        assert (tmp_path / ".claude" / "state" / "runs" / f"{tid}.json").exists()

        with StdioTransport(command, env=_server_env(tmp_path)) as transport:
            record = transport.call_tool("tuple_get", {"id": tid})
            assert not record.is_error, record.error
            assert record.result["task"] == "add auth"
            assert record.result["invariant"] == ["login works"]
            assert record.result["iteration"] == 1
            assert len(record.result["gradient_history"]) == 1


# ── LangChain tool surface ──────────────────────────────────

class TestLangChainTools:
    @pytest.fixture
    def tools(self, tmp_path):
        kernel = AgentKernel(KernelConfig(project_dir=tmp_path))
        return {t.name: t for t in kernel.as_tools()}

    def test_tool_names(self, tools):
        assert sorted(tools) == sorted(PROTOCOL_TOOLS)

    def test_loop_through_tools(self, tools):
        run = json.loads(tools["tuple_init"].invoke({"task": "add auth"}))
        route = json.loads(tools["route_command"].invoke({"intent": "explore login options"}))
        assert route["primitive"] == "explore"

        verdict = json.loads(tools["evaluate_gradient"].invoke({
            "tuple_id": run["id"], "knowledge": True, "invariant": False,
            "evidence": False, "confidence": False,
        }))
        assert verdict["status"] == "running"

    def test_errors_returned_as_text(self, tools):
        result = tools["tuple_get"].invoke({"id": "run-0-missing"})
        assert result.startswith("[Kernel Error]")
