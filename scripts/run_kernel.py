#!/usr/bin/env python3
"""
Run Kernel — serve the tool server, inspect resolved assets, or run a demo loop.

Usage:
    # Serve over stdio (default)
    python scripts/run_kernel.py

    # Show resolved paths, primitive catalog source and roles
    python scripts/run_kernel.py --info

    # Walk one Thinking Tuple through route -> evaluate in-process
    python scripts/run_kernel.py --demo --task "add auth"

    # With a config file
    python scripts/run_kernel.py --config kernel.yaml --info
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure src/ is on path for development
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from agentkernel import AgentKernel, KernelConfig, __version__
from agentkernel.errors import KernelError
from agentkernel.mcp.servers import kernel as kernel_server

logger = logging.getLogger(__name__)


def show_info(kernel: AgentKernel) -> None:
    config = kernel.config
    print(f"\nAgent Kernel v{__version__}\n")
    print(f"  Project assets: {config.project_assets}"
          f"{'' if config.project_assets.is_dir() else ' (missing)'}")
    print(f"  Bundled assets: {config.resources_dir or '(none)'}")
    print(f"  Snapshots:      {config.snapshot_dir}")

    catalog = kernel.router.catalog()
    print(f"\nPrimitives ({catalog.count}):\n")
    for name in catalog.list_all():
        p = catalog.get(name)
        print(f"  {name:<14} slot: {p.slot:<12} mode: {p.mode}")

    try:
        principles = kernel.knowledge.list_principles()
        print(f"\nPrinciples ({len(principles)}): {', '.join(principles) or '(none)'}")
    except KernelError as e:
        print(f"\nPrinciples: unavailable ({e})")

    roles = kernel.composer.default_roles
    print(f"\nEmbedded roles ({roles.count}): {', '.join(roles.list_all())}")
    print(f"Stored tuples: {len(kernel.store.ids())}\n")


def run_demo(kernel: AgentKernel, task: str) -> None:
    run = kernel.tuple_init(task)
    tid = run["id"]
    print(json.dumps(run, indent=2))

    steps = [
        ("explore login options", (True, False, False, False)),
        ("verify the design is correct", (False, False, False, False)),
        ("reflect on why we are stuck", (False, False, False, False)),
    ]
    for intent, signals in steps:
        route = kernel.route_command(intent, tid)
        print(f"\n> {intent}\n  primitive: {route['primitive']}\n  rationale: {route['rationale']}")
        verdict = kernel.evaluate_gradient(tid, *signals, action=route["primitive"])
        print(f"  {verdict['recommendation']}  [status: {verdict['status']}]")
        if verdict["status"] in ("stuck", "success", "limit_reached"):
            break

    briefing = kernel.format_prompt("planner", f"Plan next steps for: {task}", tid)
    print(f"\n{'='*60}\n  Planner briefing (~{briefing['estimated_tokens']} tokens)\n{'='*60}\n")
    print(briefing["prompt"])


def main():
    parser = argparse.ArgumentParser(
        description="Agent Kernel tool server and utilities.",
    )
    parser.add_argument("--config", "-c", type=str, help="Path to a YAML kernel config")
    parser.add_argument("--info", action="store_true", help="Show resolved assets and exit")
    parser.add_argument("--demo", action="store_true", help="Run a demo reasoning loop")
    parser.add_argument("--task", type=str, default="add auth", help="Task for --demo")
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument("--verbose", "-v", action="store_true")

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    config = KernelConfig.from_yaml(args.config) if args.config else KernelConfig.from_env()
    if args.verbose:
        config.log_level = "DEBUG"

    if not (args.info or args.demo):
        kernel_server.main(config)
        return

    logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")
    kernel = AgentKernel(config)
    if args.info:
        show_info(kernel)
    if args.demo:
        run_demo(kernel, args.task)


if __name__ == "__main__":
    main()
