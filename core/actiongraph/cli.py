"""actiongraph CLI - Command line interface for running workflows.

Usage:
    actiongraph run <workflow> <query> [--file=DEF.json] [--enforce-timeouts] [--json]
    actiongraph list
    actiongraph show <workflow> [--file=DEF.json]
    actiongraph serve [--host=HOST] [--port=PORT]
    actiongraph --version
    actiongraph --help

Examples:
    actiongraph run book_search dune
    actiongraph run wiki_summary "Alan Turing" --json
    actiongraph run my_flow "query" --file my_flow.json
    actiongraph show wiki_summary
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from actiongraph import __version__
from actiongraph.catalog import PRESET_QUERIES, WORKFLOW_INFO, WORKFLOWS, get_workflow, load_workflow_file
from actiongraph.config import settings
from actiongraph.domain.models import ExecutionResult, WorkflowDefinition
from actiongraph.execution.engine import ExecutionEngine
from actiongraph.execution.errors import UnknownWorkflowError
from actiongraph.execution.sequencer import topological_sort
from actiongraph.runner import WorkflowRunner

_LEVEL_MARKS = {"info": "·", "running": "▶", "success": "✓", "error": "✗"}


def _load_definition(args: argparse.Namespace) -> WorkflowDefinition:
    if args.file:
        return load_workflow_file(args.file)
    return get_workflow(args.workflow)


def _print_report(result: ExecutionResult) -> None:
    for entry in result.logs:
        mark = _LEVEL_MARKS.get(entry.level, " ")
        print(f"[{entry.timestamp}] {mark} {entry.message}")
    print()

    print("─" * 70)
    if result.success:
        print(f"✓ Success! ({result.execution_time_ms}ms)")
        if result.node_executions:
            print()
            last = result.node_executions[-1]
            print(json.dumps(last.output_data, indent=2, ensure_ascii=False, default=str))
    else:
        print(f"✗ Error! ({result.execution_time_ms}ms)")
        print()
        print(result.error)
    print("─" * 70)


def cmd_run(args: argparse.Namespace) -> int:
    """Run a workflow.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        workflow = _load_definition(args)
    except UnknownWorkflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(f"Available workflows: {', '.join(sorted(WORKFLOWS))}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error loading workflow: {e}", file=sys.stderr)
        return 1

    engine = ExecutionEngine(enforce_timeouts=args.enforce_timeouts or settings.enforce_timeouts)
    runner = WorkflowRunner(engine=engine)

    if not args.json:
        print(f"▶ Executing: {workflow.metadata.name}")
        print(f"  Query: {args.query}")
        print()

    result = asyncio.run(runner.run_definition(workflow, args.query))

    if args.json:
        print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    else:
        _print_report(result)
    return 0 if result.success else 1


def cmd_list(args: argparse.Namespace) -> int:
    """List catalog workflows."""
    print("Workflows:")
    for name, workflow in WORKFLOWS.items():
        info = WORKFLOW_INFO.get(name)
        description = info.description if info else workflow.metadata.description
        print(f"  • {name} ({len(workflow.nodes)} nodes) - {description}")
        presets = PRESET_QUERIES.get(name)
        if presets:
            print(f"      try: {', '.join(presets)}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Show a workflow's nodes and execution order."""
    try:
        workflow = _load_definition(args)
    except UnknownWorkflowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error loading workflow: {e}", file=sys.stderr)
        return 1

    meta = workflow.metadata
    print(f"Workflow: {meta.name}")
    print(f"  {meta.description}")
    print(f"  risk={meta.risk} principal={meta.principal.id} permissions={','.join(meta.principal.permissions)}")
    print()

    plan = topological_sort(workflow.nodes)
    print(f"Nodes: {len(workflow.nodes)}")
    for node in workflow.nodes:
        deps = f" ← {', '.join(node.depends_on)}" if node.depends_on else ""
        print(f"  • {node.id} [{node.action_ref}]{deps}")
    print()
    if plan.ok:
        print(f"Execution order: {' → '.join(plan.order)}")
        return 0
    print(f"Cycle detected: {', '.join(plan.cycles)}")
    return 1


def cmd_serve(args: argparse.Namespace) -> int:
    from actiongraph.devserver import serve

    serve(args.host, args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="actiongraph",
        description="actiongraph - declarative action DAG runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  actiongraph run book_search dune
  actiongraph run wiki_summary "Alan Turing" --json
  actiongraph show arxiv_search
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"actiongraph {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run a workflow with a query"
    )
    run_parser.add_argument(
        "workflow",
        help="Catalog workflow name (ignored with --file)"
    )
    run_parser.add_argument(
        "query",
        help="Query string substituted for {query} in node inputs"
    )
    run_parser.add_argument(
        "--file",
        default=None,
        help="Load the workflow definition from a JSON file instead of the catalog"
    )
    run_parser.add_argument(
        "--enforce-timeouts",
        action="store_true",
        help="Cancel handler attempts that overrun their node timeout"
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the execution report as JSON"
    )

    # List command
    subparsers.add_parser(
        "list",
        help="List catalog workflows"
    )

    # Show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show a workflow's nodes and execution order"
    )
    show_parser.add_argument(
        "workflow",
        help="Catalog workflow name (ignored with --file)"
    )
    show_parser.add_argument(
        "--file",
        default=None,
        help="Load the workflow definition from a JSON file"
    )

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Start the HTTP trigger"
    )
    serve_parser.add_argument("--host", default=settings.host)
    serve_parser.add_argument("--port", type=int, default=settings.port)

    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "list":
        return cmd_list(args)
    elif args.command == "show":
        return cmd_show(args)
    elif args.command == "serve":
        return cmd_serve(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
